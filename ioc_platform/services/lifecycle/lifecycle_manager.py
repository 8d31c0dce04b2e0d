"""Ordered shutdown of long-lived objects."""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Union

from ioc_platform.services.logger.interface import LoggingInterface
from ioc_platform.services.logger.noop_logger import NoopLogger

ShutdownHook = Union[Callable[[], None], Callable[[], Awaitable[None]]]


class LifecycleManager:
    def __init__(self, logger: LoggingInterface | None = None) -> None:
        self._logger = logger or NoopLogger()
        self._hooks: list[tuple[str, ShutdownHook]] = []
        self._shutting_down = False
        self._shutdown_done = False

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def hook_count(self) -> int:
        return len(self._hooks)

    def on_shutdown(self, callback: ShutdownHook, name: str | None = None) -> None:
        """Register a cleanup callback. Executed in reverse order on shutdown."""
        label = name or getattr(callback, "__qualname__", repr(callback))
        self._hooks.append((label, callback))

    async def shutdown(self) -> None:
        """Run every hook, newest first. Safe to call more than once."""
        if self._shutdown_done:
            return
        self._shutting_down = True
        self._shutdown_done = True

        for label, hook in reversed(self._hooks):
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                # One failing hook must not prevent others from running
                self._logger.exception("Shutdown hook failed", exc, hook=label)
        self._hooks.clear()
