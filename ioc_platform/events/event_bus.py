"""Event listener bus.

Listeners are plain callables or ``(class, "method")`` pairs, where the class
may also be given as a dotted path. Emitting without arguments lets the
resolver supply the listener's parameters; emitting with arguments passes
them through unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence, Union

from ioc_platform.injector.resolver import Resolver
from ioc_platform.services.logger.interface import LoggingInterface
from ioc_platform.services.logger.noop_logger import NoopLogger

Listener = Union[Callable[..., Any], tuple[Union[type, str], str]]


class EventSubscriber(ABC):
    """A class that declares which of its methods listen to which events."""

    @abstractmethod
    def get_events(self) -> Mapping[str, str | Sequence[str]]:
        """Map event name -> method name, or a list of method names."""


@dataclass(eq=False)
class _Registration:
    listener: Listener
    once: bool = False


class EventBus:
    def __init__(
        self,
        resolver: Resolver | None = None,
        logger: LoggingInterface | None = None,
    ) -> None:
        self._logger = logger or NoopLogger()
        self._resolver = resolver or Resolver(logger=self._logger)
        self._listeners: dict[str, dict[int, list[_Registration]]] = {}
        self._deferred: deque[tuple[str, tuple[Any, ...]]] = deque()
        self._subscribed: set[type] = set()

    def on(self, event: str, listener: Listener, priority: int = 0) -> EventBus:
        """Register *listener*. Lower priorities run first."""
        self._add(event, listener, priority, once=False)
        return self

    def once(self, event: str, listener: Listener, priority: int = 0) -> EventBus:
        """Register *listener* for the next emission of *event* only."""
        self._add(event, listener, priority, once=True)
        return self

    def listeners(self, event: str | None = None) -> list[Listener] | dict[str, list[Listener]]:
        if event is not None:
            _require_name(event)
            return [r.listener for r in self._ordered(event)]
        return {name: [r.listener for r in self._ordered(name)] for name in self._listeners}

    def has_listeners(self, event: str) -> bool:
        return event in self._listeners

    def remove_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
            return
        _require_name(event)
        self._listeners.pop(event, None)

    def remove_listener(self, event: str, listener: Listener) -> None:
        """Remove the first registration of *listener* for *event*, if any."""
        _require_name(event)
        for priority, registrations in self._listeners.get(event, {}).items():
            for registration in registrations:
                if registration.listener == listener:
                    self._discard(event, priority, registration)
                    return

    def emit(self, event: str, *args: Any) -> None:
        _require_name(event)
        by_priority = self._listeners.get(event)
        if not by_priority:
            return
        self._logger.debug("Emitting event", event=event, args=len(args))
        for priority in sorted(by_priority):
            for registration in list(by_priority.get(priority, ())):
                if registration.once:
                    self._discard(event, priority, registration)
                self._dispatch(registration.listener, args)

    def defer(self, event: str, *args: Any) -> EventBus:
        """Queue an emission for ``dispatch_deferred``."""
        _require_name(event)
        self._deferred.append((event, args))
        return self

    def dispatch_deferred(self) -> int:
        """Emit every queued event in order. Returns how many were emitted."""
        count = 0
        while self._deferred:
            event, args = self._deferred.popleft()
            self.emit(event, *args)
            count += 1
        return count

    def subscribe(self, subscriber: EventSubscriber) -> EventBus:
        cls = type(subscriber)
        for event, method in self._subscriptions(subscriber):
            self.on(event, (cls, method))
        self._subscribed.add(cls)
        return self

    def unsubscribe(self, subscriber: EventSubscriber) -> EventBus:
        cls = type(subscriber)
        if cls not in self._subscribed:
            return self
        for event, method in self._subscriptions(subscriber):
            self.remove_listener(event, (cls, method))
        self._subscribed.discard(cls)
        return self

    # ── Internal ──────────────────────────────────────────────────────────

    def _add(self, event: str, listener: Listener, priority: int, once: bool) -> None:
        _require_name(event)
        _check_listener(listener)
        by_priority = self._listeners.setdefault(event, {})
        by_priority.setdefault(priority, []).append(_Registration(listener, once))

    def _ordered(self, event: str) -> list[_Registration]:
        by_priority = self._listeners.get(event, {})
        return [r for priority in sorted(by_priority) for r in by_priority[priority]]

    def _discard(self, event: str, priority: int, registration: _Registration) -> None:
        by_priority = self._listeners.get(event)
        if by_priority is None:
            return
        registrations = by_priority.get(priority, [])
        if registration in registrations:
            registrations.remove(registration)
        if not registrations:
            by_priority.pop(priority, None)
        if not by_priority:
            self._listeners.pop(event, None)

    def _dispatch(self, listener: Listener, args: tuple[Any, ...]) -> None:
        if isinstance(listener, tuple):
            cls, method = listener
            if not args:
                self._resolver.invoke(cls, method)
            else:
                getattr(self._resolver.construct(cls), method)(*args)
        elif not args:
            self._resolver.call(listener)
        else:
            listener(*args)

    @staticmethod
    def _subscriptions(subscriber: EventSubscriber) -> list[tuple[str, str]]:
        pairs: list[tuple[str, str]] = []
        for event, methods in subscriber.get_events().items():
            if isinstance(methods, str):
                methods = [methods]
            pairs.extend((event, method) for method in methods)
        return pairs


def _require_name(event: str) -> None:
    if not isinstance(event, str) or not event.strip():
        raise ValueError("Event name cannot be empty")


def _check_listener(listener: Listener) -> None:
    if isinstance(listener, tuple):
        if (
            len(listener) != 2
            or not isinstance(listener[1], str)
            or not listener[1]
            or not (isinstance(listener[0], (type, str)) and listener[0])
        ):
            raise ValueError(
                "Incorrect listener format, it must be (SomeClass, 'method') "
                "or ('package.module.SomeClass', 'method')"
            )
        return
    if not callable(listener):
        raise ValueError(f"Listener {listener!r} is not callable")
