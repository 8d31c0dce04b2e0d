from __future__ import annotations

from ioc_platform.injector.descriptors import resolve_class
from ioc_platform.services.logger.interface import LoggingInterface


class LoggerFactory:
    """Creates and caches logger instances by implementation name.

    Implementations are stored as dotted paths so optional dependencies
    (``requests`` for Loki) are only imported when that logger is selected.
    """

    _registry: dict[str, str] = {
        "pretty": "ioc_platform.services.logger.pretty_logger.PrettyLogger",
        "memory": "ioc_platform.services.logger.memory_logger.MemoryLogger",
        "noop": "ioc_platform.services.logger.noop_logger.NoopLogger",
        "loki": "ioc_platform.services.logger.loki_logger.LokiLogger",
    }

    def __init__(self, default_impl: str = "pretty") -> None:
        self._check(default_impl)
        self._default_impl = default_impl
        self._instances: dict[str, LoggingInterface] = {}

    @property
    def default_impl(self) -> str:
        return self._default_impl

    def create(self, impl_name: str | None = None) -> LoggingInterface:
        """Return a logger instance, creating one if not yet cached."""
        name = impl_name or self._default_impl
        if name not in self._instances:
            self._check(name)
            cls = resolve_class(self._registry[name])
            self._instances[name] = cls()
        return self._instances[name]

    def _check(self, name: str) -> None:
        if name not in self._registry:
            raise ValueError(
                f"Unknown logger implementation: '{name}' "
                f"(available: {', '.join(self._registry)})"
            )
