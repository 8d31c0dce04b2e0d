"""Service registry: named bindings, singletons and a process-wide instance.

A binding maps a key (a string name or a class) to a definition, which is
either a type identifier (class or dotted path) handed to the ``Resolver``,
or a factory called as ``factory(container, **params)``.
"""

from __future__ import annotations

import inspect
import threading
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Hashable, Mapping, Union

from ioc_platform.config.context import PlatformConfig
from ioc_platform.injector.errors import describe_target
from ioc_platform.injector.resolver import Resolver
from ioc_platform.services.lifecycle.lifecycle_manager import LifecycleManager
from ioc_platform.services.logger.factory import LoggerFactory
from ioc_platform.services.logger.interface import LoggingInterface
from ioc_platform.services.logger.noop_logger import NoopLogger

BindingKey = Union[str, type]
Definition = Union[str, type, Callable[..., Any]]


@dataclass(frozen=True)
class Binding:
    key: BindingKey
    definition: Definition
    shared: bool = False

    @property
    def is_factory(self) -> bool:
        return callable(self.definition) and not inspect.isclass(self.definition)


class Container:
    """Registry of bindings backed by a ``Resolver``.

    Singleton bindings are built at most once per container. Concurrent first
    requests for the same singleton block on a per-key lock: the first caller
    builds the instance, the others wait and receive it.

    Cycle detection is per thread, so singleton graphs reached from several
    threads must be acyclic or the per-key locks can deadlock.
    """

    _instance: ClassVar[Container | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        logger: LoggingInterface | None = None,
        resolver: Resolver | None = None,
    ) -> None:
        self._logger = logger or NoopLogger()
        self._resolver = resolver or Resolver(registry=self, logger=self._logger)
        self._bindings: dict[Hashable, Binding] = {}
        self._instances: dict[Hashable, Any] = {}
        self._locks: dict[Hashable, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._lifecycle = LifecycleManager(logger=self._logger)

    @classmethod
    def instance(cls) -> Container:
        """The process-wide container, created on first access."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def clear_instance(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    def bind(self, key: BindingKey, definition: Definition) -> Container:
        """Register a plain binding; every ``make`` builds a new object."""
        return self._add(Binding(key, definition, shared=False))

    def singleton(self, key: BindingKey, definition: Definition) -> Container:
        """Register a binding whose first successful ``make`` is cached."""
        return self._add(Binding(key, definition, shared=True))

    bind_singleton = singleton

    def register_instance(self, key: BindingKey, instance: Any) -> Container:
        """Register a pre-built object as the singleton for *key*."""
        self._add(Binding(key, type(instance), shared=True))
        self._instances[key] = instance
        return self

    def has(self, key: BindingKey) -> bool:
        """Whether *key* has an explicit binding. Resolvable but unbound types report False."""
        return key in self._bindings

    def bindings(self) -> dict[Hashable, Binding]:
        return dict(self._bindings)

    def make(self, key: BindingKey, params: Mapping[str, Any] | None = None) -> Any:
        """Resolve *key* to an object.

        Unbound keys are treated as type identifiers and constructed directly.
        """
        params = params or {}
        binding = self._bindings.get(key)
        if binding is None:
            return self._resolver.construct(key, params)
        if not binding.shared:
            return self._build(binding, params)

        try:
            return self._instances[key]
        except KeyError:
            pass
        with self._lock_for(key):
            if key in self._instances:
                return self._instances[key]
            instance = self._build(binding, params)
            self._remember(key, instance)
            return instance

    async def shutdown(self) -> None:
        """Close owned singletons (newest first) and empty the cache."""
        lifecycle, self._lifecycle = self._lifecycle, LifecycleManager(logger=self._logger)
        self._logger.info("Shutting down container", hooks=lifecycle.hook_count)
        await lifecycle.shutdown()
        self._instances.clear()

    # ── Internal ──────────────────────────────────────────────────────────

    def _add(self, binding: Binding) -> Container:
        self._bindings[binding.key] = binding
        self._instances.pop(binding.key, None)
        self._logger.debug(
            "Bound",
            key=describe_target(binding.key),
            definition=describe_target(binding.definition),
            shared=binding.shared,
        )
        return self

    def _build(self, binding: Binding, params: Mapping[str, Any]) -> Any:
        if binding.is_factory:
            return binding.definition(self, **params)
        return self._resolver.construct(binding.definition, params)

    def _remember(self, key: Hashable, instance: Any) -> None:
        self._instances[key] = instance
        close = getattr(instance, "close", None)
        if callable(close):
            self._lifecycle.on_shutdown(close, name=describe_target(key))

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock


def build_container(config: PlatformConfig | None = None) -> Container:
    """Container with configuration and logging registered.

    ``LOG_IMPL`` selects the logger implementation (default ``pretty``).
    """
    config = config or PlatformConfig()
    logger_factory = LoggerFactory(default_impl=config.get("LOG_IMPL", "pretty"))
    logger = logger_factory.create()

    container = Container(logger=logger)
    container.register_instance(Container, container)
    container.register_instance(Resolver, container.resolver)
    container.register_instance(PlatformConfig, config)
    container.register_instance(LoggerFactory, logger_factory)
    container.register_instance(LoggingInterface, logger)
    return container
