"""Reflection-driven dependency resolution.

The resolver turns a target (a class to construct, a method to invoke on a
fresh instance, or a plain callable) plus a mapping of explicit values into a
finished call. Each parameter is satisfied, in this order, by:

1. an explicit value supplied under the parameter's name,
2. autowiring of its declared (non-builtin) class,
3. its default value.

Anything left over raises ``UnresolvableDependency``.
"""

from __future__ import annotations

import enum
import inspect
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping, TypeVar

from ioc_platform.injector.descriptors import (
    ParameterDescriptor,
    describe,
    qualified_name,
    resolve_class,
)
from ioc_platform.injector.errors import (
    CyclicDependency,
    InvalidTarget,
    NotInstantiable,
    ResolutionRuntimeError,
    UnresolvableDependency,
    UnsupportedResolution,
    describe_target,
)
from ioc_platform.services.logger.interface import LoggingInterface
from ioc_platform.services.logger.noop_logger import NoopLogger

if TYPE_CHECKING:
    from ioc_platform.config.container import Container

T = TypeVar("T")


class ResolutionKind(enum.Enum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    CALLABLE = "callable"


class Resolver:
    """Builds objects and calls functions, supplying their parameters.

    When attached to a ``Container``, autowiring of a declared class first
    checks the container for a binding of that class (by the class itself or
    by its dotted path), so abstract types can be mapped to implementations.
    """

    def __init__(
        self,
        registry: Container | None = None,
        logger: LoggingInterface | None = None,
    ) -> None:
        self._registry = registry
        self._logger = logger or NoopLogger()
        self._local = threading.local()

    def construct(self, cls: type[T] | str, params: Mapping[str, Any] | None = None) -> T:
        """Instantiate *cls*, resolving every constructor parameter."""
        return self.resolve(ResolutionKind.CONSTRUCTOR, cls, params)

    def invoke(
        self, cls: type[Any] | str, method: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        """Call *method* on a freshly constructed instance of *cls*.

        The receiver is always built anew; method invocation never reuses an
        instance, cached or otherwise.
        """
        return self.resolve(ResolutionKind.METHOD, cls, params, method=method)

    def call(self, func: Callable[..., T], params: Mapping[str, Any] | None = None) -> T:
        """Call *func* with its parameters resolved."""
        return self.resolve(ResolutionKind.CALLABLE, func, params)

    def resolve(
        self,
        kind: ResolutionKind,
        target: Any,
        params: Mapping[str, Any] | None = None,
        method: str | None = None,
    ) -> Any:
        params = params or {}
        if kind is ResolutionKind.CONSTRUCTOR:
            _require("Class", target)
            return self._construct(self._load(target), params)
        if kind is ResolutionKind.METHOD:
            _require("Class", target)
            _require("Method", method)
            return self._invoke(self._load(target), method, params)
        if kind is ResolutionKind.CALLABLE:
            _require("Callable", target)
            return self._call(target, params)
        raise UnsupportedResolution(f"Unsupported type: {kind!r} to resolve")

    # ── Internal ──────────────────────────────────────────────────────────

    def _load(self, target: type[Any] | str) -> type[Any]:
        cls = resolve_class(target) if isinstance(target, str) else target
        if not inspect.isclass(cls):
            raise NotInstantiable(target)
        if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            raise NotInstantiable(cls)
        return cls

    def _construct(self, cls: type[T], params: Mapping[str, Any]) -> T:
        with self._entering(cls):
            self._logger.debug("Constructing", target=qualified_name(cls))
            args, kwargs = self._arguments(cls, describe(cls), params)
            return cls(*args, **kwargs)

    def _invoke(self, cls: type[Any], method: str, params: Mapping[str, Any]) -> Any:
        if not callable(getattr(cls, method, None)):
            raise ResolutionRuntimeError(
                f"Method {qualified_name(cls)}.{method}() does not exist"
            )
        instance = self._construct(cls, {})
        bound = getattr(instance, method)
        args, kwargs = self._arguments(bound, describe(bound), params)
        return bound(*args, **kwargs)

    def _call(self, func: Callable[..., Any], params: Mapping[str, Any]) -> Any:
        if not callable(func):
            raise InvalidTarget(f"{describe_target(func)} is not callable")
        args, kwargs = self._arguments(func, describe(func), params)
        return func(*args, **kwargs)

    def _arguments(
        self,
        target: Any,
        parameters: list[ParameterDescriptor],
        explicit: Mapping[str, Any],
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in parameters:
            if parameter.variadic:
                continue
            value = self._dependency(target, parameter, explicit)
            if parameter.keyword_only:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        return args, kwargs

    def _dependency(
        self, target: Any, parameter: ParameterDescriptor, explicit: Mapping[str, Any]
    ) -> Any:
        if parameter.name in explicit:
            return explicit[parameter.name]
        if parameter.unresolved is not None and not parameter.has_default:
            raise ResolutionRuntimeError(
                f"Cannot read type hint '{parameter.unresolved}' of parameter "
                f"'{parameter.name}' of {describe_target(target)}"
            )
        if parameter.autowirable:
            return self._autowire(parameter.annotation)
        if parameter.has_default:
            return parameter.default
        raise UnresolvableDependency(parameter.name, target)

    def _autowire(self, cls: type[Any]) -> Any:
        registry = self._registry
        if registry is not None:
            for key in (cls, qualified_name(cls)):
                if registry.has(key):
                    self._logger.debug("Autowiring from binding", target=qualified_name(cls))
                    return registry.make(key)
        return self._construct(self._load(cls), {})

    @contextmanager
    def _entering(self, cls: type[Any]) -> Iterator[None]:
        stack: list[type[Any]] = getattr(self._local, "stack", None) or []
        if cls in stack:
            raise CyclicDependency([*stack[stack.index(cls):], cls])
        self._local.stack = stack
        stack.append(cls)
        try:
            yield
        finally:
            stack.pop()


def _require(label: str, value: Any) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidTarget(f"{label} cannot be empty")
