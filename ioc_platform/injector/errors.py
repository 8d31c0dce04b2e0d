"""Errors raised while resolving dependencies.

Every error derives from ``ResolutionError`` so callers can catch the whole
family at once, and each also derives from the closest builtin exception so
code that only knows ``ValueError``/``RuntimeError``/``TypeError`` still works.
"""

from __future__ import annotations

from typing import Any, Sequence


def describe_target(target: Any) -> str:
    """Human readable name for a class, function, method or dotted path."""
    if isinstance(target, str):
        return target
    qualname = getattr(target, "__qualname__", None)
    if qualname is None:
        return repr(target)
    module = getattr(target, "__module__", None)
    return f"{module}.{qualname}" if module else qualname


class ResolutionError(Exception):
    """Base class for all resolver errors."""


class InvalidTarget(ResolutionError, ValueError):
    """A required identifier (class, method name, callable) is empty or unusable."""


class ResolutionRuntimeError(ResolutionError, RuntimeError):
    """Introspection failed: bad dotted path, missing method, unreadable signature."""


class NotInstantiable(ResolutionRuntimeError):
    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(f"{describe_target(target)} is not instantiable")


class UnresolvableDependency(ResolutionRuntimeError):
    def __init__(self, parameter: str, target: Any = None) -> None:
        self.parameter = parameter
        self.target = target
        where = f" of {describe_target(target)}" if target is not None else ""
        super().__init__(f"Cannot resolve dependency '{parameter}'{where}")


class CyclicDependency(ResolutionRuntimeError):
    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = list(chain)
        path = " -> ".join(describe_target(item) for item in self.chain)
        super().__init__(f"Circular dependency detected: {path}")


class UnsupportedResolution(ResolutionError, TypeError):
    """The resolver was asked for a resolution kind it does not know."""
