"""Parameter metadata for constructors, methods and plain callables.

The resolver never looks at ``inspect`` directly; it asks this module for an
ordered list of ``ParameterDescriptor`` and works from that.
"""

from __future__ import annotations

import enum
import functools
import importlib
import inspect
import sys
import types
from dataclasses import dataclass
from typing import Any, Callable, Union, get_args, get_origin, get_type_hints

from ioc_platform.injector.errors import ResolutionRuntimeError, describe_target

_NO_DEFAULT = inspect.Parameter.empty


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    annotation: Any = None
    builtin: bool = False
    has_default: bool = False
    default: Any = None
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    unresolved: str | None = None

    @property
    def autowirable(self) -> bool:
        """True when the declared type is a class the resolver may construct."""
        return self.annotation is not None and not self.builtin

    @property
    def variadic(self) -> bool:
        return self.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


def resolve_class(dotted_path: str) -> type[Any]:
    """Import and return a class from a dotted module.ClassName path."""
    module_path, _, class_name = dotted_path.rpartition(".")
    if not module_path:
        raise ResolutionRuntimeError(
            f"'{dotted_path}' is not a dotted path (expected 'package.module.ClassName')"
        )
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ResolutionRuntimeError(f"Cannot import module '{module_path}': {exc}") from exc
    try:
        return getattr(module, class_name)
    except AttributeError as exc:
        raise ResolutionRuntimeError(
            f"Module '{module_path}' has no attribute '{class_name}'"
        ) from exc


def qualified_name(cls: type[Any]) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def unwrap_optional(annotation: Any) -> Any:
    """Reduce ``Optional[X]`` / ``X | None`` to ``X``; anything else is returned as is."""
    if get_origin(annotation) in (Union, types.UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def is_builtin(annotation: Any) -> bool:
    """Scalars, enums, standard-library value types and typing constructs.

    None of these has a canonical instance to build, so parameters declared
    with them are filled by explicit values or defaults only.
    """
    if get_origin(annotation) is not None:
        return True
    if not inspect.isclass(annotation):
        return True
    if issubclass(annotation, enum.Enum):
        return True
    module = annotation.__module__.partition(".")[0]
    return module in ("builtins", "typing") or module in sys.stdlib_module_names


def has_own_constructor(cls: type[Any]) -> bool:
    return cls.__init__ is not object.__init__ or cls.__new__ is not object.__new__


def describe(target: Any) -> list[ParameterDescriptor]:
    """Describe the parameters of a class constructor or any callable.

    Classes are described through their call signature, so ``self`` is
    dropped and classes defining only ``__new__`` are covered. A class with
    neither ``__init__`` nor ``__new__`` of its own has no parameters at all.
    """
    if inspect.isclass(target) and not has_own_constructor(target):
        return []
    return _describe_callable(target, owner=target)


def _describe_callable(func: Callable[..., Any], owner: Any) -> list[ParameterDescriptor]:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError) as exc:
        raise ResolutionRuntimeError(
            f"Cannot read signature of {describe_target(owner)}: {exc}"
        ) from exc

    hints, unresolved = _type_hints(func, owner)
    descriptors: list[ParameterDescriptor] = []
    for name, param in signature.parameters.items():
        annotation = hints.get(name)
        unresolved_hint = unresolved.get(name)
        if annotation is None and unresolved_hint is None and param.annotation is not _NO_DEFAULT:
            if isinstance(param.annotation, str):
                unresolved_hint = param.annotation
            else:
                annotation = param.annotation
        if annotation is not None:
            annotation = unwrap_optional(annotation)
        descriptors.append(
            ParameterDescriptor(
                name=name,
                annotation=annotation,
                builtin=annotation is not None and is_builtin(annotation),
                has_default=param.default is not _NO_DEFAULT,
                default=None if param.default is _NO_DEFAULT else param.default,
                kind=param.kind,
                unresolved=unresolved_hint,
            )
        )
    return descriptors


def _hint_sources(func: Any) -> list[Any]:
    if isinstance(func, functools.partial):
        return _hint_sources(func.func)
    if inspect.isclass(func):
        # __init__ wins over __new__ when both name a parameter
        pairs = ((func.__new__, object.__new__), (func.__init__, object.__init__))
        return [method for method, inherited in pairs if method is not inherited]
    if inspect.isroutine(func):
        return [func]
    # callable instance
    return [type(func).__call__]


def _type_hints(func: Any, owner: Any) -> tuple[dict[str, Any], dict[str, str]]:
    """Evaluated hints, plus the text of any hint that names an unknown type.

    A single unknown name (typically one imported under ``TYPE_CHECKING``)
    only affects its own parameter; the others are still evaluated.
    """
    hints: dict[str, Any] = {}
    unresolved: dict[str, str] = {}
    for source in _hint_sources(func):
        try:
            found, missing = get_type_hints(source), {}
        except (NameError, TypeError, AttributeError):
            found, missing = _hints_by_name(source, owner)
        for name in found:
            unresolved.pop(name, None)
        hints.update(found)
        unresolved.update(missing)
    hints.pop("return", None)
    unresolved.pop("return", None)
    return hints, unresolved


def _hints_by_name(source: Any, owner: Any) -> tuple[dict[str, Any], dict[str, str]]:
    try:
        raw = inspect.get_annotations(source)
    except (NameError, TypeError) as exc:
        raise ResolutionRuntimeError(
            f"Cannot read type hints for {describe_target(owner)}: {exc}"
        ) from exc
    namespace = getattr(source, "__globals__", {})
    hints: dict[str, Any] = {}
    unresolved: dict[str, str] = {}
    for name, annotation in raw.items():
        if not isinstance(annotation, str):
            hints[name] = annotation
            continue
        try:
            hints[name] = eval(annotation, namespace)  # noqa: S307
        except (NameError, AttributeError, TypeError, SyntaxError):
            unresolved[name] = annotation
    return hints, unresolved
