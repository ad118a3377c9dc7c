"""
Type expressions: a small closed model of Python type hints.

Runtime type hints come in many shapes (`list[int]`, `Optional[Box[T]]`,
`Annotated[str, ...]`, `tuple[int, ...]`, bare `TypeVar`s). The reflector
only needs five of them, so every hint is normalized into one of:

- `ClassType`: a plain class.
- `ParameterizedType`: a generic class with type arguments (`dict[str, T]`).
- `ArrayType`: a homogeneous variable-length tuple (`tuple[T, ...]`).
- `WildcardType`: "some type within these bounds" (unions, literals).
- `TypeVariable`: a type variable that may later be substituted.

`parse_type` performs the normalization and `type_to_class` collapses any
expression back to a single class, which is what reflector queries report.

Example:
    Normalizing and collapsing hints::

        from typing import Optional
        from orm_reflection import ParameterizedType, parse_type, type_to_class

        expr = parse_type(Optional[list[int]])
        assert isinstance(expr, ParameterizedType)
        assert expr.raw is list
        assert type_to_class(expr) is list
"""

import sys
import types
import typing
from collections.abc import Iterable
from dataclasses import InitVar, dataclass
from typing import (
    Annotated,
    Any,
    ClassVar,
    Final,
    Literal,
    NewType,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from orm_reflection._errors import UnresolvableGenericsError

__all__ = [
    "ClassType",
    "ParameterizedType",
    "ArrayType",
    "WildcardType",
    "TypeVariable",
    "TypeExpression",
    "parse_type",
    "type_to_class",
    "type_name",
]


@dataclass(frozen=True)
class ClassType:
    """A plain, non-generic class such as `int` or a user-defined record."""

    cls: type


@dataclass(frozen=True)
class ParameterizedType:
    """A generic class applied to type arguments.

    Attributes:
        raw: The unsubscripted class (`list` for `list[int]`).
        args: The type arguments, each itself a type expression.
    """

    raw: type
    args: tuple["TypeExpression", ...]


@dataclass(frozen=True)
class ArrayType:
    """A homogeneous sequence of unknown length, written `tuple[T, ...]`."""

    component: "TypeExpression"


@dataclass(frozen=True)
class WildcardType:
    """A type known only through its upper bounds.

    Unions with several non-`None` members and `Literal[...]` hints are
    modelled as wildcards; the effective class is the nearest common base
    class of all bounds.
    """

    upper_bounds: tuple["TypeExpression", ...]


@dataclass(frozen=True)
class TypeVariable:
    """A `TypeVar` that no enclosing generic binding has substituted yet."""

    var: TypeVar


TypeExpression = Union[ClassType, ParameterizedType, ArrayType, WildcardType, TypeVariable]

_UNWRAPPED = (Annotated, ClassVar, Final)


def parse_type(hint: Any, self_type: type | None = None) -> TypeExpression:
    """Normalize a runtime type hint into a type expression.

    Args:
        hint: An evaluated annotation. String annotations must already have
            been evaluated (see `typing.get_type_hints`).
        self_type: The class that ``Self`` stands for, if any.

    Returns:
        The equivalent type expression.

    Raises:
        UnresolvableGenericsError: If the hint is a forward reference, a
            non-type object, ``Self`` without a `self_type`, or any
            construct outside the model.
    """
    if _is_self(hint):
        if self_type is None:
            raise UnresolvableGenericsError(hint, "Self is only meaningful within a class")
        return ClassType(self_type)
    if hint is None or hint is type(None):
        return ClassType(type(None))
    if hint is Any:
        return ClassType(object)
    if isinstance(hint, TypeVar):
        return TypeVariable(hint)
    if isinstance(hint, NewType):
        return parse_type(hint.__supertype__, self_type)
    if isinstance(hint, InitVar):
        return parse_type(hint.type, self_type)
    # Bare qualifiers carry no type of their own.
    if hint is Final or hint is ClassVar:
        return ClassType(object)

    origin = get_origin(hint)
    if origin is None:
        if isinstance(hint, type):
            return ClassType(hint)
        raise UnresolvableGenericsError(hint)

    args = get_args(hint)
    if origin in _UNWRAPPED:
        return parse_type(args[0], self_type)
    if origin is Union or origin is types.UnionType:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1:
            return parse_type(members[0], self_type)
        return WildcardType(tuple(parse_type(m, self_type) for m in members))
    if origin is Literal:
        return WildcardType(tuple(_unique(ClassType(type(value)) for value in args)))
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return ArrayType(parse_type(args[0], self_type))
    if isinstance(origin, type):
        return ParameterizedType(origin, tuple(_parse_argument(a, self_type) for a in args))

    raise UnresolvableGenericsError(hint)


def _is_self(hint: Any) -> bool:
    # typing_extensions.Self is its own object before Python 3.11; it can only
    # appear in a hint once the module has been imported.
    if hint is getattr(typing, "Self", _NO_SELF):
        return True
    extensions = sys.modules.get("typing_extensions")
    return extensions is not None and hint is getattr(extensions, "Self", _NO_SELF)


_NO_SELF = object()


def _parse_argument(arg: Any, self_type: type | None) -> TypeExpression:
    # Callable[[int, str], T] and tuple[()] put non-type objects in the args.
    if arg is Ellipsis:
        return ClassType(object)
    if isinstance(arg, (list, tuple)):
        return WildcardType(tuple(parse_type(a, self_type) for a in arg))
    return parse_type(arg, self_type)


def _unique(items: Iterable[ClassType]) -> list[ClassType]:
    seen: list[ClassType] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def type_to_class(expr: TypeExpression) -> type:
    """Collapse a type expression to the single class it stands for.

    - `ClassType` gives its class.
    - `ParameterizedType` gives its raw class (`list[int]` becomes `list`).
    - `ArrayType` gives `tuple`, the class of every `tuple[T, ...]` value.
    - `WildcardType` gives the nearest common base class of its bounds.
    - `TypeVariable` gives its bound, the common base of its constraints,
      or `object`.

    Args:
        expr: The expression to collapse.

    Returns:
        A class; `object` when nothing more specific is known.
    """
    if isinstance(expr, ClassType):
        return expr.cls
    if isinstance(expr, ParameterizedType):
        return expr.raw
    if isinstance(expr, ArrayType):
        return tuple
    if isinstance(expr, WildcardType):
        return _common_base([type_to_class(bound) for bound in expr.upper_bounds])
    if isinstance(expr, TypeVariable):
        var = expr.var
        if var.__bound__ is not None:
            return type_to_class(parse_type(var.__bound__))
        if var.__constraints__:
            return _common_base(
                [type_to_class(parse_type(c)) for c in var.__constraints__]
            )
        return object
    return object


def _common_base(classes: list[type]) -> type:
    if not classes:
        return object
    for candidate in classes[0].__mro__:
        if all(issubclass(cls, candidate) for cls in classes[1:]):
            return candidate
    return object


def type_name(cls: type) -> str:
    """Return the dotted name of a class; builtins are not module-qualified."""
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"
