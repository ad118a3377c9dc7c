"""
Thin layer over Python's own reflection facilities.

The reflector never touches `vars()`, `inspect` or `typing` directly; it asks
this module for the members each class declares:

- `class_hierarchy`: the classes to walk, most derived first.
- `declared_methods`: accessor candidates from plain functions and
  `property` objects declared on one class.
- `declared_fields`: annotated attributes and `__slots__` declared on one
  class.
- `find_default_constructor`: the zero-argument constructor, if any.

Members are described by the frozen `Method` and `Field` records. Type hints
are evaluated lazily (`Method.type_hints`) so that classes whose unrelated
methods carry unresolvable forward references can still be introspected.
"""

import dataclasses
import functools
import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    ClassVar,
    Final,
    Generic,
    Protocol,
    get_args,
    get_origin,
    get_type_hints,
)

from orm_reflection._errors import UnresolvableGenericsError
from orm_reflection._types import type_name

__all__ = [
    "Method",
    "Field",
    "Constructor",
    "class_hierarchy",
    "declared_methods",
    "declared_fields",
    "find_default_constructor",
]

_ROOTS = (object, Generic, Protocol)
_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)
_HIDDEN_SLOTS = ("__dict__", "__weakref__")


@dataclass(frozen=True)
class Method:
    """A function declared on a class, seen as a potential accessor.

    Attributes:
        name: The attribute name the function is bound to. For property
            accessors this is the property's attribute name.
        function: The underlying function, kept for its annotations.
        declaring_class: The class whose namespace holds the member.
        parameters: Positional parameters after ``self``.
        property_name: Set for `property` getters and setters, which name
            their property directly instead of through naming conventions.
        is_bridge: True when the function is bound under an alias rather
            than its own name.
    """

    name: str
    function: Callable[..., Any]
    declaring_class: type
    parameters: tuple[inspect.Parameter, ...]
    property_name: str | None = None
    is_bridge: bool = False

    @property
    def arity(self) -> int:
        """Number of positional arguments the accessor takes besides ``self``."""
        return len(self.parameters)

    @functools.cached_property
    def type_hints(self) -> dict[str, Any]:
        """The function's evaluated annotations.

        Raises:
            UnresolvableGenericsError: If an annotation cannot be evaluated.
        """
        try:
            return get_type_hints(self.function)
        except (NameError, SyntaxError, TypeError, AttributeError) as exc:
            raise UnresolvableGenericsError(
                self.function.__annotations__,
                f"Cannot evaluate annotations of {self.qualified_name}: {exc}",
            ) from exc

    @property
    def return_hint(self) -> Any:
        """The evaluated return annotation; `object` when absent."""
        return self.type_hints.get("return", object)

    @property
    def parameter_hints(self) -> tuple[Any, ...]:
        """The evaluated annotation of each parameter; `object` when absent."""
        hints = self.type_hints
        return tuple(hints.get(p.name, object) for p in self.parameters)

    @property
    def qualified_name(self) -> str:
        return f"{type_name(self.declaring_class)}.{self.name}"


@dataclass(frozen=True)
class Field:
    """An attribute declared on a class through an annotation or `__slots__`.

    Attributes:
        name: The attribute name.
        declaring_class: The class whose namespace declares it.
        annotation: The evaluated annotation, qualifiers included; `object`
            for unannotated slots.
        is_static: True for class-level attributes (`ClassVar`, or `Final`
            with a value in the class body).
        is_final: True for `Final` attributes and frozen dataclass fields.
    """

    name: str
    declaring_class: type
    annotation: Any = object
    is_static: bool = False
    is_final: bool = False


@dataclass(frozen=True)
class Constructor:
    """Handle to a class's zero-argument constructor."""

    cls: type
    signature: inspect.Signature | None = field(default=None, compare=False)

    def new_instance(self) -> Any:
        """Create an instance by calling the class without arguments."""
        return self.cls()


def class_hierarchy(cls: type) -> list[type]:
    """Return the classes to introspect for `cls`, most derived first.

    The method resolution order already interleaves base classes, ABCs and
    protocols in lookup order; `object`, `Generic` and `Protocol` are left out.
    """
    return [klass for klass in cls.__mro__ if klass not in _ROOTS]


def declared_methods(cls: type) -> Iterator[Method]:
    """Yield the accessor candidates declared directly on `cls`.

    Plain functions are yielded as-is, with ``is_bridge`` set when bound
    under another name. `property` objects yield their getter and setter,
    `functools.cached_property` its getter. Static and class methods are
    skipped since they never receive the instance.
    """
    for name, member in vars(cls).items():
        if isinstance(member, property):
            candidates = [
                _method(name, accessor, cls, property_name=name)
                for accessor in (member.fget, member.fset)
                if accessor is not None
            ]
        elif isinstance(member, functools.cached_property):
            candidates = [_method(name, member.func, cls, property_name=name)]
        elif inspect.isfunction(member):
            candidates = [_method(name, member, cls, is_bridge=member.__name__ != name)]
        else:
            continue
        for method in candidates:
            if method is not None:
                yield method


def _method(
    name: str,
    function: Callable[..., Any],
    cls: type,
    property_name: str | None = None,
    is_bridge: bool = False,
) -> Method | None:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return None
    positional = [p for p in signature.parameters.values() if p.kind in _POSITIONAL]
    if not positional:
        # Without a ``self`` slot the function cannot run against an instance.
        return None
    return Method(
        name=name,
        function=function,
        declaring_class=cls,
        parameters=tuple(positional[1:]),
        property_name=property_name,
        is_bridge=is_bridge,
    )


def declared_fields(cls: type) -> list[Field]:
    """Return the attributes declared directly on `cls`.

    Annotated names come first, in declaration order, followed by
    unannotated `__slots__` entries. `dataclasses.InitVar` pseudo-fields are
    not attributes and are skipped.

    Raises:
        UnresolvableGenericsError: If an annotation cannot be evaluated.
    """
    try:
        annotations = inspect.get_annotations(cls, eval_str=True)
    except (NameError, SyntaxError, TypeError, AttributeError) as exc:
        raise UnresolvableGenericsError(
            inspect.get_annotations(cls),
            f"Cannot evaluate annotations of {type_name(cls)}: {exc}",
        ) from exc

    frozen = _is_frozen_dataclass(cls)
    namespace = vars(cls)
    fields: list[Field] = []
    for name, annotation in annotations.items():
        if isinstance(annotation, dataclasses.InitVar) or annotation is dataclasses.InitVar:
            continue
        qualifiers = _qualifiers(annotation)
        is_final = Final in qualifiers
        is_static = ClassVar in qualifiers or (
            is_final and _assigned_in_body(cls, name)
        )
        fields.append(
            Field(
                name=name,
                declaring_class=cls,
                annotation=_final_value_type(annotation, namespace.get(name)),
                is_static=is_static,
                is_final=is_final or (frozen and not is_static),
            )
        )

    slots = namespace.get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    for name in slots:
        if name not in annotations and name not in _HIDDEN_SLOTS:
            fields.append(Field(name=name, declaring_class=cls))
    return fields


def _qualifiers(annotation: Any) -> set[Any]:
    found = set()
    while True:
        if annotation is Final or annotation is ClassVar:
            found.add(annotation)
            return found
        origin = get_origin(annotation)
        if origin not in (Final, ClassVar, Annotated):
            return found
        if origin is not Annotated:
            found.add(origin)
        annotation = get_args(annotation)[0]


def _final_value_type(annotation: Any, value: Any) -> Any:
    # ``VERSION: Final = "1.0"`` takes its type from the assigned value.
    if annotation is Final and value is not None:
        return type(value)
    return annotation


def _assigned_in_body(cls: type, name: str) -> bool:
    value = vars(cls).get(name, _MISSING)
    if value is _MISSING or inspect.ismemberdescriptor(value):
        return False
    # Dataclass defaults stay in the class namespace but belong to instances.
    if "__dataclass_fields__" in vars(cls):
        return name not in {f.name for f in dataclasses.fields(cls)}
    return True


_MISSING = object()


def _is_frozen_dataclass(cls: type) -> bool:
    params = cls.__dict__.get("__dataclass_params__")
    return bool(params is not None and params.frozen)


def find_default_constructor(cls: type) -> Constructor | None:
    """Return a handle to the class's zero-argument constructor, if any.

    A class has one when it can be called without arguments: every
    parameter of its ``__init__`` (or ``__new__``) has a default.
    Classes whose signature cannot be determined have none.
    """
    if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
        return Constructor(cls)
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return None
    try:
        signature.bind()
    except TypeError:
        return None
    return Constructor(cls, signature)
