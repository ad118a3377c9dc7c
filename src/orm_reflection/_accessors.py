"""
Accessor bindings: how a property is read or written.

A property is reached through exactly one of three bindings per direction:

- `MethodCall`: a getter called with no arguments or a setter called with
  the value (also used for `property` getters and setters, which are read
  and assigned as attributes).
- `FieldRead`: a plain attribute read.
- `FieldWrite`: a plain attribute write.

The bindings are inert records; `invoke` is the single place that knows how
to run each of them.

Example:
    Reading and writing through bindings::

        from orm_reflection import Reflector, invoke

        class User:
            name: str

        reflector = Reflector(User)
        user = User()
        invoke(reflector.get_writer("name"), user, "ada")
        assert invoke(reflector.get_reader("name"), user) == "ada"
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

__all__ = [
    "MethodCall",
    "FieldRead",
    "FieldWrite",
    "Accessor",
    "invoke",
]


@dataclass(frozen=True)
class MethodCall:
    """Calls a getter or setter, looked up by name on the target.

    Lookup goes through the target, so a subclass override runs even when
    the reflector saw the base class's function.

    Attributes:
        function: The getter or setter function the reflector resolved types
            from.
        name: The attribute name the function was found under.
        descriptor: True for `property` and `functools.cached_property`
            accessors, which are read and assigned as attributes rather
            than called.
    """

    function: Callable[..., Any]
    name: str
    descriptor: bool = False


@dataclass(frozen=True)
class FieldRead:
    """Reads an attribute directly.

    Attributes:
        name: The attribute name.
        declaring_class: The class that declares the attribute.
        static: True for class-level attributes.
    """

    name: str
    declaring_class: type
    static: bool = False


@dataclass(frozen=True)
class FieldWrite:
    """Writes an attribute directly.

    Class-level attributes are written on the declaring class. Final
    instance attributes, including frozen dataclass fields, are written with
    `object.__setattr__`, bypassing the class's own `__setattr__` guard.

    Attributes:
        name: The attribute name.
        declaring_class: The class that declares the attribute.
        static: True for class-level attributes.
        final: True when normal assignment is expected to be refused.
    """

    name: str
    declaring_class: type
    static: bool = False
    final: bool = False


Accessor = Union[MethodCall, FieldRead, FieldWrite]


def invoke(accessor: Accessor, target: Any, *args: Any) -> Any:
    """Run an accessor against a target instance.

    Args:
        accessor: The binding obtained from a reflector.
        target: The instance to read from or write to.
        *args: Nothing for readers; the new value for writers.

    Returns:
        The value read, or whatever the setter returns (usually None).

    Raises:
        TypeError: If the number of arguments does not fit the binding.
    """
    if isinstance(accessor, MethodCall):
        if not accessor.descriptor:
            return getattr(target, accessor.name)(*args)
        if not args:
            return getattr(target, accessor.name)
        if len(args) != 1:
            raise TypeError(f"Property '{accessor.name}' takes exactly one value")
        setattr(target, accessor.name, args[0])
        return None
    if isinstance(accessor, FieldRead):
        if args:
            raise TypeError(f"Field reader '{accessor.name}' takes no arguments")
        owner = accessor.declaring_class if accessor.static else target
        return getattr(owner, accessor.name)
    if isinstance(accessor, FieldWrite):
        if len(args) != 1:
            raise TypeError(f"Field writer '{accessor.name}' takes exactly one value")
        (value,) = args
        if accessor.static:
            setattr(accessor.declaring_class, accessor.name, value)
        elif accessor.final:
            object.__setattr__(target, accessor.name, value)
        else:
            setattr(target, accessor.name, value)
        return None
    raise TypeError(f"Not an accessor: {accessor!r}")
