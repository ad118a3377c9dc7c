"""
Exception types raised by the reflection layer.

Every error derives from `ReflectionError`, so callers that only care about
"introspection went wrong" can catch a single type. Where a builtin exception
describes the failure well, the error also derives from it (`TypeError` for
type expressions the resolver cannot understand, `AttributeError` for missing
readers and writers) so existing ``except`` clauses keep working.

Construction errors (`AmbiguousPropertyError`, `UnresolvableGenericsError`)
are fatal for the class being introspected: no `Reflector` is produced.
Query errors (`NoSuchReaderError`, `NoSuchWriterError`,
`NoDefaultConstructorError`) are per call and leave the reflector usable.
"""

from typing import Any

__all__ = [
    "ReflectionError",
    "AmbiguousPropertyError",
    "InvalidAccessorNameError",
    "UnresolvableGenericsError",
    "NoDefaultConstructorError",
    "NoSuchReaderError",
    "NoSuchWriterError",
]


class ReflectionError(Exception):
    """Base class for all errors raised while introspecting a class."""


class AmbiguousPropertyError(ReflectionError):
    """Two candidate accessors for one property cannot be reconciled.

    Raised when a class exposes getters (or setters) for the same property
    whose types are neither equal nor related by subclassing, or when two
    non-boolean getters share the exact same return type.

    Attributes:
        property_name: The property whose accessors conflict.
        declaring_class: The class that declares the conflicting accessor.
    """

    def __init__(self, property_name: str, declaring_class: type, message: str) -> None:
        super().__init__(message)
        self.property_name = property_name
        self.declaring_class = declaring_class


class InvalidAccessorNameError(ReflectionError, ValueError):
    """A method name was converted to a property name but fits no convention.

    The reflector filters names before converting them, so seeing this error
    means a caller skipped that check.
    """

    def __init__(self, method_name: str) -> None:
        super().__init__(
            f"Error parsing property name '{method_name}'. "
            "Didn't start with 'is', 'get' or 'set'."
        )
        self.method_name = method_name


class UnresolvableGenericsError(ReflectionError, TypeError):
    """A type hint could not be turned into a type expression.

    Typical causes are forward references that cannot be evaluated (for
    example names imported only under ``TYPE_CHECKING``) or annotations that
    are not types at all.

    Attributes:
        hint: The offending annotation, as found on the class or function.
    """

    def __init__(self, hint: Any, message: str | None = None) -> None:
        super().__init__(message or f"Unsupported type expression: {hint!r}")
        self.hint = hint


class NoDefaultConstructorError(ReflectionError):
    """The class cannot be instantiated without arguments."""

    def __init__(self, cls: type) -> None:
        super().__init__(f"There is no default constructor for {cls!r}")
        self.cls = cls


class NoSuchReaderError(ReflectionError, AttributeError):
    """No getter, property or field can read the requested property."""

    def __init__(self, property_name: str, cls: type) -> None:
        super().__init__(
            f"There is no getter for property named '{property_name}' in '{cls!r}'"
        )
        self.property_name = property_name
        self.cls = cls


class NoSuchWriterError(ReflectionError, AttributeError):
    """No setter, property or field can write the requested property."""

    def __init__(self, property_name: str, cls: type) -> None:
        super().__init__(
            f"There is no setter for property named '{property_name}' in '{cls!r}'"
        )
        self.property_name = property_name
        self.cls = cls
