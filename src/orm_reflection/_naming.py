"""
Naming conventions that map accessor methods to property names.

A zero-argument method named ``getName``/``isActive`` reads a property, a
one-argument method named ``setName`` writes it. The snake_case spellings
``get_name``, ``is_active`` and ``set_name`` map to the same properties.

Example::

    from orm_reflection import method_to_property

    assert method_to_property("getFirstName") == "firstName"
    assert method_to_property("is_active") == "active"
"""

from orm_reflection._errors import InvalidAccessorNameError

__all__ = [
    "method_to_property",
    "is_property",
    "is_getter",
    "is_setter",
]


def method_to_property(name: str) -> str:
    """Convert an accessor method name to its property name.

    The ``get``/``set``/``is`` prefix is removed, along with one underscore
    directly after it, and the first remaining character is lower-cased.
    All other characters keep their case.

    Args:
        name: A method name that satisfies `is_getter` or `is_setter`.

    Returns:
        The property name, e.g. ``"name"`` for ``"getName"``.

    Raises:
        InvalidAccessorNameError: If the name has no accessor prefix or
            nothing is left after removing it.
    """
    if name.startswith("is"):
        remainder = name[2:]
    elif name.startswith("get") or name.startswith("set"):
        remainder = name[3:]
    else:
        raise InvalidAccessorNameError(name)

    if remainder.startswith("_"):
        remainder = remainder[1:]
    if not remainder:
        raise InvalidAccessorNameError(name)

    return remainder[0].lower() + remainder[1:]


def is_property(name: str) -> bool:
    """Return True if the name looks like either a getter or a setter."""
    return is_getter(name) or is_setter(name)


def is_getter(name: str) -> bool:
    """Return True for ``get...`` names longer than 3 and ``is...`` longer than 2.

    A bare prefix followed by a single underscore (``get_``) is not a getter.
    """
    return bool(_suffix(name, "get") or _suffix(name, "is"))


def is_setter(name: str) -> bool:
    """Return True for ``set...`` names longer than 3."""
    return bool(_suffix(name, "set"))


def _suffix(name: str, prefix: str) -> str:
    if not name.startswith(prefix):
        return ""
    remainder = name[len(prefix):]
    if remainder.startswith("_"):
        remainder = remainder[1:]
    return remainder
