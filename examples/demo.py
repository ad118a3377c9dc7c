#!/usr/bin/env python3
"""Demo: Mapping Result Rows with orm-reflection

This example shows how an object mapper USES orm-reflection: it never
looks at a class by hand, it asks a reflector which properties exist,
how to write them, and which class each value should be converted to.

Run with: python examples/demo.py
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from orm_reflection import MetaClass, ReflectorFactory, invoke

ID = TypeVar("ID")

factory = ReflectorFactory()


# =============================================================================
# PART 1: Record Classes
# =============================================================================
#
# Three styles of record class, all handled the same way:
# - accessor methods (getName / setName, isActive)
# - annotated attributes on a generic base
# - a dataclass nested inside another


class Entity(Generic[ID]):
    """Base class for persisted records; `id` is bound per subclass."""

    id: ID


class Author(Entity[int]):
    """A bean-style record with accessor methods."""

    def __init__(self) -> None:
        self._name = ""
        self._active = False

    def getName(self) -> str:
        return self._name

    def setName(self, name: str) -> None:
        self._name = name

    def isActive(self) -> bool:
        return self._active

    def setActive(self, active: bool) -> None:
        self._active = active

    def __repr__(self) -> str:
        return f"Author(id={self.id!r}, name={self._name!r}, active={self._active!r})"


@dataclass
class Address:
    city: str = ""
    zipCode: Optional[str] = None


@dataclass
class Publisher:
    name: str = ""
    address: Address = None  # type: ignore[assignment]


# =============================================================================
# PART 2: Introspection
# =============================================================================


def demo_introspection() -> None:
    """Print what the reflector discovers for each class."""

    print("=" * 70)
    print("Introspection")
    print("=" * 70)

    for cls in [Author, Address, Publisher]:
        reflector = factory.find_for_class(cls)
        print(f"\n   {cls.__name__}:")
        for name in reflector.readable_property_names():
            access = "rw" if reflector.has_writer(name) else "r "
            print(f"      {access} {name}: {reflector.reader_type(name).__name__}")
        print(f"      default constructor: {reflector.has_default_constructor()}")


# =============================================================================
# PART 3: A Minimal Row Mapper
# =============================================================================


def map_row(cls: type, row: dict[str, Any]) -> Any:
    """Create an instance of `cls` and fill it from a column -> value row.

    Column names are matched ignoring case and underscores, and values are
    converted to the property's class before being written. Dotted column
    names reach into nested objects.
    """
    meta = MetaClass.for_class(cls, factory)
    instance = factory.find_for_class(cls).default_constructor().new_instance()
    for column, value in row.items():
        path = meta.find_property(column, use_camel_case_mapping=True)
        if path is None or not meta.has_setter(path):
            print(f"      (skipping unmapped column {column!r})")
            continue
        _set_path(instance, path, meta.get_setter_type(path)(value))
    return instance


def _set_path(target: Any, path: str, value: Any) -> None:
    *parents, last = path.split(".")
    for name in parents:
        reflector = factory.find_for_class(type(target))
        child = invoke(reflector.get_reader(name), target)
        if child is None:
            child_reflector = factory.find_for_class(reflector.writer_type(name))
            child = child_reflector.default_constructor().new_instance()
            invoke(reflector.get_writer(name), target, child)
        target = child
    reflector = factory.find_for_class(type(target))
    invoke(reflector.get_writer(last), target, value)


def demo_mapping() -> None:
    """Map a few rows as a database driver would hand them over."""

    print("\n" + "=" * 70)
    print("Row Mapping")
    print("=" * 70)

    print("\n   Author row:")
    author = map_row(Author, {"ID": "42", "NAME": "Ada", "ACTIVE": 1, "BIO": "..."})
    print(f"      {author}")

    print("\n   Publisher row with nested columns:")
    publisher = map_row(
        Publisher,
        {"name": "Penguin", "address.city": "London", "ADDRESS.ZIP_CODE": "WC2R"},
    )
    print(f"      {publisher}")


# =============================================================================
# RUN THE DEMO
# =============================================================================

if __name__ == "__main__":
    demo_introspection()
    demo_mapping()
