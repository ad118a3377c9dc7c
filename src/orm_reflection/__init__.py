"""
orm-reflection: Class introspection cache for object mappers.

An object mapper needs to treat arbitrary record classes as uniform bags of
named, typed slots: it reads columns into properties and properties into
statement parameters without knowing anything about the class beforehand.
This package builds that view once per class and answers every later
question with a lookup.

Overview:
    The central type is `Reflector`, which discovers for a class:

    - Readable properties: getters (``getName``, ``isActive``,
      ``get_name``), `property` getters, and annotated attributes.
    - Writable properties: setters (``setName``, ``set_name``), `property`
      setters, and annotated attributes that are not class-level constants.
    - The resolved class of each property, with generic parameters such as
      ``Repository[User]`` substituted through the inheritance chain.
    - A case-insensitive index of property names for column matching.
    - The zero-argument constructor, if any.

    Around it:

    - `ReflectorFactory` / `get_reflector`: one cached reflector per class.
    - `MetaClass`: follows dotted paths such as ``order.lines[0].product``.
    - `invoke`: runs the `MethodCall`, `FieldRead` or `FieldWrite` binding
      a reflector hands out.

Quick Start:
    Introspecting a class::

        from dataclasses import dataclass
        from orm_reflection import get_reflector, invoke

        @dataclass
        class Author:
            id: int
            name: str

            def isActive(self) -> bool:
                return True

        reflector = get_reflector(Author)
        reflector.readable_property_names()   # ['active', 'id', 'name']
        reflector.writable_property_names()   # ['id', 'name']
        reflector.reader_type("active")       # <class 'bool'>
        reflector.find_property_by_case_insensitive_name("NAME")  # 'name'

        author = Author(1, "Ada")
        invoke(reflector.get_reader("name"), author)  # 'Ada'

Conflicts:
    When several accessors claim one property the reflector settles on one
    per direction: a narrower return type beats a wider one, ``isX`` beats
    ``getX`` for booleans, a setter matching the getter's type beats other
    setters, and a narrower setter parameter beats a wider one. Anything
    else raises `AmbiguousPropertyError` when the reflector is built.

Thread Safety:
    A built `Reflector` is immutable and may be shared. `ReflectorFactory`
    does no locking of its own.
"""

from orm_reflection._accessors import (
    Accessor,
    FieldRead,
    FieldWrite,
    MethodCall,
    invoke,
)
from orm_reflection._errors import (
    AmbiguousPropertyError,
    InvalidAccessorNameError,
    NoDefaultConstructorError,
    NoSuchReaderError,
    NoSuchWriterError,
    ReflectionError,
    UnresolvableGenericsError,
)
from orm_reflection._factory import ReflectorFactory, get_reflector
from orm_reflection._host import Constructor
from orm_reflection._meta import MetaClass, PropertyTokenizer
from orm_reflection._naming import (
    is_getter,
    is_property,
    is_setter,
    method_to_property,
)
from orm_reflection._reflector import Reflector
from orm_reflection._resolver import (
    TypeResolver,
    resolve_field_type,
    resolve_param_types,
    resolve_return_type,
)
from orm_reflection._types import (
    ArrayType,
    ClassType,
    ParameterizedType,
    TypeExpression,
    TypeVariable,
    WildcardType,
    parse_type,
    type_to_class,
)

__all__ = [
    # Introspection cache
    "Reflector",
    "ReflectorFactory",
    "get_reflector",
    "Constructor",
    # Path navigation
    "MetaClass",
    "PropertyTokenizer",
    # Accessors
    "Accessor",
    "MethodCall",
    "FieldRead",
    "FieldWrite",
    "invoke",
    # Naming conventions
    "method_to_property",
    "is_property",
    "is_getter",
    "is_setter",
    # Type expressions
    "TypeExpression",
    "ClassType",
    "ParameterizedType",
    "ArrayType",
    "WildcardType",
    "TypeVariable",
    "parse_type",
    "type_to_class",
    "TypeResolver",
    "resolve_return_type",
    "resolve_param_types",
    "resolve_field_type",
    # Errors
    "ReflectionError",
    "AmbiguousPropertyError",
    "InvalidAccessorNameError",
    "UnresolvableGenericsError",
    "NoDefaultConstructorError",
    "NoSuchReaderError",
    "NoSuchWriterError",
]

__version__ = "0.1.0"
