"""
Navigation of dotted property paths across classes.

Result mappings address nested values with paths such as ``order.customer.name``
or ``order.lines[0].product``. `PropertyTokenizer` splits such a path into
segments and `MetaClass` follows it from class to class, re-entering the
reflector of each property's resolved type.

Example:
    Following a path through annotated classes::

        from dataclasses import dataclass
        from orm_reflection import MetaClass, ReflectorFactory

        @dataclass
        class Customer:
            name: str

        @dataclass
        class Order:
            customer: Customer
            lines: list[Customer]

        meta = MetaClass.for_class(Order, ReflectorFactory())
        assert meta.get_getter_type("customer.name") is str
        assert meta.get_getter_type("lines[0]") is Customer
        assert meta.find_property("CUSTOMER.NAME") == "customer.name"
"""

from collections.abc import Collection, Iterator, Mapping

from orm_reflection._accessors import Accessor
from orm_reflection._factory import ReflectorFactory
from orm_reflection._types import ArrayType, ParameterizedType, TypeExpression, type_to_class

__all__ = [
    "PropertyTokenizer",
    "MetaClass",
]


class PropertyTokenizer:
    """The first segment of a dotted property path.

    Attributes:
        name: The segment's property name, without any index.
        index: The text between brackets (``"0"`` for ``lines[0]``), or None.
        indexed_name: The segment as written, index included.
        children: The rest of the path after the first dot, or None.
    """

    def __init__(self, full_name: str) -> None:
        name, dot, children = full_name.partition(".")
        self.children: str | None = children if dot else None
        self.indexed_name = name
        bracket = name.find("[")
        if bracket > -1:
            self.index: str | None = name[bracket + 1 : -1]
            self.name = name[:bracket]
        else:
            self.index = None
            self.name = name

    def has_next(self) -> bool:
        return self.children is not None

    def __iter__(self) -> Iterator["PropertyTokenizer"]:
        """Yield this segment and every following one."""
        token = self
        yield token
        while token.children is not None:
            token = PropertyTokenizer(token.children)
            yield token

    def __repr__(self) -> str:
        return f"PropertyTokenizer({self.indexed_name!r}, children={self.children!r})"


class MetaClass:
    """Path-aware view of a class's properties.

    Use `MetaClass.for_class` rather than the constructor; both take the
    factory whose cached reflectors the navigation reuses.
    """

    def __init__(self, cls: type, reflector_factory: ReflectorFactory) -> None:
        self._reflector_factory = reflector_factory
        self._reflector = reflector_factory.find_for_class(cls)

    @classmethod
    def for_class(cls, type_: type, reflector_factory: ReflectorFactory) -> "MetaClass":
        return cls(type_, reflector_factory)

    def meta_class_for_property(self, name: str) -> "MetaClass":
        """Return the `MetaClass` of the type read from property `name`."""
        return MetaClass.for_class(self._reflector.reader_type(name), self._reflector_factory)

    def find_property(self, name: str, use_camel_case_mapping: bool = False) -> str | None:
        """Resolve a dotted path to its declared spelling, ignoring case.

        Args:
            name: The path, e.g. ``"ORDER.customer_name"``.
            use_camel_case_mapping: Drop underscores before matching, so
                ``customer_name`` finds ``customerName``.

        Returns:
            The path in declared casing, or None if a segment is unknown.
        """
        if use_camel_case_mapping:
            name = name.replace("_", "")
        return self._build_property(name)

    def _build_property(self, name: str) -> str | None:
        prop = PropertyTokenizer(name)
        property_name = self._reflector.find_property_by_case_insensitive_name(prop.name)
        if property_name is None:
            return None
        if prop.children is None:
            return property_name
        if not self._reflector.has_reader(property_name):
            return None
        child = self.meta_class_for_property(property_name)._build_property(prop.children)
        if child is None:
            return None
        return f"{property_name}.{child}"

    def get_getter_names(self) -> list[str]:
        return self._reflector.readable_property_names()

    def get_setter_names(self) -> list[str]:
        return self._reflector.writable_property_names()

    def get_setter_type(self, name: str) -> type:
        """Return the class a path's final writer expects.

        Raises:
            NoSuchReaderError: If an intermediate segment cannot be read.
            NoSuchWriterError: If the final segment cannot be written.
        """
        prop = PropertyTokenizer(name)
        if prop.children is not None:
            return self._meta_class_for_token(prop).get_setter_type(prop.children)
        return self._reflector.writer_type(prop.name)

    def get_getter_type(self, name: str) -> type:
        """Return the class a path's final reader produces.

        An indexed segment (``lines[0]``) over a parameterized collection
        yields the element class; over a mapping, the value class.

        Raises:
            NoSuchReaderError: If a segment cannot be read.
        """
        prop = PropertyTokenizer(name)
        if prop.children is not None:
            return self._meta_class_for_token(prop).get_getter_type(prop.children)
        return self._token_type(prop)

    def _meta_class_for_token(self, prop: PropertyTokenizer) -> "MetaClass":
        return MetaClass.for_class(self._token_type(prop), self._reflector_factory)

    def _token_type(self, prop: PropertyTokenizer) -> type:
        cls = self._reflector.reader_type(prop.name)
        if prop.index is None:
            return cls
        element = _element_expression(cls, self._reflector.reader_type_expression(prop.name))
        return cls if element is None else type_to_class(element)

    def has_setter(self, name: str) -> bool:
        prop = PropertyTokenizer(name)
        if prop.children is None:
            return self._reflector.has_writer(prop.name)
        if not self._reflector.has_reader(prop.name):
            return False
        return self._meta_class_for_token(prop).has_setter(prop.children)

    def has_getter(self, name: str) -> bool:
        prop = PropertyTokenizer(name)
        if prop.children is None:
            return self._reflector.has_reader(prop.name)
        if not self._reflector.has_reader(prop.name):
            return False
        return self._meta_class_for_token(prop).has_getter(prop.children)

    def get_reader(self, name: str) -> Accessor:
        return self._reflector.get_reader(name)

    def get_writer(self, name: str) -> Accessor:
        return self._reflector.get_writer(name)

    def has_default_constructor(self) -> bool:
        return self._reflector.has_default_constructor()


def _element_expression(cls: type, expression: TypeExpression) -> TypeExpression | None:
    if isinstance(expression, ArrayType):
        return expression.component
    if not isinstance(expression, ParameterizedType):
        return None
    if issubclass(cls, Mapping) and len(expression.args) == 2:
        return expression.args[1]
    if issubclass(cls, Collection) and len(expression.args) == 1:
        return expression.args[0]
    return None
