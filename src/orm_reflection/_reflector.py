"""
The class introspection cache.

A `Reflector` is built once per class and answers, for every property of
that class, how to read it, how to write it, and which class the value has.
Properties come from three sources, in order of precedence:

1. Accessor methods following the naming conventions (``getName``,
   ``isActive``, ``setName`` and their snake_case forms) and `property`
   objects.
2. Annotated attributes and `__slots__`, used for whatever direction no
   method covers.

Members are looked up the way Python looks up attributes: a name declared
on a subclass hides that name everywhere above it, whatever the annotations
say. Several differently named candidates may still claim one property: a
boolean may have both ``isX`` and ``getX``, ``getName`` may sit next to
``get_name``, or setters may take different parameter types. The reflector
settles each property on a single reader and a single writer and raises
`AmbiguousPropertyError` when no rule can choose.

Method accessors are invoked by name on the target, so an override declared
on a subclass of the reflected class still runs.

Example:
    Introspecting a class::

        from orm_reflection import FieldRead, MethodCall, Reflector

        class User:
            id: int

            def getName(self) -> str: ...
            def setName(self, name: str) -> None: ...

        reflector = Reflector(User)
        assert reflector.reader_type("name") is str
        assert isinstance(reflector.get_writer("name"), MethodCall)
        assert isinstance(reflector.get_reader("id"), FieldRead)
        assert reflector.find_property_by_case_insensitive_name("NAME") == "name"
"""

import logging
from typing import NamedTuple

from orm_reflection._accessors import Accessor, FieldRead, FieldWrite, MethodCall
from orm_reflection._errors import (
    AmbiguousPropertyError,
    NoDefaultConstructorError,
    NoSuchReaderError,
    NoSuchWriterError,
)
from orm_reflection._host import (
    Constructor,
    Field,
    Method,
    class_hierarchy,
    declared_fields,
    declared_methods,
    find_default_constructor,
)
from orm_reflection._naming import is_getter, is_setter, method_to_property
from orm_reflection._resolver import TypeResolver
from orm_reflection._types import TypeExpression, type_name, type_to_class

__all__ = [
    "Reflector",
]

logger = logging.getLogger(__name__)


class _Slot(NamedTuple):
    accessor: Accessor
    type: type
    expression: TypeExpression


class _Candidate(NamedTuple):
    method: Method
    expression: TypeExpression
    type: type


class Reflector:
    """Cached property metadata for one class.

    All work happens in the constructor; afterwards the reflector is
    immutable and every query is a pure lookup, so one instance may be shared
    freely between readers.

    Args:
        cls: The class to introspect.

    Raises:
        AmbiguousPropertyError: If two accessors for one property cannot be
            reconciled.
        UnresolvableGenericsError: If a type hint needed to decide a property
            cannot be evaluated.
    """

    def __init__(self, cls: type) -> None:
        self._type = cls
        self._resolver = TypeResolver(cls)
        self._default_constructor = find_default_constructor(cls)
        self._readers: dict[str, _Slot] = {}
        self._writers: dict[str, _Slot] = {}

        methods = self._class_methods(cls)
        self._add_readers(methods)
        self._add_writers(methods)
        self._add_fields(cls)

        self._readable_names = tuple(self._readers)
        self._writable_names = tuple(self._writers)
        self._case_insensitive_names: dict[str, str] = {}
        for name in self._readable_names + self._writable_names:
            self._case_insensitive_names[name.upper()] = name

        logger.debug(
            "Reflected %s: %d readable, %d writable properties",
            type_name(cls),
            len(self._readable_names),
            len(self._writable_names),
        )

    # -- construction -----------------------------------------------------

    def _class_methods(self, cls: type) -> list[Method]:
        # Attribute lookup is by name alone: anything a more derived class
        # declares under a name hides every ancestor member of that name.
        methods: list[Method] = []
        shadowed: set[str] = set()
        for klass in class_hierarchy(cls):
            for method in declared_methods(klass):
                if not method.is_bridge and method.name not in shadowed:
                    methods.append(method)
            shadowed.update(vars(klass))
        return methods

    def _add_readers(self, methods: list[Method]) -> None:
        conflicting: dict[str, list[Method]] = {}
        for method in methods:
            if method.arity != 0:
                continue
            if method.property_name is not None:
                name = method.property_name
            elif is_getter(method.name):
                name = method_to_property(method.name)
            else:
                continue
            conflicting.setdefault(name, []).append(method)

        for name, getters in conflicting.items():
            self._add_reader(name, self._resolve_reader_conflict(name, getters))

    def _resolve_reader_conflict(self, name: str, getters: list[Method]) -> _Candidate:
        winner: _Candidate | None = None
        for method in getters:
            expression = self._resolver.return_type(method)
            candidate = _Candidate(method, expression, type_to_class(expression))
            if winner is None:
                winner = candidate
                continue
            if candidate.type is winner.type:
                if candidate.type is not bool:
                    raise self._ambiguous_reader(name, winner.method)
                if candidate.method.name.startswith("is"):
                    winner = candidate
            elif issubclass(winner.type, candidate.type):
                # The winner already narrows the candidate's return type.
                pass
            elif issubclass(candidate.type, winner.type):
                winner = candidate
            else:
                raise self._ambiguous_reader(name, winner.method)
        assert winner is not None
        return winner

    @staticmethod
    def _ambiguous_reader(name: str, method: Method) -> AmbiguousPropertyError:
        return AmbiguousPropertyError(
            name,
            method.declaring_class,
            f"Illegal overloaded getter method with ambiguous type for property "
            f"'{name}' in class {type_name(method.declaring_class)}. This breaks "
            f"the accessor naming conventions and can cause unpredictable results.",
        )

    def _add_reader(self, name: str, candidate: _Candidate) -> None:
        if _is_valid_property_name(name):
            accessor = _method_call(candidate.method)
            self._readers[name] = _Slot(accessor, candidate.type, candidate.expression)

    def _add_writers(self, methods: list[Method]) -> None:
        conflicting: dict[str, list[Method]] = {}
        for method in methods:
            if method.arity != 1:
                continue
            if method.property_name is not None:
                name = method.property_name
            elif is_setter(method.name):
                name = method_to_property(method.name)
            else:
                continue
            conflicting.setdefault(name, []).append(method)

        for name, setters in conflicting.items():
            self._add_writer(name, self._resolve_writer_conflict(name, setters))

    def _resolve_writer_conflict(self, name: str, setters: list[Method]) -> _Candidate:
        reader = self._readers.get(name)
        match: _Candidate | None = None
        error: AmbiguousPropertyError | None = None
        for method in setters:
            expression = self._resolver.param_types(method)[0]
            candidate = _Candidate(method, expression, type_to_class(expression))
            if reader is not None and candidate.type is reader.type:
                # A setter taking exactly what the getter returns is the best match.
                return candidate
            if error is None:
                try:
                    match = self._pick_better_writer(match, candidate, name)
                except AmbiguousPropertyError as exc:
                    # A later setter may still match the getter exactly.
                    match = None
                    error = exc
        if match is None:
            assert error is not None
            raise error
        return match

    @staticmethod
    def _pick_better_writer(
        current: _Candidate | None, candidate: _Candidate, name: str
    ) -> _Candidate:
        if current is None:
            return candidate
        if issubclass(candidate.type, current.type):
            return candidate
        if issubclass(current.type, candidate.type):
            return current
        raise AmbiguousPropertyError(
            name,
            candidate.method.declaring_class,
            f"Ambiguous setters defined for property '{name}' in class "
            f"'{type_name(candidate.method.declaring_class)}' with types "
            f"'{type_name(current.type)}' and '{type_name(candidate.type)}'.",
        )

    def _add_writer(self, name: str, candidate: _Candidate) -> None:
        if _is_valid_property_name(name):
            accessor = _method_call(candidate.method)
            self._writers[name] = _Slot(accessor, candidate.type, candidate.expression)

    def _add_fields(self, cls: type) -> None:
        for klass in class_hierarchy(cls):
            for field in declared_fields(klass):
                if field.name not in self._writers and not (field.is_final and field.is_static):
                    self._add_field_writer(field)
                if field.name not in self._readers:
                    self._add_field_reader(field)

    def _add_field_writer(self, field: Field) -> None:
        if _is_valid_property_name(field.name):
            expression = self._resolver.field_type(field)
            accessor = FieldWrite(
                field.name, field.declaring_class, static=field.is_static, final=field.is_final
            )
            self._writers[field.name] = _Slot(accessor, type_to_class(expression), expression)
            logger.debug("Field fallback for writing %s.%s", type_name(self._type), field.name)

    def _add_field_reader(self, field: Field) -> None:
        if _is_valid_property_name(field.name):
            expression = self._resolver.field_type(field)
            accessor = FieldRead(field.name, field.declaring_class, static=field.is_static)
            self._readers[field.name] = _Slot(accessor, type_to_class(expression), expression)
            logger.debug("Field fallback for reading %s.%s", type_name(self._type), field.name)

    # -- queries ----------------------------------------------------------

    @staticmethod
    def can_control_member_accessible() -> bool:
        """Check whether reflected members may bypass access restrictions.

        Python enforces no access control on attributes; leading underscores
        are a convention only. The probe is advisory and always True.
        """
        return True

    def get_type(self) -> type:
        """Return the class this reflector describes."""
        return self._type

    def has_default_constructor(self) -> bool:
        return self._default_constructor is not None

    def default_constructor(self) -> Constructor:
        """Return the zero-argument constructor.

        Raises:
            NoDefaultConstructorError: If the class needs constructor arguments.
        """
        if self._default_constructor is None:
            raise NoDefaultConstructorError(self._type)
        return self._default_constructor

    def get_reader(self, property_name: str) -> Accessor:
        """Return the accessor that reads `property_name`.

        Raises:
            NoSuchReaderError: If the property cannot be read.
        """
        return self._reader(property_name).accessor

    def get_writer(self, property_name: str) -> Accessor:
        """Return the accessor that writes `property_name`.

        Raises:
            NoSuchWriterError: If the property cannot be written.
        """
        return self._writer(property_name).accessor

    def reader_type(self, property_name: str) -> type:
        """Return the class of the value read from `property_name`.

        Raises:
            NoSuchReaderError: If the property cannot be read.
        """
        return self._reader(property_name).type

    def writer_type(self, property_name: str) -> type:
        """Return the class of the value expected by `property_name`'s writer.

        Raises:
            NoSuchWriterError: If the property cannot be written.
        """
        return self._writer(property_name).type

    def reader_type_expression(self, property_name: str) -> TypeExpression:
        """Return the resolved, uncollapsed type read from `property_name`."""
        return self._reader(property_name).expression

    def writer_type_expression(self, property_name: str) -> TypeExpression:
        """Return the resolved, uncollapsed type written to `property_name`."""
        return self._writer(property_name).expression

    def readable_property_names(self) -> list[str]:
        """Return the names of all readable properties.

        The order is fixed for the reflector's lifetime; each call returns a
        new list.
        """
        return list(self._readable_names)

    def writable_property_names(self) -> list[str]:
        """Return the names of all writable properties (see `readable_property_names`)."""
        return list(self._writable_names)

    def has_reader(self, property_name: str) -> bool:
        return property_name in self._readers

    def has_writer(self, property_name: str) -> bool:
        return property_name in self._writers

    def find_property_by_case_insensitive_name(self, name: str) -> str | None:
        """Return the declared spelling of a property, matched ignoring case.

        If two properties differ only in case, the writable one (or, among
        readable ones, the last discovered) is returned.
        """
        return self._case_insensitive_names.get(name.upper())

    def _reader(self, property_name: str) -> _Slot:
        slot = self._readers.get(property_name)
        if slot is None:
            raise NoSuchReaderError(property_name, self._type)
        return slot

    def _writer(self, property_name: str) -> _Slot:
        slot = self._writers.get(property_name)
        if slot is None:
            raise NoSuchWriterError(property_name, self._type)
        return slot

    def __repr__(self) -> str:
        return f"<Reflector {type_name(self._type)}>"


def _is_valid_property_name(name: str) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return False
    return not (name.startswith("$") or name == "serialVersionUID" or name == "class")


def _method_call(method: Method) -> MethodCall:
    return MethodCall(method.function, method.name, descriptor=method.property_name is not None)
