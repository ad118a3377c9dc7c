"""Tests for the Reflector introspection cache."""

import functools
import logging
import sys
from dataclasses import InitVar, dataclass
from typing import ClassVar, Final, Generic, Optional, TypeVar

import pytest

from orm_reflection import (
    AmbiguousPropertyError,
    ClassType,
    FieldRead,
    FieldWrite,
    MethodCall,
    NoDefaultConstructorError,
    NoSuchReaderError,
    NoSuchWriterError,
    ParameterizedType,
    Reflector,
    UnresolvableGenericsError,
    invoke,
)

ID = TypeVar("ID")


class TestScenarios:
    """The reference scenarios for accessor discovery."""

    def test_getter_and_setter(self) -> None:
        """A getName/setName pair should give a readable, writable str."""

        class User:
            def getName(self) -> str: ...

            def setName(self, name: str) -> None: ...

        reflector = Reflector(User)
        assert reflector.readable_property_names() == ["name"]
        assert reflector.writable_property_names() == ["name"]
        assert reflector.get_reader("name") == MethodCall(User.getName, "getName")
        assert reflector.get_writer("name") == MethodCall(User.setName, "setName")
        assert reflector.reader_type("name") is str
        assert reflector.writer_type("name") is str

    def test_is_beats_get_for_bool(self) -> None:
        """isActive should win over getActive whichever comes first."""

        class IsFirst:
            def isActive(self) -> bool: ...

            def getActive(self) -> bool: ...

        class GetFirst:
            def getActive(self) -> bool: ...

            def isActive(self) -> bool: ...

        for cls in (IsFirst, GetFirst):
            reflector = Reflector(cls)
            assert reflector.get_reader("active") == MethodCall(cls.isActive, "isActive")
            assert reflector.reader_type("active") is bool

    def test_covariant_override(self) -> None:
        """A subclass narrowing the return type should win."""

        class ItemList(list):
            pass

        class Parent:
            def getItems(self) -> list[object]: ...

        class Child(Parent):
            def getItems(self) -> ItemList: ...

        reflector = Reflector(Child)
        assert reflector.get_reader("items") == MethodCall(Child.getItems, "getItems")
        assert reflector.reader_type("items") is ItemList

    def test_bare_field(self) -> None:
        """An annotated attribute should be read and written directly."""

        class Counter:
            count: int

        reflector = Reflector(Counter)
        assert reflector.get_reader("count") == FieldRead("count", Counter)
        assert reflector.get_writer("count") == FieldWrite("count", Counter)
        assert reflector.reader_type("count") is int
        assert reflector.writer_type("count") is int

    def test_static_final_is_read_only(self) -> None:
        """A class-level Final constant should only be readable."""

        class Versioned:
            VERSION: Final = "1.0"

        reflector = Reflector(Versioned)
        assert not reflector.has_writer("VERSION")
        assert reflector.has_reader("VERSION")
        assert reflector.get_reader("VERSION") == FieldRead("VERSION", Versioned, static=True)
        assert reflector.reader_type("VERSION") is str

    def test_unrelated_setters_are_ambiguous(self) -> None:
        """Setters with unrelated parameter types and no getter should fail."""

        class Point:
            def setX(self, x: int) -> None: ...

            def set_x(self, x: str) -> None: ...

        with pytest.raises(AmbiguousPropertyError) as excinfo:
            Reflector(Point)
        assert excinfo.value.property_name == "x"
        assert excinfo.value.declaring_class is Point
        assert "'x'" in str(excinfo.value)


class TestReaderConflicts:
    """Tests for choosing between several getters."""

    def test_same_type_is_ambiguous(self) -> None:
        """Two non-boolean getters with one type should fail."""

        class Twice:
            def getName(self) -> str: ...

            def get_name(self) -> str: ...

        with pytest.raises(AmbiguousPropertyError) as excinfo:
            Reflector(Twice)
        assert excinfo.value.property_name == "name"

    def test_unrelated_types_are_ambiguous(self) -> None:
        """Getters with unrelated return types should fail."""

        class Mixed:
            def getName(self) -> str: ...

            def get_name(self) -> bytes: ...

        with pytest.raises(AmbiguousPropertyError):
            Reflector(Mixed)

    def test_narrower_spelling_wins(self) -> None:
        """Between two spellings, the narrower return type should win."""

        class Parent:
            def get_value(self) -> bool: ...

        class Child(Parent):
            def getValue(self) -> int: ...

        reflector = Reflector(Child)
        assert reflector.get_reader("value") == MethodCall(Parent.get_value, "get_value")
        assert reflector.reader_type("value") is bool

    def test_override_hides_inherited(self) -> None:
        """An override should replace the inherited getter even when wider."""

        class Parent:
            def getValue(self) -> bool: ...

        class Child(Parent):
            def getValue(self) -> int: ...

        reflector = Reflector(Child)
        assert reflector.get_reader("value") == MethodCall(Child.getValue, "getValue")
        assert reflector.reader_type("value") is int

    def test_identical_override_deduplicated(self) -> None:
        """A verbatim override should hide the inherited method."""

        class Parent:
            def getName(self) -> str: ...

        class Child(Parent):
            def getName(self) -> str: ...

        reflector = Reflector(Child)
        assert reflector.get_reader("name") == MethodCall(Child.getName, "getName")


class TestWriterConflicts:
    """Tests for choosing between several setters."""

    def test_getter_type_match_wins(self) -> None:
        """The setter taking the getter's type should be chosen."""

        class Amount:
            def getValue(self) -> int: ...

            def setValue(self, value: object) -> None: ...

            def set_value(self, value: int) -> None: ...

        reflector = Reflector(Amount)
        assert reflector.get_writer("value") == MethodCall(Amount.set_value, "set_value")
        assert reflector.writer_type("value") is int

    def test_getter_type_match_overrides_ambiguity(self) -> None:
        """A later exact match should rescue an ambiguous bucket."""

        class Parent:
            def _store(self, value: int) -> None: ...

            value = property(fset=_store)

        class Child(Parent):
            def getValue(self) -> int: ...

            def setValue(self, value: str) -> None: ...

            def set_value(self, value: bytes) -> None: ...

        reflector = Reflector(Child)
        assert reflector.get_writer("value") == MethodCall(
            Parent._store, "value", descriptor=True
        )

    def test_narrower_setter_wins(self) -> None:
        """Without a getter, the narrower parameter type should be chosen."""

        class Loose:
            def setValue(self, value: object) -> None: ...

            def set_value(self, value: int) -> None: ...

        reflector = Reflector(Loose)
        assert reflector.get_writer("value") == MethodCall(Loose.set_value, "set_value")
        assert not reflector.has_reader("value")


class TestFields:
    """Tests for field fallbacks."""

    def test_method_beats_field(self) -> None:
        """A getter should take precedence over a same-named field."""

        class Person:
            name: str

            def getName(self) -> str: ...

        reflector = Reflector(Person)
        assert isinstance(reflector.get_reader("name"), MethodCall)
        assert reflector.get_writer("name") == FieldWrite("name", Person)

    def test_subclass_field_wins(self) -> None:
        """A redeclared annotation in a subclass should win."""

        class Base:
            value: object

        class Derived(Base):
            value: int

        reflector = Reflector(Derived)
        assert reflector.reader_type("value") is int
        assert reflector.get_reader("value") == FieldRead("value", Derived)

    def test_inherited_fields(self) -> None:
        """Fields of every ancestor should be collected."""

        class Base:
            id: int

        class Derived(Base):
            name: str

        reflector = Reflector(Derived)
        assert reflector.readable_property_names() == ["name", "id"]

    def test_class_var_is_writable(self) -> None:
        """A non-final class variable should be writable on the class."""

        class Settings:
            retries: ClassVar[int] = 3

        reflector = Reflector(Settings)
        assert reflector.get_writer("retries") == FieldWrite("retries", Settings, static=True)
        assert reflector.writer_type("retries") is int

    def test_final_instance_field_is_writable(self) -> None:
        """A Final attribute without class value should stay writable."""

        class Token:
            value: Final[str]

        reflector = Reflector(Token)
        assert reflector.get_writer("value") == FieldWrite("value", Token, final=True)

    def test_frozen_dataclass_fields_are_final(self) -> None:
        """Frozen dataclass fields should be marked final."""

        @dataclass(frozen=True)
        class Frozen:
            value: int = 0

        reflector = Reflector(Frozen)
        assert reflector.get_writer("value") == FieldWrite("value", Frozen, final=True)

    def test_slots(self) -> None:
        """Unannotated slots should be untyped fields."""

        class Slotted:
            __slots__ = ("x", "y")
            x: int

        reflector = Reflector(Slotted)
        assert reflector.reader_type("x") is int
        assert reflector.reader_type("y") is object

    def test_init_var_skipped(self) -> None:
        """Dataclass InitVar pseudo-fields should not be properties."""

        @dataclass
        class WithSecret:
            name: str
            secret: InitVar[str]

            def __post_init__(self, secret: str) -> None: ...

        reflector = Reflector(WithSecret)
        assert reflector.readable_property_names() == ["name"]

    def test_generic_field(self) -> None:
        """Field types should be resolved through generic bases."""

        class Entity(Generic[ID]):
            id: ID

            def getId(self) -> ID: ...

        class User(Entity[int]):
            pass

        reflector = Reflector(User)
        assert reflector.reader_type("id") is int
        assert reflector.writer_type("id") is int
        assert isinstance(reflector.get_reader("id"), MethodCall)
        assert reflector.get_writer("id") == FieldWrite("id", Entity)


class TestMemberKinds:
    """Tests for the kinds of members considered as accessors."""

    def test_properties(self) -> None:
        """property getters and setters should be accessors."""

        class Temperature:
            @property
            def celsius(self) -> float: ...

            @celsius.setter
            def celsius(self, value: float) -> None: ...

            @property
            def kelvin(self) -> float: ...

        reflector = Reflector(Temperature)
        assert reflector.readable_property_names() == ["celsius", "kelvin"]
        assert reflector.writable_property_names() == ["celsius"]
        assert reflector.reader_type("kelvin") is float
        accessor = reflector.get_writer("celsius")
        assert isinstance(accessor, MethodCall)
        assert accessor.function is Temperature.celsius.fset

    def test_aliases_are_ignored(self) -> None:
        """A function bound under a second name should not add a property."""

        class Aliased:
            def getName(self) -> str: ...

            getTitle = getName

        reflector = Reflector(Aliased)
        assert reflector.readable_property_names() == ["name"]

    def test_static_and_class_methods_ignored(self) -> None:
        """Accessors must receive the instance."""

        class Helpers:
            @staticmethod
            def getVersion() -> str: ...

            @classmethod
            def getKind(cls) -> str: ...

        assert Reflector(Helpers).readable_property_names() == []

    def test_arity_filters(self) -> None:
        """Getters take no argument and setters exactly one."""

        class Odd:
            def getValue(self, key: str) -> int: ...

            def setValue(self, key: str, value: int) -> None: ...

        reflector = Reflector(Odd)
        assert reflector.readable_property_names() == []
        assert reflector.writable_property_names() == []

    def test_reserved_names(self) -> None:
        """class and dunder names are never properties."""

        class Reserved:
            def getClass(self) -> type: ...

        assert not Reflector(Reserved).has_reader("class")

    def test_unrelated_bad_annotation(self) -> None:
        """Unresolvable hints on non-accessors should not matter."""

        class Service:
            def process(self, item: "NotDefinedAnywhere") -> None: ...  # noqa: F821

            def getName(self) -> str: ...

        assert Reflector(Service).reader_type("name") is str

    def test_accessor_bad_annotation(self) -> None:
        """Unresolvable hints on accessors should fail construction."""

        class Broken:
            def getThing(self) -> "NotDefinedAnywhere": ...  # noqa: F821

        with pytest.raises(UnresolvableGenericsError):
            Reflector(Broken)

    def test_inherited_only(self) -> None:
        """Properties of a superclass should appear on a bare subclass."""

        class Parent:
            def getName(self) -> str: ...

            def setName(self, name: str) -> None: ...

        class Child(Parent):
            pass

        reflector = Reflector(Child)
        assert reflector.readable_property_names() == ["name"]
        assert reflector.writable_property_names() == ["name"]

    def test_generic_method_types(self) -> None:
        """Method types should be resolved through generic bases."""

        class Repository(Generic[ID]):
            def getIds(self) -> list[ID]: ...

        class IntRepository(Repository[int]):
            pass

        reflector = Reflector(IntRepository)
        assert reflector.reader_type("ids") is list
        assert reflector.reader_type_expression("ids") == ParameterizedType(
            list, (ClassType(int),)
        )

    def test_bounded_type_var(self) -> None:
        """An unbound variable should collapse to its bound."""

        class Animal:
            pass

        A = TypeVar("A", bound=Animal)

        class Cage(Generic[A]):
            def getOccupant(self) -> A: ...

        assert Reflector(Cage).reader_type("occupant") is Animal


class TestOverrides:
    """Tests for overrides and dispatch through accessors."""

    def test_unannotated_override(self) -> None:
        """Overrides without annotations should still be the ones invoked."""

        class Base:
            def __init__(self) -> None:
                self.value = ""

            def getName(self) -> str:
                return "base"

            def setName(self, name: str) -> None:
                self.value = "base"

        class Child(Base):
            def getName(self):  # type: ignore[no-untyped-def]
                return "child"

            def setName(self, name):  # type: ignore[no-untyped-def]
                self.value = name

        reflector = Reflector(Child)
        child = Child()
        assert reflector.get_reader("name") == MethodCall(Child.getName, "getName")
        assert invoke(reflector.get_reader("name"), child) == "child"
        invoke(reflector.get_writer("name"), child, "ada")
        assert child.value == "ada"

    def test_differently_spelled_annotations(self) -> None:
        """A string annotation and its evaluated form should not conflict."""

        class Base:
            def getTags(self) -> "Optional[str]": ...

        class Child(Base):
            def getTags(self) -> Optional[str]: ...

        reflector = Reflector(Child)
        assert reflector.get_reader("tags") == MethodCall(Child.getTags, "getTags")
        assert reflector.reader_type("tags") is str

    def test_dispatch_to_subclass_instance(self) -> None:
        """Accessors from a base reflector should reach subclass overrides."""

        class Base:
            def getKind(self) -> str:
                return "base"

        class Special(Base):
            def getKind(self) -> str:
                return "special"

        assert invoke(Reflector(Base).get_reader("kind"), Special()) == "special"

    def test_shadowed_by_attribute(self) -> None:
        """A subclass attribute should hide an inherited accessor of that name."""

        class Base:
            def getName(self) -> str: ...

        class Child(Base):
            getName = None

        assert not Reflector(Child).has_reader("name")

    def test_cached_property(self) -> None:
        """Reading a cached_property should go through its cache."""
        calls = []

        class Report:
            @functools.cached_property
            def total(self) -> int:
                calls.append(1)
                return 42

        reflector = Reflector(Report)
        accessor = reflector.get_reader("total")
        report = Report()
        assert invoke(accessor, report) == 42
        assert invoke(accessor, report) == 42
        assert len(calls) == 1
        assert reflector.reader_type("total") is int
        assert not reflector.has_writer("total")

    @pytest.mark.skipif(sys.version_info < (3, 11), reason="typing.Self needs Python 3.11")
    def test_self_return_type(self) -> None:
        """Self should resolve to the class being reflected."""
        from typing import Self

        class Node:
            def getParent(self) -> Self: ...

            def setParent(self, parent: Self) -> None: ...

        class Leaf(Node):
            pass

        assert Reflector(Node).reader_type("parent") is Node
        assert Reflector(Node).writer_type("parent") is Node
        assert Reflector(Leaf).reader_type("parent") is Leaf


class TestConstructor:
    """Tests for default constructor discovery."""

    def test_implicit(self) -> None:
        """A class without __init__ has a default constructor."""

        class Empty:
            pass

        reflector = Reflector(Empty)
        assert reflector.has_default_constructor()
        assert isinstance(reflector.default_constructor().new_instance(), Empty)

    def test_defaults(self) -> None:
        """An __init__ whose parameters all have defaults qualifies."""

        class Defaults:
            def __init__(self, size: int = 3) -> None:
                self.size = size

        instance = Reflector(Defaults).default_constructor().new_instance()
        assert instance.size == 3

    def test_missing(self) -> None:
        """Required constructor arguments rule out a default constructor."""

        class NeedsArgs:
            def __init__(self, size: int) -> None: ...

        reflector = Reflector(NeedsArgs)
        assert not reflector.has_default_constructor()
        with pytest.raises(NoDefaultConstructorError):
            reflector.default_constructor()


class TestQueries:
    """Tests for the query surface."""

    class Account:
        id: int

        def getOwner(self) -> str: ...

        def setBalance(self, balance: float) -> None: ...

    def test_get_type(self) -> None:
        """get_type should return the introspected class."""
        assert Reflector(self.Account).get_type() is self.Account

    def test_has_reader_writer(self) -> None:
        """Directions should be reported independently."""
        reflector = Reflector(self.Account)
        assert reflector.has_reader("owner")
        assert not reflector.has_writer("owner")
        assert reflector.has_writer("balance")
        assert not reflector.has_reader("balance")

    def test_missing_reader(self) -> None:
        """Unknown readers should raise NoSuchReaderError."""
        reflector = Reflector(self.Account)
        with pytest.raises(NoSuchReaderError) as excinfo:
            reflector.get_reader("balance")
        assert excinfo.value.property_name == "balance"
        with pytest.raises(AttributeError):
            reflector.reader_type("missing")

    def test_missing_writer(self) -> None:
        """Unknown writers should raise NoSuchWriterError."""
        reflector = Reflector(self.Account)
        with pytest.raises(NoSuchWriterError):
            reflector.get_writer("owner")
        with pytest.raises(NoSuchWriterError):
            reflector.writer_type("owner")

    def test_names_are_snapshots(self) -> None:
        """Mutating a returned name list should not affect the reflector."""
        reflector = Reflector(self.Account)
        names = reflector.readable_property_names()
        names.append("bogus")
        assert reflector.readable_property_names() == ["owner", "id"]

    def test_case_insensitive_lookup(self) -> None:
        """Property names should be found ignoring case."""
        reflector = Reflector(self.Account)
        assert reflector.find_property_by_case_insensitive_name("OWNER") == "owner"
        assert reflector.find_property_by_case_insensitive_name("Balance") == "balance"
        assert reflector.find_property_by_case_insensitive_name("missing") is None

    def test_case_insensitive_collision(self) -> None:
        """Colliding spellings should resolve to one of them, stably."""

        class Shouty:
            foo: int
            FOO: str

        first = Reflector(Shouty).find_property_by_case_insensitive_name("foo")
        second = Reflector(Shouty).find_property_by_case_insensitive_name("foo")
        assert first == second == "FOO"

    def test_case_insensitive_round_trip(self) -> None:
        """Every property should be found by its upper-cased name."""
        reflector = Reflector(self.Account)
        names = reflector.readable_property_names() + reflector.writable_property_names()
        for name in names:
            found = reflector.find_property_by_case_insensitive_name(name.upper())
            assert found is not None
            assert found.upper() == name.upper()

    def test_idempotent(self) -> None:
        """Two reflectors for one class should agree."""
        first = Reflector(self.Account)
        second = Reflector(self.Account)
        for name in first.readable_property_names():
            assert first.get_reader(name) == second.get_reader(name)
            assert first.reader_type(name) is second.reader_type(name)
        assert first.writable_property_names() == second.writable_property_names()

    def test_member_access_probe(self) -> None:
        """Python never restricts reflective access."""
        assert Reflector.can_control_member_accessible() is True

    def test_logs_summary(self, caplog: pytest.LogCaptureFixture) -> None:
        """Construction should log a debug summary."""
        caplog.set_level(logging.DEBUG, logger="orm_reflection")
        Reflector(self.Account)
        assert any("2 readable, 2 writable" in r.getMessage() for r in caplog.records)
