"""
Generic type resolution against a concrete class.

A getter declared on ``Repository(Generic[T])`` returns ``T``; seen from
``UserRepository(Repository[User])`` it returns ``User``. `TypeResolver`
performs that substitution: it traces the parameterized bases
(``__orig_bases__``) of the concrete class up through every ancestor,
recording which argument each ancestor's type variables are bound to, and
then rewrites method and field types through those bindings.

Bindings are keyed by the declaring class and the type variable, since the
same ``TypeVar`` object is routinely reused by unrelated generic classes.

Example:
    Resolving an inherited generic getter::

        from typing import Generic, TypeVar
        from orm_reflection import resolve_return_type, type_to_class
        from orm_reflection._host import declared_methods

        T = TypeVar("T")

        class Box(Generic[T]):
            def getContent(self) -> T: ...

        class StrBox(Box[str]):
            pass

        method = next(m for m in declared_methods(Box) if m.name == "getContent")
        assert type_to_class(resolve_return_type(method, StrBox)) is str
"""

from collections.abc import Mapping
from typing import Generic, Protocol, TypeVar, get_args, get_origin

from orm_reflection._host import Field, Method
from orm_reflection._types import (
    ArrayType,
    ParameterizedType,
    TypeExpression,
    TypeVariable,
    WildcardType,
    parse_type,
)

__all__ = [
    "TypeResolver",
    "resolve_return_type",
    "resolve_param_types",
    "resolve_field_type",
    "type_var_bindings",
]

Bindings = Mapping[tuple[type, TypeVar], TypeExpression]

_SKIPPED_BASES = (Generic, Protocol, object)


class TypeResolver:
    """Resolves member types as seen from one concrete class.

    Attributes:
        src_cls: The concrete class under inspection, which is also what
            ``Self`` hints resolve to.
        bindings: Type variable bindings collected from its ancestors,
            keyed by ``(declaring_class, type_var)``.
    """

    def __init__(self, src_cls: type) -> None:
        self.src_cls = src_cls
        self.bindings: Bindings = type_var_bindings(src_cls)

    def return_type(self, method: Method) -> TypeExpression:
        """Return the method's return type with generic bindings applied."""
        return self.resolve(parse_type(method.return_hint, self.src_cls), method.declaring_class)

    def param_types(self, method: Method) -> tuple[TypeExpression, ...]:
        """Return each parameter type with generic bindings applied."""
        return tuple(
            self.resolve(parse_type(hint, self.src_cls), method.declaring_class)
            for hint in method.parameter_hints
        )

    def field_type(self, field: Field) -> TypeExpression:
        """Return the field's declared type with generic bindings applied."""
        return self.resolve(parse_type(field.annotation, self.src_cls), field.declaring_class)

    def resolve(self, expr: TypeExpression, declaring_cls: type) -> TypeExpression:
        """Substitute the type variables of `declaring_cls` inside `expr`.

        Variables with no binding (for example those of `src_cls` itself)
        are left in place.
        """
        if isinstance(expr, TypeVariable):
            return self.bindings.get((declaring_cls, expr.var), expr)
        if isinstance(expr, ParameterizedType):
            return ParameterizedType(
                expr.raw, tuple(self.resolve(arg, declaring_cls) for arg in expr.args)
            )
        if isinstance(expr, ArrayType):
            return ArrayType(self.resolve(expr.component, declaring_cls))
        if isinstance(expr, WildcardType):
            return WildcardType(
                tuple(self.resolve(bound, declaring_cls) for bound in expr.upper_bounds)
            )
        return expr


def type_var_bindings(cls: type) -> dict[tuple[type, TypeVar], TypeExpression]:
    """Collect the type variable bindings that `cls` imposes on its ancestors.

    Args:
        cls: The concrete class.

    Returns:
        A mapping from ``(ancestor, type_var)`` to the expression bound to
        it. When an ancestor is reached along several paths the binding
        found first (nearest in the class graph) is kept.
    """
    bindings: dict[tuple[type, TypeVar], TypeExpression] = {}
    _collect_bindings(cls, {}, bindings)
    return bindings


def _collect_bindings(
    cls: type,
    env: Mapping[TypeVar, TypeExpression],
    bindings: dict[tuple[type, TypeVar], TypeExpression],
) -> None:
    # __orig_bases__ is only meaningful on the class that declared it; the
    # inherited attribute belongs to an ancestor.
    for base in vars(cls).get("__orig_bases__", cls.__bases__):
        origin = get_origin(base) or base
        if not isinstance(origin, type) or origin in _SKIPPED_BASES:
            continue
        params = getattr(origin, "__parameters__", ())
        args = get_args(base) if origin is not base else ()
        local: dict[TypeVar, TypeExpression] = {}
        for param, arg in zip(params, args):
            expr = _substitute(parse_type(arg), env)
            local[param] = expr
            bindings.setdefault((origin, param), expr)
        _collect_bindings(origin, local, bindings)


def _substitute(
    expr: TypeExpression, env: Mapping[TypeVar, TypeExpression]
) -> TypeExpression:
    if isinstance(expr, TypeVariable):
        return env.get(expr.var, expr)
    if isinstance(expr, ParameterizedType):
        return ParameterizedType(expr.raw, tuple(_substitute(a, env) for a in expr.args))
    if isinstance(expr, ArrayType):
        return ArrayType(_substitute(expr.component, env))
    if isinstance(expr, WildcardType):
        return WildcardType(tuple(_substitute(b, env) for b in expr.upper_bounds))
    return expr


def resolve_return_type(method: Method, src_cls: type) -> TypeExpression:
    """Resolve a method's return type as seen from `src_cls`."""
    return TypeResolver(src_cls).return_type(method)


def resolve_param_types(method: Method, src_cls: type) -> tuple[TypeExpression, ...]:
    """Resolve a method's parameter types as seen from `src_cls`."""
    return TypeResolver(src_cls).param_types(method)


def resolve_field_type(field: Field, src_cls: type) -> TypeExpression:
    """Resolve a field's declared type as seen from `src_cls`."""
    return TypeResolver(src_cls).field_type(field)

