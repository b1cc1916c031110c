"""Compile domain predicates to SQL over the JSON ``fields`` column.

The compiled clauses follow ``Predicate.matches``: a missing field is null,
``!=`` is the negation of ``=``, and values of a different JSON type never
compare. Type checks use SQLite's ``json_type``.
"""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Final

from sqlalchemy import and_, false, func, not_, or_, true

from bulkflow.domain.predicate import Criterion, Operator, Predicate

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

_ORDERING: Final = {
    Operator.LT: operator.lt,
    Operator.LE: operator.le,
    Operator.GT: operator.gt,
    Operator.GE: operator.ge,
}


def json_path(field_name: str) -> str:
    escaped = field_name.replace('"', '\\"')
    return f'$."{escaped}"'


def _json_types_for(value: object) -> tuple[str, ...]:
    if isinstance(value, bool):
        return ("true", "false")
    if isinstance(value, (int, float)):
        return ("integer", "real")
    if isinstance(value, str):
        return ("text",)
    raise TypeError(f"Unsupported criterion value type: {type(value).__name__}")


def _typed(column: ColumnElement[object], field_name: str, value: object) -> ColumnElement[bool]:
    # a missing field has no json_type; coalesce so the check is false, not null
    kind = func.coalesce(func.json_type(column, json_path(field_name)), "missing")
    return kind.in_(_json_types_for(value))


def _equals(column: ColumnElement[object], field_name: str, value: object) -> ColumnElement[bool]:
    path = json_path(field_name)
    if value is None:
        kind = func.json_type(column, path)
        return or_(kind.is_(None), kind == "null")
    return and_(_typed(column, field_name, value), func.json_extract(column, path) == value)


def compile_criterion(column: ColumnElement[object], criterion: Criterion) -> ColumnElement[bool]:
    name = criterion.field
    value = criterion.value
    match criterion.operator:
        case Operator.EQ:
            return _equals(column, name, value)
        case Operator.NE:
            return not_(_equals(column, name, value))
        case Operator.IN:
            options = list(value)  # type: ignore[call-overload]
            if not options:
                return false()
            return or_(*(_equals(column, name, option) for option in options))
        case _:
            extracted = func.json_extract(column, json_path(name))
            compare = _ORDERING[criterion.operator]
            return and_(_typed(column, name, value), compare(extracted, value))


def compile_predicate(column: ColumnElement[object], predicate: Predicate) -> ColumnElement[bool]:
    if not predicate.criteria:
        return true()
    return and_(*(compile_criterion(column, criterion) for criterion in predicate.criteria))
