"""Field predicates selecting the candidate set of a pass.

A predicate is a conjunction of simple field criteria. It is evaluated in memory
by ``Predicate.matches`` and compiled to SQL by the SQLAlchemy adapter; both
paths share the same rules:

- a missing field compares equal to ``None``
- ``!=`` matches records where the field is missing
- ordering operators never match a missing or incomparable value
- booleans never equal numbers, so ``true`` does not match ``1``

Criterion values are JSON scalars; lists and objects are rejected when the
criterion is built.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class Operator(StrEnum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"


_ORDERING = frozenset({Operator.LT, Operator.LE, Operator.GT, Operator.GE})
_SCALAR_TYPES = (str, int, float, bool)


def is_scalar(value: object) -> bool:
    """True for the JSON scalars a criterion can compare against, ``None`` included."""

    return value is None or isinstance(value, _SCALAR_TYPES)


def same_value(left: object, right: object) -> bool:
    """JSON equality: like ``==`` except that booleans never equal numbers."""

    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            same_value(left[key], right[key]) for key in left
        )
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(map(same_value, left, right))
    return left == right


# longest operators first so "<=" is not read as "<"
_CRITERION_PATTERN = re.compile(
    r"^\s*(?P<field>[A-Za-z_][\w.-]*)\s*(?P<op>!=|<=|>=|=|<|>|\s+in\s+)\s*(?P<value>.*?)\s*$"
)


@dataclass(frozen=True, slots=True)
class Criterion:
    field: str
    operator: Operator
    value: object

    def __post_init__(self) -> None:
        if self.operator is Operator.IN:
            if not isinstance(self.value, (list, tuple, frozenset)):
                raise TypeError(f"'in' criterion on {self.field!r} needs a list of values")
            options = self.value
        else:
            options = (self.value,)
        unsupported = [option for option in options if not is_scalar(option)]
        if unsupported:
            kind = type(unsupported[0]).__name__
            raise ValueError(f"Criterion on {self.field!r} compares to a {kind}; use a scalar")
        if self.operator in _ORDERING and self.value is None:
            raise ValueError(f"Ordering criterion on {self.field!r} cannot compare to null")

    def matches(self, fields: Mapping[str, object]) -> bool:
        actual = fields.get(self.field)
        match self.operator:
            case Operator.EQ:
                return same_value(actual, self.value)
            case Operator.NE:
                return not same_value(actual, self.value)
            case Operator.IN:
                options: Iterable[object] = self.value  # type: ignore[assignment]
                return any(same_value(actual, option) for option in options)
            case _:
                return _compare(actual, self.operator, self.value)

    def __str__(self) -> str:
        if self.operator is Operator.IN:
            return f"{self.field} in {json.dumps(list(self.value))}"  # type: ignore[arg-type]
        return f"{self.field}{self.operator}{json.dumps(self.value)}"


def _compare(actual: object, operator: Operator, expected: object) -> bool:
    if actual is None or isinstance(actual, bool) != isinstance(expected, bool):
        return False
    try:
        match operator:
            case Operator.LT:
                return actual < expected  # type: ignore[operator]
            case Operator.LE:
                return actual <= expected  # type: ignore[operator]
            case Operator.GT:
                return actual > expected  # type: ignore[operator]
            case Operator.GE:
                return actual >= expected  # type: ignore[operator]
            case _:
                raise ValueError(f"Not an ordering operator: {operator}")
    except TypeError:
        return False


@dataclass(frozen=True, slots=True)
class Predicate:
    """Conjunction of criteria; the empty predicate matches every record."""

    criteria: tuple[Criterion, ...] = ()

    @classmethod
    def of(cls, *criteria: Criterion) -> Predicate:
        return cls(criteria=tuple(criteria))

    @classmethod
    def where(cls, **equals: object) -> Predicate:
        """Shorthand for a conjunction of equality criteria."""

        return cls(
            criteria=tuple(
                Criterion(name, Operator.EQ, value) for name, value in sorted(equals.items())
            )
        )

    def and_(self, *criteria: Criterion) -> Predicate:
        return Predicate(criteria=(*self.criteria, *criteria))

    def matches(self, fields: Mapping[str, object]) -> bool:
        return all(criterion.matches(fields) for criterion in self.criteria)

    def __str__(self) -> str:
        if not self.criteria:
            return "<all>"
        return " AND ".join(str(criterion) for criterion in self.criteria)


def parse_value(text: str) -> object:
    """Read ``text`` as a JSON literal, falling back to the raw string."""

    try:
        return json.loads(text)
    except ValueError:
        return text


def parse_criterion(text: str) -> Criterion:
    """Parse ``field<op>value`` as typed on the command line.

    >>> parse_criterion("status!=Completed")
    Criterion(field='status', operator=<Operator.NE: '!='>, value='Completed')
    """

    match = _CRITERION_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Invalid criterion: {text!r}")
    operator = Operator(match["op"].strip())
    raw_value = match["value"]
    value = parse_value(raw_value)
    if operator is Operator.IN:
        if not isinstance(value, list):
            raise ValueError(f"'in' criterion needs a JSON list, got {raw_value!r}")
        value = tuple(value)
    return Criterion(match["field"], operator, value)


def parse_predicate(texts: Iterable[str]) -> Predicate:
    return Predicate(criteria=tuple(parse_criterion(text) for text in texts))
