"""Pure record transformations and the field-level permission check."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from bulkflow.domain.model import OutcomeCause
from bulkflow.domain.predicate import same_value

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bulkflow.domain.model import Record

_MISSING = object()


@dataclass(frozen=True, slots=True)
class SkipDecision:
    """Leave a record untouched. Not a failure."""

    reason: str
    cause: OutcomeCause = OutcomeCause.TRANSFORM_SKIPPED


type Changes = Mapping[str, object]


class ChangeFunction(Protocol):
    """User logic: inspect a record snapshot and return the field changes to make."""

    def __call__(self, record: Record) -> Changes | SkipDecision: ...


class FieldAccess(Protocol):
    """Capability check consulted before a change to ``field`` is produced."""

    def is_updateable(self, field: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class FieldPermissions:
    """Allow-list and deny-list of updateable fields.

    ``updateable=None`` allows every field that is not listed as read-only.
    """

    updateable: frozenset[str] | None = None
    read_only: frozenset[str] = frozenset()

    @classmethod
    def allowing(cls, fields: Iterable[str]) -> FieldPermissions:
        return cls(updateable=frozenset(fields))

    def is_updateable(self, field: str) -> bool:
        if field in self.read_only:
            return False
        return self.updateable is None or field in self.updateable


@dataclass(slots=True)
class Transformer:
    """Turn a pending record into a transformed copy or a skip decision.

    The change function only ever sees a snapshot, so the fetched record is not
    modified. Exceptions from the change function propagate; the orchestrator
    turns them into a per-record failure.
    """

    changes: ChangeFunction
    access: FieldAccess | None = None

    def apply(self, record: Record) -> Record | SkipDecision:
        result = self.changes(record.snapshot())
        if isinstance(result, SkipDecision):
            return result
        if not isinstance(result, Mapping):
            raise TypeError(
                f"Change function must return a mapping or SkipDecision, got {type(result).__name__}"
            )

        effective = {
            name: value
            for name, value in result.items()
            if not same_value(record.fields.get(name, _MISSING), value)
        }
        if not effective:
            return SkipDecision(reason="no changes")

        if self.access is not None:
            denied = sorted(name for name in effective if not self.access.is_updateable(name))
            if denied:
                return SkipDecision(
                    reason=f"not permitted to update: {', '.join(denied)}",
                    cause=OutcomeCause.PERMISSION_DENIED,
                )

        return record.evolve(effective)


def set_fields(**values: object) -> ChangeFunction:
    """Change function assigning the same ``values`` to every record."""

    def change(record: Record) -> Changes:
        _ = record
        return dict(values)

    return change


def skip_when(
    condition: Callable[[Record], bool],
    reason: str,
    changes: ChangeFunction,
) -> ChangeFunction:
    """Wrap ``changes`` so records satisfying ``condition`` are skipped with ``reason``."""

    def change(record: Record) -> Changes | SkipDecision:
        if condition(record):
            return SkipDecision(reason=reason)
        return changes(record)

    return change
