"""Pydantic models describing the remote record store payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bulkflow.domain.model import Record
from bulkflow.domain.ports.store import RowResult


class StoreBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecordPayload(StoreBaseModel):
    id: str
    fields: dict[str, object] = Field(default_factory=dict)
    version: int = 1

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # some stores hand out numeric keys
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def from_record(cls, record: Record) -> RecordPayload:
        return cls(id=record.id, fields=dict(record.fields), version=record.version)

    def to_record(self) -> Record:
        return Record(id=self.id, fields=dict(self.fields), version=self.version)


class PageResponse(StoreBaseModel):
    records: list[RecordPayload]


class IdsResponse(StoreBaseModel):
    ids: list[str]


class BatchRequest(StoreBaseModel):
    records: list[RecordPayload]


class RowResultPayload(StoreBaseModel):
    id: str
    ok: bool
    error: str | None = None

    def to_row_result(self) -> RowResult:
        if self.ok:
            return RowResult.accepted(self.id)
        return RowResult.rejected(self.id, self.error or "rejected by store")


class BatchResponse(StoreBaseModel):
    results: list[RowResultPayload]


class ErrorResponse(StoreBaseModel):
    error: str
    detail: str | None = None
