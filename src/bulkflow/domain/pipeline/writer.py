"""Batched writes with per-record outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from bulkflow.domain.model import OutcomeCause
from bulkflow.domain.ports.store import StoreError

from .errors import WriteError
from .report import Outcome

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkflow.domain.model import Record
    from bulkflow.domain.ports.store import RecordStore, RowResult

log = getLogger(__name__)

NO_RESULT_REPORTED = "no result reported by store"


@dataclass(slots=True)
class BatchWriter:
    """Persist a batch in one store write and report every row individually.

    Callers never get a blanket success: a row the store stays silent about is
    reported as failed.
    """

    store: RecordStore

    def write(self, batch: Sequence[Record]) -> list[Outcome]:
        if not batch:
            return []

        try:
            results = self.store.write_batch(batch)
        except StoreError as exc:
            raise WriteError(
                f"Could not write batch of {len(batch)} records: {exc}",
                record_ids=[record.id for record in batch],
            ) from exc

        by_id = self._index_results(batch, results)
        outcomes: list[Outcome] = []
        for record in batch:
            result = by_id.get(record.id)
            if result is None:
                record.mark_failed()
                outcomes.append(
                    Outcome.failed(
                        record.id, NO_RESULT_REPORTED, cause=OutcomeCause.RECORD_WRITE_REJECTION
                    )
                )
            elif result.ok:
                record.mark_written()
                outcomes.append(Outcome.success(record.id))
            else:
                record.mark_failed()
                outcomes.append(
                    Outcome.failed(
                        record.id,
                        result.error or "rejected by store",
                        cause=OutcomeCause.RECORD_WRITE_REJECTION,
                    )
                )
        return outcomes

    @staticmethod
    def _index_results(
        batch: Sequence[Record], results: Sequence[RowResult]
    ) -> dict[str, RowResult]:
        submitted = {record.id for record in batch}
        by_id: dict[str, RowResult] = {}
        for result in results:
            if result.record_id not in submitted:
                log.warning("Store reported a result for unsubmitted record %s", result.record_id)
                continue
            by_id.setdefault(result.record_id, result)
        return by_id
