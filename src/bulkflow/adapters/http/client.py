"""HTTP client for a remote record store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Self

import httpx
from pydantic import BaseModel, ValidationError

from bulkflow.config.http_store import get_http_store_config
from bulkflow.domain.predicate import Operator
from bulkflow.domain.ports.store import StoreError, StoreUnavailableError

from .schema import (
    BatchRequest,
    BatchResponse,
    ErrorResponse,
    IdsResponse,
    PageResponse,
    RecordPayload,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from bulkflow.config.http_store import HttpStoreConfig
    from bulkflow.domain.model import Record
    from bulkflow.domain.ports.store import RecordStore, RowResult
    from bulkflow.domain.predicate import Predicate

log = getLogger(__name__)


class RecordStoreAPIError(StoreError):
    """Raised when the store rejects a request or answers with an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def serialize_predicate(predicate: Predicate) -> str:
    """Encode ``predicate`` as the JSON ``where`` query parameter."""

    return json.dumps(
        [
            {
                "field": criterion.field,
                "op": str(criterion.operator),
                "value": (
                    list(criterion.value)  # type: ignore[call-overload]
                    if criterion.operator is Operator.IN
                    else criterion.value
                ),
            }
            for criterion in predicate.criteria
        ],
        separators=(",", ":"),
    )


def _default_client_factory(config: HttpStoreConfig) -> httpx.Client:
    return httpx.Client(
        base_url=config.base_url,
        headers=config.headers(),
        timeout=config.timeout_seconds,
    )


@dataclass(slots=True)
class HttpRecordStore:
    """Record store reached over HTTP.

    Endpoints, relative to ``config.base_url``:

    - ``GET /records?where=&after=&limit=`` returns ``{"records": [...]}``
    - ``GET /records/ids?where=&after=`` returns ``{"ids": [...]}``
    - ``POST /records/batch`` with ``{"records": [...]}`` returns ``{"results": [...]}``

    Timeouts, transport failures and 5xx answers raise ``StoreUnavailableError``;
    other error statuses raise ``RecordStoreAPIError``. Nothing is retried.
    """

    config: HttpStoreConfig = field(default_factory=get_http_store_config)
    client_factory: Callable[[HttpStoreConfig], httpx.Client] = field(
        default=_default_client_factory
    )
    _client: httpx.Client | None = field(default=None, init=False, repr=False)

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = self.client_factory(self.config)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> list[Record]:
        params: dict[str, str | int] = {"where": serialize_predicate(predicate), "limit": limit}
        if after is not None:
            params["after"] = after
        response = self._send("GET", "/records", params=httpx.QueryParams(params))
        page = _parse(PageResponse, response)
        return [payload.to_record() for payload in page.records]

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        params: dict[str, str] = {"where": serialize_predicate(predicate)}
        if after is not None:
            params["after"] = after
        response = self._send("GET", "/records/ids", params=httpx.QueryParams(params))
        return _parse(IdsResponse, response).ids

    def write_batch(self, records: Sequence[Record]) -> list[RowResult]:
        request = BatchRequest(records=[RecordPayload.from_record(record) for record in records])
        response = self._send("POST", "/records/batch", body=request.model_dump(mode="json"))
        batch = _parse(BatchResponse, response)
        return [result.to_row_result() for result in batch.results]

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: httpx.QueryParams | None = None,
        body: object = None,
    ) -> httpx.Response:
        try:
            response = self.client.request(method, url, params=params, json=body)
        except httpx.TimeoutException as exc:
            raise StoreUnavailableError(f"Record store timed out on {method} {url}") from exc
        except httpx.TransportError as exc:
            raise StoreUnavailableError(f"Record store unreachable: {exc}") from exc

        if response.is_server_error:
            raise StoreUnavailableError(
                f"Record store answered {response.status_code} on {method} {url}"
            )
        if response.is_error:
            message = _error_message(response)
            log.error(f"Record store error {response.status_code}: {message}")
            raise RecordStoreAPIError(message, status_code=response.status_code)
        return response


def _error_message(response: httpx.Response) -> str:
    try:
        payload = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text or response.reason_phrase
    return f"{payload.error}: {payload.detail}" if payload.detail else payload.error


def _parse[TModel: BaseModel](model: type[TModel], response: httpx.Response) -> TModel:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise RecordStoreAPIError(
            f"Unexpected record store payload for {response.request.url.path}",
            status_code=response.status_code,
        ) from exc


if TYPE_CHECKING:
    _store_check: RecordStore = HttpRecordStore()
