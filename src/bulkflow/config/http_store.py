"""Remote record store configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .env import optional_env_var, require_env_var
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_STORE_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class HttpStoreConfig:
    base_url: str
    token: str | None = None
    timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS
    default_headers: Mapping[str, str] = field(default_factory=dict[str, str])

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", **self.default_headers}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


def get_http_store_config() -> HttpStoreConfig:
    base_url = require_env_var("BULKFLOW_STORE_URL")
    raw_timeout = optional_env_var("BULKFLOW_STORE_TIMEOUT")
    timeout = DEFAULT_STORE_TIMEOUT_SECONDS
    if raw_timeout is not None:
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigurationError(
                f"BULKFLOW_STORE_TIMEOUT must be a number, got {raw_timeout!r}"
            ) from exc
        if timeout <= 0:
            raise ConfigurationError("BULKFLOW_STORE_TIMEOUT must be positive")
    return HttpStoreConfig(
        base_url=base_url,
        token=optional_env_var("BULKFLOW_STORE_TOKEN"),
        timeout_seconds=timeout,
    )
