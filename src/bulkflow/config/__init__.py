"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_store import HttpStoreConfig, get_http_store_config
from .logging import configure_logging
from .pipeline import DEFAULT_PAGE_SIZE, PipelineConfig, get_pipeline_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ConfigurationError",
    "DatabaseConfig",
    "HttpStoreConfig",
    "MissingConfigurationError",
    "PipelineConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_http_store_config",
    "get_pipeline_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
]
