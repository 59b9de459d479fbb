"""Core module exports."""

from contract_index.core.errors import (
    ConfigError,
    ContractIndexError,
    ErrorCode,
    ExtractionError,
    IngestError,
    InternalError,
    StoreError,
    ToolchainError,
)
from contract_index.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from contract_index.core.progress import page_progress, pluralize, status

__all__ = [
    # Errors
    "ContractIndexError",
    "ConfigError",
    "ErrorCode",
    "ExtractionError",
    "IngestError",
    "InternalError",
    "StoreError",
    "ToolchainError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "page_progress",
    "pluralize",
    "status",
]
