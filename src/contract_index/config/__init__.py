"""Config module exports."""

from contract_index.config.loader import ContractIndexSettings, load_config, require_db_path
from contract_index.config.models import (
    ContractIndexConfig,
    DatabaseConfig,
    IndexerConfig,
    IngestConfig,
    LoggingConfig,
)

__all__ = [
    "load_config",
    "require_db_path",
    "ContractIndexConfig",
    "ContractIndexSettings",
    "DatabaseConfig",
    "IndexerConfig",
    "IngestConfig",
    "LoggingConfig",
]
