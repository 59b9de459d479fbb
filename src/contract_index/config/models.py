"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CONTRACT_INDEX__SECTION__KEY)
3. Working-directory YAML (./contract-index.yaml)
4. Global YAML (~/.config/contract-index/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CONTRACT_INDEX__<SECTION>__<KEY>=<VALUE>

Examples:
    CONTRACT_INDEX__LOGGING__LEVEL=DEBUG
    CONTRACT_INDEX__DATABASE__PATH=/data/contracts.db
    CONTRACT_INDEX__INDEXER__PAGE_SIZE=50
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CONTRACT_INDEX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped function body.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatabaseConfig(BaseModel):
    """Contract store configuration.

    Env vars:
        CONTRACT_INDEX__DATABASE__PATH: SQLite file holding contracts and functions
        CONTRACT_INDEX__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
    """

    path: str | None = Field(
        default=None,
        description="SQLite database path. Required by every command; "
        "may also be given with --db-path.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )


class IngestConfig(BaseModel):
    """Archive ingestion configuration.

    Env vars:
        CONTRACT_INDEX__INGEST__IGNORE_ERRORS: Skip malformed archives instead of stopping
        CONTRACT_INDEX__INGEST__BATCH_SIZE: Contracts per store_many() call
    """

    ignore_errors: bool = Field(
        default=False,
        description="Log and skip malformed archive folders instead of aborting.",
    )
    batch_size: int = Field(
        default=1000,
        description="Contracts buffered before each bulk insert.",
    )

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"batch_size must be >= 1, got {v}")
        return v


class IndexerConfig(BaseModel):
    """Function indexing configuration.

    Env vars:
        CONTRACT_INDEX__INDEXER__PAGE_SIZE: Contracts compiled concurrently per page
        CONTRACT_INDEX__INDEXER__CONCURRENCY: Worker threads per page (default: page size)
        CONTRACT_INDEX__INDEXER__UNIT_TIMEOUT_SEC: Max wait for one contract's compilation
    """

    page_size: int = Field(
        default=100,
        description="Contracts per page. Peak concurrency and memory grow linearly with it.",
    )
    concurrency: int | None = Field(
        default=None,
        description="Worker threads per page. Defaults to the page size.",
    )
    unit_timeout_sec: float | None = Field(
        default=None,
        description="Give up waiting on a single compilation after this many seconds. "
        "Unset means wait indefinitely.",
    )

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"page_size must be >= 1, got {v}")
        return v

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"concurrency must be >= 1, got {v}")
        return v


class ContractIndexConfig(BaseModel):
    """Root configuration for contract-index."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
