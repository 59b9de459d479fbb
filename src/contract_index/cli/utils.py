"""Shared helpers for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import click

from contract_index.config import ContractIndexConfig, require_db_path
from contract_index.core.errors import ConfigError
from contract_index.store import ContractStore


def get_config(ctx: click.Context) -> ContractIndexConfig:
    config = ctx.find_object(ContractIndexConfig)
    if config is None:
        raise click.UsageError("Configuration not loaded; invoke through 'contract-index'")
    return config


@contextmanager
def open_store(config: ContractIndexConfig) -> Iterator[ContractStore]:
    """Open the configured store and close it when the command ends."""
    try:
        db_path = require_db_path(config)
    except ConfigError as e:
        raise click.UsageError(
            "No database configured. Pass --db-path or set CONTRACT_INDEX__DATABASE__PATH."
        ) from e
    store = ContractStore.open(db_path, busy_timeout_ms=config.database.busy_timeout_ms)
    try:
        yield store
    finally:
        store.close()
