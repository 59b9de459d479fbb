"""Bulk ingestion of archive trees into the contract store."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from pathlib import Path

import structlog

from contract_index.contracts.ingest import iter_contracts
from contract_index.store.contract_store import ContractStore

logger = structlog.get_logger()


@dataclass
class PreprocessStats:
    contracts_read: int = 0
    contracts_inserted: int = 0
    batches: int = 0


def preprocess(
    store: ContractStore,
    root: Path,
    *,
    ignore_errors: bool = False,
    batch_size: int = 1000,
) -> PreprocessStats:
    """Read every archive below ``root`` and store it.

    Archives are stored in batches of ``batch_size``; a contract already in
    the store is skipped silently.

    Raises:
        IngestError: A malformed archive was found and ``ignore_errors`` is False.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    stats = PreprocessStats()
    contracts = iter_contracts(root, ignore_errors=ignore_errors)
    for batch in itertools.batched(contracts, batch_size):
        inserted = store.store_many(batch)
        stats.contracts_read += len(batch)
        stats.contracts_inserted += inserted
        stats.batches += 1
        logger.debug("preprocess_batch_stored", read=len(batch), inserted=inserted)

    logger.info(
        "preprocess_complete",
        root=str(root),
        read=stats.contracts_read,
        inserted=stats.contracts_inserted,
    )
    return stats
