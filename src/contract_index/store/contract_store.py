"""Content-addressed persistence of contracts and extracted functions.

Contracts are keyed by their source fingerprint and functions by their
(contract id, filename, selector) digest. Both bulk inserts are
insert-or-ignore: storing the same contract or function twice is a no-op,
never an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import func
from sqlmodel import col, select

from contract_index.contracts.models import (
    ContractFunction,
    Metadata,
    PlainContract,
    dump_source,
    load_source,
    source_type_of,
)
from contract_index.contracts.source import materialize
from contract_index.core.errors import StoreError
from contract_index.store.database import DEFAULT_BUSY_TIMEOUT_MS, Database
from contract_index.store.indexes import create_additional_indexes
from contract_index.store.tables import ContractRecord, FunctionRecord

logger = structlog.get_logger()


def contract_to_row(contract: PlainContract) -> dict[str, Any]:
    return {
        "id": contract.id,
        "name": contract.metadata.contract_name,
        "metadata": contract.metadata.to_json(),
        "source": dump_source(contract.source),
        "source_type": source_type_of(contract.source).value,
    }


def row_to_contract(record: ContractRecord) -> PlainContract:
    return PlainContract(
        metadata=Metadata.model_validate_json(record.metadata_json),
        source=load_source(record.source),
    )


def _record_to_function(record: FunctionRecord) -> ContractFunction:
    return ContractFunction(
        id=record.id,
        contract_id=record.contract_id,
        contract_name=record.contract_name,
        function_name=record.function_name,
        filename=record.filename,
        signature=record.signature,
        selector=record.selector,
        source_code=record.source_code,
    )


class ContractStore:
    """SQLite-backed contract and function store.

    Usage::

        store = ContractStore.open(Path("contracts.db"))
        store.store_many(contracts)
        for offset, page in store.iter_pages(100):
            ...
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    @classmethod
    def open(
        cls, db_path: Path, *, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS
    ) -> ContractStore:
        """Open (and create if needed) the store at ``db_path``."""
        db = Database(db_path, busy_timeout_ms=busy_timeout_ms)
        db.create_all()
        create_additional_indexes(db.engine)
        return cls(db)

    def close(self) -> None:
        self.db.dispose()

    # -------------------------------------------------------------------------
    # Contracts
    # -------------------------------------------------------------------------

    def store_many(self, contracts: Iterable[PlainContract]) -> int:
        """Insert contracts, skipping ids that already exist.

        Returns:
            Number of newly inserted contracts.
        """
        rows = [contract_to_row(c) for c in contracts]
        if not rows:
            return 0
        with self.db.bulk_writer() as writer:
            inserted = writer.insert_many_ignore(ContractRecord, rows)
        logger.debug("contracts_stored", offered=len(rows), inserted=inserted)
        return inserted

    def count(self) -> int:
        with self.db.session() as session:
            return int(session.exec(select(func.count()).select_from(ContractRecord)).one())

    def page(self, offset: int, limit: int) -> list[PlainContract]:
        """Contracts ``[offset, offset + limit)`` in id order."""
        if offset < 0 or limit < 0:
            raise ValueError(f"offset and limit must be non-negative, got {offset}, {limit}")
        stmt = (
            select(ContractRecord)
            .order_by(col(ContractRecord.id))
            .offset(offset)
            .limit(limit)
        )
        with self.db.session() as session:
            return [row_to_contract(record) for record in session.exec(stmt).all()]

    def iter_pages(
        self, page_size: int, start_offset: int = 0
    ) -> Iterator[tuple[int, list[PlainContract]]]:
        """Yield ``(offset, page)`` windows until the store is exhausted."""
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        offset = start_offset
        while True:
            batch = self.page(offset, page_size)
            if not batch:
                return
            yield offset, batch
            offset += page_size

    def get(self, contract_id: str) -> PlainContract | None:
        with self.db.session() as session:
            record = session.get(ContractRecord, contract_id)
            return row_to_contract(record) if record is not None else None

    def export(self, contract_id: str, out_dir: Path) -> list[Path]:
        """Write a stored contract's source files under ``out_dir``.

        Raises:
            StoreError: No contract with this id.
        """
        contract = self.get(contract_id)
        if contract is None:
            raise StoreError.contract_not_found(contract_id)
        return materialize(contract.source, out_dir)

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------

    def store_functions(self, functions: Iterable[ContractFunction]) -> int:
        """Insert functions, skipping ids that already exist."""
        rows = [asdict(f) for f in functions]
        if not rows:
            return 0
        with self.db.bulk_writer() as writer:
            return writer.insert_many_ignore(FunctionRecord, rows)

    def count_functions(self) -> int:
        with self.db.session() as session:
            return int(session.exec(select(func.count()).select_from(FunctionRecord)).one())

    def functions_by_selector(self, selector: str) -> list[ContractFunction]:
        """Every stored function with this selector, across all contracts."""
        stmt = (
            select(FunctionRecord)
            .where(FunctionRecord.selector == selector.lower())
            .order_by(col(FunctionRecord.contract_id), col(FunctionRecord.id))
        )
        with self.db.session() as session:
            return [_record_to_function(r) for r in session.exec(stmt).all()]

    def functions_for_contract(self, contract_id: str) -> list[ContractFunction]:
        stmt = (
            select(FunctionRecord)
            .where(FunctionRecord.contract_id == contract_id)
            .order_by(col(FunctionRecord.selector), col(FunctionRecord.id))
        )
        with self.db.session() as session:
            return [_record_to_function(r) for r in session.exec(stmt).all()]
