"""Persistent contract/function store (SQLModel on SQLite)."""

from contract_index.store.contract_store import ContractStore, contract_to_row, row_to_contract
from contract_index.store.database import BulkWriter, Database
from contract_index.store.indexes import create_additional_indexes
from contract_index.store.tables import ContractRecord, FunctionRecord

__all__ = [
    "ContractStore",
    "contract_to_row",
    "row_to_contract",
    "Database",
    "BulkWriter",
    "create_additional_indexes",
    "ContractRecord",
    "FunctionRecord",
]
