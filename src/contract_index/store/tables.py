"""SQLModel definitions for the contract and function tables.

Single source of truth for the persisted schema:

- ``contract``: one row per distinct source fingerprint
- ``function``: one row per (contract, source file, selector)

The function lookup indexes live in ``indexes.py``.
"""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlmodel import Field, SQLModel


class ContractRecord(SQLModel, table=True):
    """Stored contract archive, keyed by its content hash."""

    __tablename__ = "contract"

    id: str = Field(primary_key=True)
    name: str
    # SQLModel reserves ``metadata`` for the table registry
    metadata_json: str = Field(sa_column=Column("metadata", Text, nullable=False))
    source: str = Field(sa_column=Column("source", Text, nullable=False))
    source_type: str = Field(index=True)  # json, vyper_single, solidity_single, solidity_multi


class FunctionRecord(SQLModel, table=True):
    """One ABI function of a compiled contract with its definition text."""

    __tablename__ = "function"

    id: str = Field(primary_key=True)
    contract_id: str = Field(
        sa_column=Column(String, ForeignKey("contract.id"), nullable=False)
    )
    contract_name: str
    function_name: str
    filename: str
    signature: str
    selector: str
    source_code: str = Field(default="", sa_column=Column("source_code", Text, nullable=False))
