"""Contract entities: metadata, source variants and extracted functions.

``ContractSource`` is a closed union discriminated by ``kind``. Operations
over it live in ``contract_index.contracts.source`` and match on the
concrete variant classes.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class SourceType(str, Enum):
    """Persisted ``source_type`` column values."""

    JSON = "json"
    VYPER_SINGLE = "vyper_single"
    SOLIDITY_SINGLE = "solidity_single"
    SOLIDITY_MULTI = "solidity_multi"


class Metadata(BaseModel):
    """Contents of an archive's metadata.json (Etherscan field names)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    contract_name: str = Field(alias="ContractName")
    compiler_version: str = Field(alias="CompilerVersion")
    runs: int = Field(default=200, alias="Runs")
    optimization_used: bool = Field(default=False, alias="OptimizationUsed")
    bytecode_hash: str = Field(default="", alias="BytecodeHash")

    @field_validator("runs", mode="before")
    @classmethod
    def _coerce_runs(cls, v: Any) -> Any:
        if isinstance(v, str):
            return int(v.strip() or 0)
        return v

    @field_validator("optimization_used", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> Any:
        # Etherscan exports use "1"/"0"
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes")
        return v

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SourceFile(BaseModel):
    """One named source file."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: str


class SingleSolidity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["solidity_single"] = "solidity_single"
    file: SourceFile


class MultiSolidity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["solidity_multi"] = "solidity_multi"
    files: tuple[SourceFile, ...]


class VyperSingle(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["vyper_single"] = "vyper_single"
    file: SourceFile


class StandardJson(BaseModel):
    """A verification document bundling named sources and compiler settings."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["json"] = "json"
    file: SourceFile


ContractSource = Annotated[
    SingleSolidity | MultiSolidity | VyperSingle | StandardJson,
    Field(discriminator="kind"),
]

_SOURCE_ADAPTER: TypeAdapter[ContractSource] = TypeAdapter(ContractSource)


def source_type_of(source: ContractSource) -> SourceType:
    return SourceType(source.kind)


def dump_source(source: ContractSource) -> str:
    return _SOURCE_ADAPTER.dump_json(source).decode("utf-8")


def load_source(data: str) -> ContractSource:
    return _SOURCE_ADAPTER.validate_json(data)


@dataclass(frozen=True)
class PlainContract:
    """A contract archive: metadata plus its source.

    Identity comes from the source alone, so the same code published under
    different names or compiler versions collapses to one record.
    """

    metadata: Metadata
    source: ContractSource

    @property
    def id(self) -> str:
        return self.hash()

    def hash(self) -> str:
        from contract_index.contracts.source import identity_hash

        return identity_hash(self.source)

    @property
    def name(self) -> str:
        return self.metadata.contract_name


def function_id(contract_id: str, filename: str, selector: str) -> str:
    """Stable row id for one function of one compiled contract."""
    key = f"{contract_id}:{filename}:{selector}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ContractFunction:
    """One ABI-exposed function and the text of its definition."""

    id: str
    contract_id: str
    contract_name: str
    function_name: str
    filename: str
    signature: str
    selector: str
    source_code: str = ""

    @classmethod
    def create(
        cls,
        *,
        contract_id: str,
        contract_name: str,
        function_name: str,
        filename: str,
        signature: str,
        selector: str,
        source_code: str = "",
    ) -> ContractFunction:
        return cls(
            id=function_id(contract_id, filename, selector),
            contract_id=contract_id,
            contract_name=contract_name,
            function_name=function_name,
            filename=filename,
            signature=signature,
            selector=selector,
            source_code=source_code,
        )
