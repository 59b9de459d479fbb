"""Contract archives: source variants, identity hashing and ingestion."""

from contract_index.contracts.hashing import multi_hash, simple_hash
from contract_index.contracts.ingest import iter_contracts, load_contract
from contract_index.contracts.models import (
    ContractFunction,
    ContractSource,
    Metadata,
    MultiSolidity,
    PlainContract,
    SingleSolidity,
    SourceFile,
    SourceType,
    StandardJson,
    VyperSingle,
)
from contract_index.contracts.source import (
    enumerate_files,
    identity_hash,
    materialize,
    normalize_line_endings,
    parse_standard_json,
    sanitize_path,
    source_unit_names,
)

__all__ = [
    # Hashing
    "simple_hash",
    "multi_hash",
    # Models
    "ContractFunction",
    "ContractSource",
    "Metadata",
    "MultiSolidity",
    "PlainContract",
    "SingleSolidity",
    "SourceFile",
    "SourceType",
    "StandardJson",
    "VyperSingle",
    # Source operations
    "enumerate_files",
    "identity_hash",
    "materialize",
    "normalize_line_endings",
    "parse_standard_json",
    "sanitize_path",
    "source_unit_names",
    # Ingestion
    "iter_contracts",
    "load_contract",
]
