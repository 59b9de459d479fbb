"""Compile step: PlainContract -> (PlainContract, CompilationResult).

The contract itself is never mutated; compiler output travels in a
separate ``CompilationResult`` alongside it.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from contract_index.config.constants import AST_OUTPUT_SELECTION
from contract_index.contracts.models import (
    MultiSolidity,
    PlainContract,
    SingleSolidity,
    SourceFile,
    StandardJson,
    VyperSingle,
)
from contract_index.contracts.source import (
    normalize_line_endings,
    parse_standard_json,
    sanitize_path,
    source_unit_names,
    write_entries,
)
from contract_index.core.errors import ToolchainError
from contract_index.toolchain.compiler import CompilerResolver

logger = structlog.get_logger()

# Settings keys solc accepts in a standard-json input. Verification exports
# also carry metadata-only keys such as ``compilationTarget``.
_INPUT_SETTINGS_KEYS = frozenset(
    {
        "remappings",
        "optimizer",
        "evmVersion",
        "viaIR",
        "debug",
        "metadata",
        "libraries",
    }
)


@dataclass(frozen=True)
class CompiledContract:
    """One named contract produced by a compilation."""

    filename: str
    name: str
    abi: list[dict[str, Any]]


@dataclass
class CompilationResult:
    """Transient compiler output for one contract.

    Attributes:
        contracts: Every named contract across every source unit.
        asts: Source unit name -> AST root node.
        source_ids: Source index (third field of ``src``) -> source unit name.
        files: Source unit name -> content exactly as submitted to the compiler.
    """

    contracts: list[CompiledContract] = field(default_factory=list)
    asts: dict[str, dict[str, Any]] = field(default_factory=dict)
    source_ids: dict[int, str] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)


def _settings_from_document(settings: dict[str, Any]) -> dict[str, Any]:
    kept = {k: copy.deepcopy(v) for k, v in settings.items() if k in _INPUT_SETTINGS_KEYS}
    libraries = kept.get("libraries")
    # Metadata-style "file:Lib": "0x.." maps are not valid input here
    if libraries is not None and not all(isinstance(v, dict) for v in libraries.values()):
        del kept["libraries"]
    return kept


def build_standard_input(contract: PlainContract) -> tuple[dict[str, Any], list[SourceFile]]:
    """Standard-json input for ``contract`` plus the files it compiles.

    The returned files carry the source unit names and the LF-only content
    the compiler receives, so AST offsets index into them directly.

    Raises:
        IngestError: The standard-json document is malformed.
        ToolchainError: The source is not Solidity.
    """
    metadata = contract.metadata
    settings: dict[str, Any]
    match contract.source:
        case SingleSolidity(file=file):
            files = [file]
            settings = {}
        case MultiSolidity(files=multi):
            files = list(multi)
            settings = {}
        case StandardJson(file=file):
            document = parse_standard_json(file)
            files = document.sources
            settings = _settings_from_document(document.settings)
        case VyperSingle():
            raise ToolchainError.unsupported_version(
                metadata.compiler_version, "Vyper sources are not compiled"
            )
        case _:
            raise TypeError(f"Unknown contract source: {type(contract.source).__name__}")

    files = [
        SourceFile(name=name, content=normalize_line_endings(f.content))
        for f, name in zip(files, source_unit_names(files), strict=True)
    ]
    settings.setdefault(
        "optimizer", {"enabled": metadata.optimization_used, "runs": metadata.runs}
    )
    settings["outputSelection"] = copy.deepcopy(AST_OUTPUT_SELECTION)

    input_json = {
        "language": "Solidity",
        "sources": {f.name: {"content": f.content} for f in files},
        "settings": settings,
    }
    return input_json, files


def parse_standard_output(output: dict[str, Any], files: list[SourceFile]) -> CompilationResult:
    """Collect ABIs, ASTs and source ids from solc standard-json output."""
    result = CompilationResult(files={f.name: f.content for f in files})

    for filename, by_name in (output.get("contracts") or {}).items():
        for name, artifact in (by_name or {}).items():
            abi = (artifact or {}).get("abi") or []
            result.contracts.append(CompiledContract(filename=filename, name=name, abi=abi))

    for filename, unit in (output.get("sources") or {}).items():
        if not unit:
            continue
        if "id" in unit:
            result.source_ids[int(unit["id"])] = filename
        ast = unit.get("ast") or unit.get("legacyAST")
        if ast:
            result.asts[filename] = ast

    return result


def compile_contract(
    contract: PlainContract,
    resolver: CompilerResolver,
    workdir: Path,
) -> tuple[PlainContract, CompilationResult]:
    """Compile ``contract`` inside ``workdir``.

    Sources are materialized under ``workdir/<ContractName>``; that
    directory is the only path the compiler may read from.

    Raises:
        IngestError: The standard-json document is malformed.
        ToolchainError: Version resolution or compilation failed.
    """
    input_json, files = build_standard_input(contract)
    compiler = resolver.resolve(contract.metadata.compiler_version)

    name_path = sanitize_path(contract.metadata.contract_name)
    source_dir = workdir / (name_path if name_path.name else "contract")
    write_entries(source_dir, files)

    logger.debug(
        "contract_compile_start",
        contract_id=contract.id,
        solc=str(compiler.version),
        sources=len(files),
    )
    output = compiler.compile_standard(input_json, allow_paths=[source_dir])
    result = parse_standard_output(output, files)
    logger.debug(
        "contract_compile_done",
        contract_id=contract.id,
        contracts=len(result.contracts),
    )
    return contract, result
