"""ABI + AST -> ContractFunction rows.

For every ABI function of every contract in a compilation, the extractor
derives the canonical signature and selector from the ABI entry, then
locates the function's definition in the AST and slices its literal text
out of the original file.

Known gaps, both reported as an empty ``source_code``:
- functions inherited from a parent contract declared elsewhere
- public state-variable getters (no FunctionDefinition exists)
"""

from __future__ import annotations

from typing import Any

import structlog
from eth_utils import keccak

from contract_index.contracts.models import ContractFunction
from contract_index.contracts.source import normalize_line_endings
from contract_index.core.errors import ExtractionError
from contract_index.indexing.ast import (
    find_contract_scope,
    find_functions,
    parameter_count,
    parse_src,
    top_level_nodes,
)
from contract_index.toolchain.compile import CompilationResult

logger = structlog.get_logger()


def canonical_type(param: dict[str, Any]) -> str:
    """Canonical ABI type; tuples expand to their component types."""
    type_ = str(param.get("type", ""))
    if type_.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components") or [])
        return f"({inner}){type_[len('tuple'):]}"
    return type_


def function_signature(entry: dict[str, Any]) -> str:
    args = ",".join(canonical_type(p) for p in entry.get("inputs") or [])
    return f"{entry['name']}({args})"


def function_selector(signature: str) -> str:
    """``0x`` + first four bytes of keccak-256(signature), lowercase hex."""
    return "0x" + keccak(text=signature)[:4].hex()


def _abi_functions(abi: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # Pre-0.4 ABIs omit "type" for functions
    return [e for e in abi if e.get("type", "function") == "function" and e.get("name")]


class FunctionExtractor:
    """Turns one contract's compilation result into function rows."""

    def __init__(self, contract_id: str, result: CompilationResult) -> None:
        self.contract_id = contract_id
        self.result = result
        self._normalized: dict[str, bytes] = {}

    def _file_bytes(self, filename: str) -> bytes:
        cached = self._normalized.get(filename)
        if cached is None:
            content = self.result.files.get(filename)
            if content is None:
                raise ExtractionError.source_not_found(filename)
            cached = normalize_line_endings(content).encode("utf-8")
            self._normalized[filename] = cached
        return cached

    def _contract_scope(self, contract_name: str, filename: str | None) -> list[dict[str, Any]]:
        if filename is not None:
            candidates = [filename] if filename in self.result.asts else []
        else:
            ordered = [self.result.source_ids[i] for i in sorted(self.result.source_ids)]
            candidates = [n for n in ordered if n in self.result.asts]
            candidates += [n for n in self.result.asts if n not in candidates]

        for name in candidates:
            scope = find_contract_scope(top_level_nodes(self.result.asts[name]), contract_name)
            if scope is not None:
                return scope
        raise ExtractionError.contract_not_found(contract_name)

    def source_code_by_contract_and_function_name(
        self,
        contract_name: str,
        function_name: str,
        *,
        filename: str | None = None,
        param_count: int | None = None,
    ) -> str:
        """Literal text of ``contract_name.function_name`` as written in its file.

        Args:
            contract_name: Contract definition to search in.
            function_name: Function definition to locate.
            filename: Source unit holding the contract; all units when None.
            param_count: Prefer the overload with this many parameters.

        Raises:
            ExtractionError: Contract, function or file content not found.
        """
        scope = self._contract_scope(contract_name, filename)
        matches = find_functions(scope, function_name)
        if not matches:
            raise ExtractionError.function_not_found(contract_name, function_name)

        node = matches[0]
        if param_count is not None:
            node = next((m for m in matches if parameter_count(m) == param_count), node)

        try:
            start, length, index = parse_src(str(node.get("src", "")))
        except ValueError as e:
            raise ExtractionError.function_not_found(contract_name, function_name) from e

        source_name = self.result.source_ids.get(index, filename)
        if source_name is None:
            raise ExtractionError.source_not_found(f"#{index}")
        data = self._file_bytes(source_name)
        if start < 0 or length < 0 or start + length > len(data):
            raise ExtractionError.source_not_found(source_name)
        return data[start : start + length].decode("utf-8", errors="replace")

    def extract(self) -> list[ContractFunction]:
        """One row per ABI function across every compiled contract."""
        functions: list[ContractFunction] = []
        for compiled in self.result.contracts:
            for entry in _abi_functions(compiled.abi):
                signature = function_signature(entry)
                try:
                    source_code = self.source_code_by_contract_and_function_name(
                        compiled.name,
                        entry["name"],
                        filename=compiled.filename,
                        param_count=len(entry.get("inputs") or []),
                    )
                except ExtractionError as e:
                    logger.debug(
                        "function_source_not_found",
                        contract_id=self.contract_id,
                        contract_name=compiled.name,
                        signature=signature,
                        error=e.error_name,
                    )
                    source_code = ""
                functions.append(
                    ContractFunction.create(
                        contract_id=self.contract_id,
                        contract_name=compiled.name,
                        function_name=entry["name"],
                        filename=compiled.filename,
                        signature=signature,
                        selector=function_selector(signature),
                        source_code=source_code,
                    )
                )
        return functions
