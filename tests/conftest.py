"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides archive builders, a temporary store and a fake solc.
"""

import json
import re
import sys
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from contract_index.core.errors import ToolchainError  # noqa: E402
from contract_index.store import ContractStore  # noqa: E402
from contract_index.toolchain import parse_compiler_version  # noqa: E402

DEFAULT_METADATA: dict[str, Any] = {
    "ContractName": "Counter",
    "CompilerVersion": "v0.8.19+commit.7dd6d404",
    "Runs": "200",
    "OptimizationUsed": "1",
    "BytecodeHash": "",
}

COUNTER_SOURCE = """\
// SPDX-License-Identifier: MIT
pragma solidity ^0.8.19;

contract Counter {
    uint256 public count;

    function increment() public {
        count += 1;
    }

    function decrement() public {
        count -= 1;
    }
}
"""


# =============================================================================
# Archives
# =============================================================================


ArchiveFactory = Callable[..., Path]


@pytest.fixture
def make_archive(tmp_path: Path) -> ArchiveFactory:
    """Factory writing one archive folder under ``tmp_path / "archives"``."""

    def _make(
        name: str,
        files: dict[str, str],
        metadata: dict[str, Any] | None = None,
    ) -> Path:
        folder = tmp_path / "archives" / name
        folder.mkdir(parents=True, exist_ok=True)
        meta = {**DEFAULT_METADATA, **(metadata or {})}
        (folder / "metadata.json").write_text(json.dumps(meta))
        for filename, content in files.items():
            path = folder / filename
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content.encode("utf-8"))
        return folder

    return _make


@pytest.fixture
def store(tmp_path: Path) -> Iterator[ContractStore]:
    contract_store = ContractStore.open(tmp_path / "index.db")
    yield contract_store
    contract_store.close()


# =============================================================================
# Fake solc
# =============================================================================

_CONTRACT_RE = re.compile(r"\b(?:abstract\s+)?contract\s+(\w+)[^{]*\{")
_FUNCTION_RE = re.compile(r"\bfunction\s+(\w+)\s*\(([^)]*)\)[^{;]*\{")


def _matching_brace(text: str, open_index: int) -> int:
    depth = 0
    for i in range(open_index, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
    raise ValueError("unbalanced braces")


def _param_types(params: str) -> list[str]:
    return [p.split()[0] for p in params.split(",") if p.strip()]


def fake_solc_output(sources: dict[str, str]) -> dict[str, Any]:
    """Standard-json output for simple sources, offsets computed like solc.

    Recognizes ``contract X { ... }`` blocks and ``function f(T a) ... { }``
    definitions inside them; every function becomes a public ABI entry.
    """
    output: dict[str, Any] = {"contracts": {}, "sources": {}}
    for index, (filename, text) in enumerate(sources.items()):
        # Offsets are taken on the submitted bytes, as real solc does
        def byte_at(char_index: int, _text: str = text) -> int:
            return len(_text[:char_index].encode("utf-8"))

        contract_nodes: list[dict[str, Any]] = []
        for cm in _CONTRACT_RE.finditer(text):
            end = _matching_brace(text, cm.end() - 1)
            abi: list[dict[str, Any]] = []
            function_nodes: list[dict[str, Any]] = []
            for fm in _FUNCTION_RE.finditer(text, cm.end(), end):
                fn_end = _matching_brace(text, fm.end() - 1)
                types = _param_types(fm.group(2))
                start = byte_at(fm.start())
                function_nodes.append(
                    {
                        "nodeType": "FunctionDefinition",
                        "name": fm.group(1),
                        "src": f"{start}:{byte_at(fn_end + 1) - start}:{index}",
                        "parameters": {
                            "nodeType": "ParameterList",
                            "parameters": [{"nodeType": "VariableDeclaration"} for _ in types],
                        },
                    }
                )
                abi.append(
                    {
                        "type": "function",
                        "name": fm.group(1),
                        "inputs": [{"name": "", "type": t} for t in types],
                        "outputs": [],
                        "stateMutability": "nonpayable",
                    }
                )
            start = byte_at(cm.start())
            contract_nodes.append(
                {
                    "nodeType": "ContractDefinition",
                    "name": cm.group(1),
                    "src": f"{start}:{byte_at(end + 1) - start}:{index}",
                    "nodes": function_nodes,
                }
            )
            output["contracts"].setdefault(filename, {})[cm.group(1)] = {"abi": abi}

        output["sources"][filename] = {
            "id": index,
            "ast": {
                "nodeType": "SourceUnit",
                "src": f"0:{byte_at(len(text))}:{index}",
                "nodes": contract_nodes,
            },
        }
    return output


class FakeCompiler:
    """Answers standard-json requests with ``fake_solc_output``."""

    def __init__(self, resolver: "FakeResolver", version: str) -> None:
        self.resolver = resolver
        self.version = parse_compiler_version(version)

    def compile_standard(
        self, input_json: dict[str, Any], *, allow_paths: Sequence[Path] = ()
    ) -> dict[str, Any]:
        self.resolver.record(input_json, allow_paths)
        if self.resolver.delay:
            time.sleep(self.resolver.delay)
        sources = {name: entry["content"] for name, entry in input_json["sources"].items()}
        for content in sources.values():
            if "BROKEN" in content:
                raise ToolchainError.compile_failed(f"solc-{self.version}", "ParserError")
        return fake_solc_output(sources)


class FakeResolver:
    """CompilerResolver double; versions in ``unavailable`` fail to resolve."""

    def __init__(self, *, unavailable: Sequence[str] = (), delay: float = 0.0) -> None:
        self.unavailable = set(unavailable)
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.allow_paths: list[list[Path]] = []
        self._lock = threading.Lock()

    def record(self, input_json: dict[str, Any], allow_paths: Sequence[Path]) -> None:
        with self._lock:
            self.calls.append(input_json)
            self.allow_paths.append(list(allow_paths))

    def resolve(self, version: str) -> FakeCompiler:
        if version in self.unavailable:
            raise ToolchainError.install_failed(version, "offline")
        return FakeCompiler(self, version)


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def fake_resolver_factory() -> Callable[..., FakeResolver]:
    return FakeResolver


@pytest.fixture
def solc_output() -> Callable[[dict[str, str]], dict[str, Any]]:
    return fake_solc_output
