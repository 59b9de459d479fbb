"""Tests for CompilationOrchestrator against a fake solc."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

import pytest
from structlog.testing import capture_logs

from contract_index.contracts.models import (
    Metadata,
    MultiSolidity,
    PlainContract,
    SingleSolidity,
    SourceFile,
    StandardJson,
    VyperSingle,
)
from contract_index.indexing.orchestrator import CompilationOrchestrator, IndexRunStats
from contract_index.store import ContractStore

VERSION = "v0.8.19+commit.7dd6d404"

VAULT = "contract Vault {\n    function deposit(uint256 a) public {\n    }\n}\n"
BASE = "contract Base {\n    function owner() public {\n    }\n}\n"
TOKEN = "contract Token {\n    function transfer(address to, uint256 v) public {\n    }\n}\n"


def _meta(name: str, version: str = VERSION) -> Metadata:
    return Metadata(ContractName=name, CompilerVersion=version)


def _single(name: str, *functions: str, version: str = VERSION) -> PlainContract:
    body = "\n".join(
        f"    function {fn}(uint256 x) public {{\n        x;\n    }}" for fn in functions
    )
    content = f"pragma solidity ^0.8.0;\n\ncontract {name} {{\n{body}\n}}\n"
    return PlainContract(
        _meta(name, version), SingleSolidity(file=SourceFile(name="main.sol", content=content))
    )


def _multi() -> PlainContract:
    return PlainContract(
        _meta("Vault"),
        MultiSolidity(
            files=(
                SourceFile(name="Vault.sol", content=VAULT.replace("\n", "\r\n")),
                SourceFile(name="Base.sol", content=BASE),
            )
        ),
    )


def _document(language: str = "Solidity") -> PlainContract:
    payload = {
        "language": language,
        "sources": {"src/Token.sol": {"content": TOKEN}},
        "settings": {"optimizer": {"enabled": True, "runs": 1}},
    }
    return PlainContract(
        _meta("Token"),
        StandardJson(file=SourceFile(name="contract.json", content=json.dumps(payload))),
    )


def _vyper() -> PlainContract:
    return PlainContract(
        _meta("Vy"), VyperSingle(file=SourceFile(name="main.vy", content="x: public(uint256)"))
    )


def _rows(store: ContractStore, contracts: list[PlainContract]) -> set[tuple[Any, ...]]:
    return {
        (f.id, f.contract_id, f.filename, f.signature, f.selector, f.source_code)
        for c in contracts
        for f in store.functions_for_contract(c.id)
    }


def _open(tmp_path: Path, name: str, contracts: list[PlainContract]) -> ContractStore:
    contract_store = ContractStore.open(tmp_path / f"{name}.db")
    contract_store.store_many(contracts)
    return contract_store


class TestRun:
    async def test_given_mixed_sources_when_run_then_functions_persisted(
        self, store: ContractStore, fake_resolver
    ) -> None:
        """Every source shape compiles and its functions land in the store."""
        # Given
        contracts = [_single("Counter", "increment", "decrement"), _multi(), _document()]
        store.store_many(contracts)

        # When
        stats = await CompilationOrchestrator(store, fake_resolver).run()

        # Then
        assert stats.contracts_seen == 3
        assert stats.contracts_compiled == 3
        assert stats.functions_extracted == 5
        assert stats.functions_stored == 5
        assert store.count_functions() == 5

        (transfer,) = store.functions_by_selector("0xa9059cbb")
        assert transfer.signature == "transfer(address,uint256)"
        assert transfer.filename == "src/Token.sol"
        assert transfer.source_code == "function transfer(address to, uint256 v) public {\n    }"

        vault_rows = store.functions_for_contract(contracts[1].id)
        (deposit,) = [f for f in vault_rows if f.function_name == "deposit"]
        assert deposit.source_code == "function deposit(uint256 a) public {\n    }"

    async def test_vyper_skipped_before_toolchain(self, store: ContractStore, fake_resolver) -> None:
        store.store_many([_vyper(), _document(language="Vyper")])

        stats = await CompilationOrchestrator(store, fake_resolver).run()

        assert stats.contracts_skipped == 2
        assert stats.contracts_compiled == 0
        assert fake_resolver.calls == []
        assert store.count_functions() == 0

    async def test_failures_contribute_no_rows(
        self, store: ContractStore, fake_resolver_factory
    ) -> None:
        """A failing contract never aborts its page."""
        resolver = fake_resolver_factory(unavailable=["v0.4.11+commit.68ef5810"])
        ok = _single("Good", "run")
        broken = _single("BROKEN", "run")
        offline = _single("Old", "legacy", version="v0.4.11+commit.68ef5810")
        store.store_many([ok, broken, offline])

        stats = await CompilationOrchestrator(store, resolver).run()

        assert stats.contracts_compiled == 1
        assert stats.contracts_failed == 2
        assert len(store.functions_for_contract(ok.id)) == 1
        assert store.functions_for_contract(broken.id) == []
        assert store.functions_for_contract(offline.id) == []

    async def test_unexpected_exception_is_contained(self, store: ContractStore) -> None:
        class ExplodingResolver:
            def resolve(self, version: str) -> Any:
                raise RuntimeError("boom")

        store.store_many([_single("A", "f")])

        with capture_logs() as logs:
            stats = await CompilationOrchestrator(store, ExplodingResolver()).run()

        assert stats.contracts_failed == 1
        (failure,) = [e for e in logs if e["event"] == "contract_compile_failed"]
        assert failure["error"] == "INTERNAL_ERROR"
        assert failure["exception"] == "RuntimeError"

    async def test_pages_advance_in_order(self, store: ContractStore, fake_resolver) -> None:
        store.store_many(_single(f"C{n}", "f") for n in range(7))
        pages: list[int] = []

        stats = await CompilationOrchestrator(store, fake_resolver, page_size=3).run(
            on_page=pages.append
        )

        assert pages == [3, 3, 1]
        assert stats.pages == 3
        assert stats.contracts_seen == 7

    async def test_start_offset_resumes(self, store: ContractStore, fake_resolver) -> None:
        store.store_many(_single(f"C{n}", "f") for n in range(5))

        stats = await CompilationOrchestrator(store, fake_resolver, page_size=2).run(start_offset=2)

        assert stats.contracts_seen == 3
        assert store.count_functions() == 3

    async def test_rerun_is_idempotent(self, store: ContractStore, fake_resolver) -> None:
        store.store_many([_single("A", "f", "g")])
        orchestrator = CompilationOrchestrator(store, fake_resolver)

        first = await orchestrator.run()
        second = await orchestrator.run()

        assert first.functions_stored == 2
        assert second.functions_extracted == 2
        assert second.functions_stored == 0
        assert store.count_functions() == 2

    async def test_work_directories_removed(self, store: ContractStore, fake_resolver) -> None:
        store.store_many([_single("A", "f"), _single("B", "g")])

        await CompilationOrchestrator(store, fake_resolver).run()

        dirs = [paths[0] for paths in fake_resolver.allow_paths]
        assert len(dirs) == 2
        assert len(set(dirs)) == 2
        assert not any(d.exists() for d in dirs)

    async def test_given_failing_units_when_run_then_work_directories_removed(
        self,
        store: ContractStore,
        fake_resolver_factory,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        # Given
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(scratch))
        old = "v0.4.11+commit.68ef5810"
        resolver = fake_resolver_factory(unavailable=[old])
        store.store_many([_single("BROKEN", "run"), _single("Old", "legacy", version=old)])

        # When
        stats = await CompilationOrchestrator(store, resolver).run()

        # Then
        assert stats.contracts_failed == 2
        assert len(resolver.allow_paths) == 1
        assert not resolver.allow_paths[0][0].exists()
        assert list(scratch.iterdir()) == []

    async def test_timed_out_unit_contributes_no_rows(
        self, store: ContractStore, fake_resolver_factory
    ) -> None:
        resolver = fake_resolver_factory(delay=1.0)
        store.store_many([_single("Slow", "f")])

        stats = await CompilationOrchestrator(store, resolver, unit_timeout_sec=0.05).run()

        assert stats.contracts_timed_out == 1
        assert stats.functions_stored == 0
        assert store.count_functions() == 0


class TestFanIn:
    async def test_serial_and_parallel_runs_store_same_rows(
        self, tmp_path: Path, fake_resolver_factory
    ) -> None:
        """Concurrency 1 and concurrency == page size give identical row sets."""
        contracts = [_single(f"C{n}", "a", "b", "c") for n in range(12)] + [_multi(), _document()]
        serial = _open(tmp_path, "serial", contracts)
        parallel = _open(tmp_path, "parallel", contracts)
        try:
            s1 = await CompilationOrchestrator(
                serial, fake_resolver_factory(), page_size=5, concurrency=1
            ).run()
            s2 = await CompilationOrchestrator(parallel, fake_resolver_factory(), page_size=5).run()

            assert s1.functions_stored == s2.functions_stored == 12 * 3 + 2 + 1
            assert _rows(serial, contracts) == _rows(parallel, contracts)
        finally:
            serial.close()
            parallel.close()


class TestConstruction:
    @pytest.mark.parametrize("kwargs", [{"page_size": 0}, {"concurrency": 0}])
    def test_rejects_invalid_sizes(self, store: ContractStore, fake_resolver, kwargs) -> None:
        with pytest.raises(ValueError):
            CompilationOrchestrator(store, fake_resolver, **kwargs)

    def test_concurrency_defaults_to_page_size(self, store: ContractStore, fake_resolver) -> None:
        assert CompilationOrchestrator(store, fake_resolver, page_size=7).concurrency == 7

    async def test_negative_offset_rejected(self, store: ContractStore, fake_resolver) -> None:
        with pytest.raises(ValueError):
            await CompilationOrchestrator(store, fake_resolver).run(start_offset=-1)

    def test_stats_default_zero(self) -> None:
        assert IndexRunStats().contracts_seen == 0

