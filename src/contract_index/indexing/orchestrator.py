"""Paginated, bounded-concurrency compile-and-extract driver.

Each page of stored contracts fans out to one unit per contract on a
thread pool. Units compile in their own temporary directory, extract
function rows and append them to a page-scoped accumulator. Once every
unit of the page has finished the rows are persisted in one batch and the
next page starts.
"""

from __future__ import annotations

import asyncio
import contextvars
import tempfile
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from contract_index.config.constants import DEFAULT_PAGE_SIZE, VYPER_LANGUAGE
from contract_index.contracts.models import ContractFunction, PlainContract
from contract_index.contracts.source import declared_language
from contract_index.core.errors import ContractIndexError, InternalError
from contract_index.core.logging import bound_contract
from contract_index.indexing.extractor import FunctionExtractor
from contract_index.store.contract_store import ContractStore
from contract_index.toolchain.compile import compile_contract
from contract_index.toolchain.compiler import CompilerResolver

logger = structlog.get_logger()


class UnitOutcome(Enum):
    """How a single contract's unit ended."""

    COMPILED = "compiled"
    SKIPPED = "skipped"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class IndexRunStats:
    """Totals for one orchestrator run."""

    contracts_seen: int = 0
    contracts_compiled: int = 0
    contracts_skipped: int = 0
    contracts_failed: int = 0
    contracts_timed_out: int = 0
    functions_extracted: int = 0
    functions_stored: int = 0
    pages: int = 0
    duration_seconds: float = 0.0

    def record(self, outcome: UnitOutcome) -> None:
        self.contracts_seen += 1
        match outcome:
            case UnitOutcome.COMPILED:
                self.contracts_compiled += 1
            case UnitOutcome.SKIPPED:
                self.contracts_skipped += 1
            case UnitOutcome.FAILED:
                self.contracts_failed += 1
            case UnitOutcome.TIMED_OUT:
                self.contracts_timed_out += 1


@dataclass
class _PageAccumulator:
    """Rows collected from the units of one page."""

    functions: list[ContractFunction] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)


@dataclass
class _UnitState:
    contract: PlainContract
    abandoned: bool = False
    committed: bool = False


def is_vyper(contract: PlainContract) -> bool:
    return declared_language(contract.source) == VYPER_LANGUAGE


class CompilationOrchestrator:
    """Drives compile + extract over every stored contract.

    Args:
        store: Source of contracts and sink for function rows.
        resolver: Maps declared compiler versions to compilers.
        page_size: Contracts per page; also the default thread count.
        concurrency: Worker threads; lower values serialize units.
        unit_timeout_sec: Abandon a unit that runs longer than this.
    """

    def __init__(
        self,
        store: ContractStore,
        resolver: CompilerResolver,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        concurrency: int | None = None,
        unit_timeout_sec: float | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        if concurrency is not None and concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.store = store
        self.resolver = resolver
        self.page_size = page_size
        self.concurrency = concurrency or page_size
        self.unit_timeout_sec = unit_timeout_sec

    def _run_unit(self, unit: _UnitState, accumulator: _PageAccumulator) -> UnitOutcome:
        """Compile and extract one contract. Runs on a worker thread."""
        contract = unit.contract
        with bound_contract(contract.id, contract.name):
            return self._index_contract(unit, accumulator)

    def _index_contract(self, unit: _UnitState, accumulator: _PageAccumulator) -> UnitOutcome:
        contract = unit.contract
        try:
            if is_vyper(contract):
                logger.debug("contract_skipped", reason="vyper")
                return UnitOutcome.SKIPPED
            with tempfile.TemporaryDirectory(prefix="contract-index-") as tmp:
                _, result = compile_contract(contract, self.resolver, Path(tmp))
            functions = FunctionExtractor(contract.id, result).extract()
        except ContractIndexError as e:
            logger.warning(
                "contract_compile_failed",
                error=e.error_name,
                message=e.message,
                version=contract.metadata.compiler_version,
            )
            return UnitOutcome.FAILED
        except Exception as e:
            error = InternalError.unexpected(str(e), exception=type(e).__name__)
            logger.error(
                "contract_compile_failed",
                error=error.error_name,
                message=error.message,
                exception=type(e).__name__,
                exc_info=True,
            )
            return UnitOutcome.FAILED

        with accumulator.lock:
            if unit.abandoned:
                return UnitOutcome.TIMED_OUT
            accumulator.functions.extend(functions)
            unit.committed = True
        logger.debug("contract_indexed", functions=len(functions))
        return UnitOutcome.COMPILED

    async def _await_unit(
        self,
        executor: ThreadPoolExecutor,
        semaphore: asyncio.Semaphore,
        unit: _UnitState,
        accumulator: _PageAccumulator,
    ) -> UnitOutcome:
        loop = asyncio.get_running_loop()
        async with semaphore:
            # Carry run_id and other log context into the worker
            context = contextvars.copy_context()
            future = loop.run_in_executor(
                executor, context.run, self._run_unit, unit, accumulator
            )
            if self.unit_timeout_sec is None:
                return await future
            try:
                return await asyncio.wait_for(future, self.unit_timeout_sec)
            except TimeoutError:
                with accumulator.lock:
                    if unit.committed:
                        return UnitOutcome.COMPILED
                    unit.abandoned = True
                logger.warning(
                    "contract_compile_timeout",
                    contract_id=unit.contract.id,
                    contract_name=unit.contract.name,
                    timeout_sec=self.unit_timeout_sec,
                )
                return UnitOutcome.TIMED_OUT

    async def _run_page(
        self, executor: ThreadPoolExecutor, page: list[PlainContract]
    ) -> tuple[list[ContractFunction], list[UnitOutcome]]:
        accumulator = _PageAccumulator()
        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(
                self._await_unit(executor, semaphore, _UnitState(contract), accumulator)
                for contract in page
            )
        )
        with accumulator.lock:
            functions = list(accumulator.functions)
        return functions, list(outcomes)

    async def run(
        self,
        start_offset: int = 0,
        *,
        on_page: Callable[[int], None] | None = None,
    ) -> IndexRunStats:
        """Index every contract from ``start_offset`` onwards.

        Args:
            start_offset: First store offset to process; resumes a run.
            on_page: Called with the number of contracts after each page.

        Returns:
            Run totals.
        """
        if start_offset < 0:
            raise ValueError(f"start_offset must be >= 0, got {start_offset}")

        started = time.monotonic()
        stats = IndexRunStats()
        executor = ThreadPoolExecutor(
            max_workers=self.concurrency,
            thread_name_prefix="contract-index-compile",
        )
        logger.info(
            "index_run_started",
            start_offset=start_offset,
            page_size=self.page_size,
            concurrency=self.concurrency,
        )
        try:
            for offset, page in self.store.iter_pages(self.page_size, start_offset):
                functions, outcomes = await self._run_page(executor, page)
                stored = self.store.store_functions(functions)

                for outcome in outcomes:
                    stats.record(outcome)
                stats.functions_extracted += len(functions)
                stats.functions_stored += stored
                stats.pages += 1

                logger.info(
                    "page_persisted",
                    offset=offset,
                    contracts=len(page),
                    functions=len(functions),
                    inserted=stored,
                )
                if on_page is not None:
                    on_page(len(page))
        finally:
            # Abandoned units keep their worker until the compiler returns
            executor.shutdown(wait=stats.contracts_timed_out == 0, cancel_futures=True)

        stats.duration_seconds = time.monotonic() - started
        logger.info("index_run_complete", **asdict(stats))
        return stats
