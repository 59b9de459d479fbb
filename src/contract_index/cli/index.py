"""contract-index index-functions command - compile and extract."""

import asyncio

import click

from contract_index.cli.utils import get_config, open_store
from contract_index.core.progress import page_progress, pluralize, status
from contract_index.indexing import CompilationOrchestrator
from contract_index.toolchain import SolcxResolver


@click.command()
@click.option("--page-size", type=click.IntRange(min=1), help="Contracts per page")
@click.option("--concurrency", type=click.IntRange(min=1), help="Worker threads per page")
@click.option(
    "--start-offset",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Resume from this store offset",
)
@click.option(
    "--unit-timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Abandon a single compilation after this many seconds",
)
@click.option(
    "--no-install",
    is_flag=True,
    help="Fail contracts whose solc release is not installed instead of fetching it",
)
@click.pass_context
def index_command(
    ctx: click.Context,
    page_size: int | None,
    concurrency: int | None,
    start_offset: int,
    unit_timeout: float | None,
    no_install: bool,
) -> None:
    """Compile every stored contract and record its functions."""
    config = get_config(ctx)
    indexer = config.indexer

    with open_store(config) as store:
        orchestrator = CompilationOrchestrator(
            store,
            SolcxResolver(install=not no_install),
            page_size=page_size or indexer.page_size,
            concurrency=concurrency or indexer.concurrency,
            unit_timeout_sec=unit_timeout or indexer.unit_timeout_sec,
        )
        remaining = max(store.count() - start_offset, 0)
        with page_progress(remaining, desc="Indexing") as advance:
            stats = asyncio.run(orchestrator.run(start_offset, on_page=advance))
        total_functions = store.count_functions()

    status(
        f"Compiled {pluralize(stats.contracts_compiled, 'contract')} in "
        f"{pluralize(stats.pages, 'page')} ({stats.duration_seconds:.1f}s)",
        style="success",
    )
    if stats.contracts_skipped:
        status(f"Skipped {pluralize(stats.contracts_skipped, 'Vyper contract')}", style="info")
    failed = stats.contracts_failed + stats.contracts_timed_out
    if failed:
        status(f"{pluralize(failed, 'contract')} failed to compile", style="warning")
    status(
        f"Extracted {pluralize(stats.functions_extracted, 'function')}, "
        f"{stats.functions_stored} new; store holds {total_functions}",
        style="info",
    )
