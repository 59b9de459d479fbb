"""contract-index pre-process command - ingest archive trees."""

from pathlib import Path

import click

from contract_index.cli.utils import get_config, open_store
from contract_index.core.errors import IngestError
from contract_index.core.progress import pluralize, status
from contract_index.indexing import preprocess


@click.command()
@click.option(
    "--plain-contracts-root",
    "root",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory tree of contract archives",
)
@click.option(
    "--ignore-errors",
    is_flag=True,
    help="Skip malformed archives instead of stopping",
)
@click.option("--batch-size", type=click.IntRange(min=1), help="Contracts per bulk insert")
@click.pass_context
def preprocess_command(
    ctx: click.Context, root: Path, ignore_errors: bool, batch_size: int | None
) -> None:
    """Read every archive below the root and store it.

    Contracts already present (same source fingerprint) are skipped.
    """
    config = get_config(ctx)
    ignore_errors = ignore_errors or config.ingest.ignore_errors

    with open_store(config) as store:
        try:
            stats = preprocess(
                store,
                root,
                ignore_errors=ignore_errors,
                batch_size=batch_size or config.ingest.batch_size,
            )
        except (IngestError, OSError) as e:
            raise click.ClickException(f"{e}\nRe-run with --ignore-errors to skip it.") from e
        total = store.count()

    status(
        f"Stored {pluralize(stats.contracts_inserted, 'new contract')} "
        f"({pluralize(stats.contracts_read, 'archive')} read)",
        style="success",
    )
    status(f"Store holds {pluralize(total, 'contract')}", style="info")
