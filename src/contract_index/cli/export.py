"""contract-index export command - write a stored contract to disk."""

from pathlib import Path

import click

from contract_index.cli.utils import get_config, open_store
from contract_index.core.errors import IngestError, StoreError
from contract_index.core.progress import pluralize, status


@click.command()
@click.argument("contract_id")
@click.argument("out_dir", type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def export_command(ctx: click.Context, contract_id: str, out_dir: Path) -> None:
    """Materialize the source files of CONTRACT_ID under OUT_DIR."""
    config = get_config(ctx)
    with open_store(config) as store:
        try:
            written = store.export(contract_id, out_dir)
        except (StoreError, IngestError) as e:
            raise click.ClickException(str(e)) from e

    status(f"Wrote {pluralize(len(written), 'file')} to {out_dir}", style="success")
    for path in written:
        status(str(path.relative_to(out_dir)), style="info", indent=2)
