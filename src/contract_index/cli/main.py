"""contract-index CLI."""

from pathlib import Path
from typing import Any

import click

from contract_index import __version__
from contract_index.cli.compilers import install_compilers_command
from contract_index.cli.export import export_command
from contract_index.cli.index import index_command
from contract_index.cli.preprocess import preprocess_command
from contract_index.config import load_config
from contract_index.core.errors import ConfigError
from contract_index.core.logging import configure_logging, set_run_id


@click.group()
@click.version_option(version=__version__, prog_name="contract-index")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--db-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="SQLite database (overrides CONTRACT_INDEX__DATABASE__PATH)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, db_path: Path | None) -> None:
    """contract-index - index smart-contract functions by selector."""
    overrides: dict[str, Any] = {}
    if db_path is not None:
        overrides["database"] = {"path": str(db_path)}
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    try:
        config = load_config(**overrides)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    configure_logging(config=config.logging)
    set_run_id()
    ctx.obj = config


cli.add_command(preprocess_command, name="pre-process")
cli.add_command(index_command, name="index-functions")
cli.add_command(export_command, name="export")
cli.add_command(install_compilers_command, name="install-compilers")


if __name__ == "__main__":
    cli()
