"""contract-index install-compilers command."""

import click

from contract_index.core.progress import get_console, pluralize, status
from contract_index.toolchain import install_all_versions


@click.command()
def install_compilers_command() -> None:
    """Install every solc release py-solc-x can fetch."""
    with get_console().status("[cyan]Installing solc releases...[/cyan]", spinner="dots"):
        added = install_all_versions()
    status(f"Installed {pluralize(len(added), 'solc release')}", style="success")
