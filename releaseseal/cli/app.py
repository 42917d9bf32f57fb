"""Main Typer application — imports and registers all CLI commands.

Entry point: ``releaseseal`` (configured via pyproject.toml scripts).

Commands: keygen, release, verify, version.
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from releaseseal.cli.commands.keygen import keygen_cmd
from releaseseal.cli.commands.release import release_cmd
from releaseseal.cli.commands.verify import verify_cmd
from releaseseal.config import config

app = typer.Typer(
    name="releaseseal",
    help="releaseseal: digest, sign, store and verify release bundles.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to RELEASESEAL_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
    )


# Register subcommands
app.command(name="keygen", help="Generate a signing key.")(keygen_cmd)
app.command(name="release", help="Create, sign and save a release.")(release_cmd)
app.command(name="verify", help="Verify a stored release.")(verify_cmd)


@app.command(name="version", help="Show the releaseseal version.")
def version_cmd() -> None:
    """Print the installed releaseseal version."""
    from releaseseal import __version__

    typer.echo(__version__)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
