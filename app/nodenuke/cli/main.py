"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer

from nodenuke import __version__
from nodenuke.cli.commands import clean, config, scan
from nodenuke.core.paths import ensure_state_dir, get_log_path

LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"

# Create main Typer app
app = typer.Typer(
    name="nodenuke",
    help="Find and delete node_modules directories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nodenuke version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Send log records to the state-directory log file.

    Nothing is logged to the terminal, which the interactive view owns.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    try:
        ensure_state_dir()
    except RuntimeError:
        logging.basicConfig(handlers=[logging.NullHandler()], level=level, force=True)
        return
    logging.basicConfig(
        filename=get_log_path(),
        level=level,
        format=LOG_FORMAT,
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Write debug details to the log file.",
        ),
    ] = False,
) -> None:
    """nodenuke - Find and delete node_modules directories.

    Scans a directory tree, flags node_modules that look like they belong
    to installed applications, and lets you delete the rest interactively.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


# Register commands
app.command(name="clean")(clean.clean)
app.command(name="scan")(scan.scan)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
