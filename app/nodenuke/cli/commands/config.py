"""Configuration commands.

Show the effective settings and write a default config file.
"""

from typing import Annotated

import tomli_w
import typer

from nodenuke.core.config import (
    ConfigError,
    NodenukeConfig,
    load_config_or_default,
    save_config,
)
from nodenuke.core.paths import get_config_path, get_log_path, get_theme_path
from nodenuke.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the nodenuke configuration.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration and the files nodenuke uses."""
    config_path = get_config_path()
    try:
        config = load_config_or_default(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    source = str(config_path) if config_path.exists() else "defaults (no config file)"
    console.print(f"[dim]# source: {source}[/]")
    console.print(f"[dim]# theme:  {get_theme_path()}[/]")
    console.print(f"[dim]# log:    {get_log_path()}[/]")
    console.print(tomli_w.dumps(config.model_dump()), markup=False, highlight=False)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config file with the default settings."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_error(f"Config already exists: {config_path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(NodenukeConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
