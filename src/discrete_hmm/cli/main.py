"""
Main CLI application for the discrete HMM package.

Provides a command-line interface for training a model on an observation
sequence and scoring sequences against it.
"""

import sys
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_config, load_config_file
from ..logger import configure_logging, set_log_level
from .errors import EXIT_CODES, handle_cli_error
from .train import train_command

console = Console()

app = typer.Typer(
    name="discrete-hmm",
    help="Trainable discrete Hidden Markov Models with log-space Baum-Welch",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)

app.command("train")(train_command)


@app.command("info")
def system_info():
    """Display system information and the active HMM settings."""
    table = Table(title="System Information")
    table.add_column("Item", style="bold")
    table.add_column("Value")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("numpy", np.__version__)
    for key, value in get_config('hmm').items():
        table.add_row(f"hmm.{key}", str(value))
    console.print(table)


@app.command("version")
def show_version():
    """Show version information."""
    from .. import __version__

    console.print(Panel.fit(
        f"[bold]discrete-hmm Version {__version__}[/bold]\n"
        f"Trainable discrete Hidden Markov Models\n"
        f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        border_style="blue"
    ))


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging and debug information"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress all output except errors"
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode with detailed error traces"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to JSON configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False
    )
):
    """
    discrete-hmm: trainable discrete Hidden Markov Models

    \b
    Quick Start:
    discrete-hmm train --states S1,S2 --observations A,B --sequence A,B,A,B --score A,B
    """
    ctx.meta["verbose"] = verbose
    ctx.meta["quiet"] = quiet
    ctx.meta["debug"] = debug

    try:
        if config_file:
            load_config_file(str(config_file))
        configure_logging()
    except ValueError as e:
        handle_cli_error(e, "configuration loading", debug)

    if quiet:
        set_log_level('ERROR')
    elif verbose or debug:
        set_log_level('DEBUG')


def cli_main():
    """Main entry point for CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_CODES["general_error"])


if __name__ == "__main__":
    cli_main()
