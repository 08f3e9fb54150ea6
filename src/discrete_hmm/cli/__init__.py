"""
Command-line interface.

Typer application exposing model training and scoring.
"""

from .main import app, cli_main

__all__ = ["app", "cli_main"]
