"""
Error handling for CLI commands.

Defines CLI exceptions and renders library errors with helpful suggestions.
"""

import traceback
from typing import List, Optional

import typer
from rich.console import Console

from ..exceptions import (
    EmptyMatrixError,
    EmptySequenceError,
    InvalidLabelError,
    ModelNotTrainedError,
    NormalizationError,
)
from ..logger import get_logger

console = Console()
logger = get_logger(__name__)

EXIT_CODES = {
    "success": 0,
    "general_error": 1,
    "invalid_input": 2,
}


class CLIError(Exception):
    """Base exception for CLI-specific errors."""

    def __init__(self, message: str, exit_code: int = 1, suggestions: Optional[list] = None):
        self.message = message
        self.exit_code = exit_code
        self.suggestions = suggestions or []
        super().__init__(message)


class InputError(CLIError):
    """Malformed command line input."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["invalid_input"], suggestions)


def suggestions_for(error: Exception) -> List[str]:
    """Suggestions for library errors that users can fix from the command line."""
    if isinstance(error, CLIError):
        return error.suggestions
    if isinstance(error, EmptyMatrixError):
        return ["Pass at least two states with --states and two symbols with --observations"]
    if isinstance(error, InvalidLabelError):
        return [f"Check that {error.label!r} is listed in --states or --observations",
                "Labels are case sensitive and separated by commas"]
    if isinstance(error, EmptySequenceError):
        return ["Pass a non-empty --sequence, e.g. --sequence A,B,A,B"]
    if isinstance(error, NormalizationError):
        return ["Lower --min-probability so every row can absorb the floor"]
    if isinstance(error, ModelNotTrainedError):
        return ["Use --max-iter 1 or more so the model gets trained"]
    return []


def format_error_message(error: Exception, operation: str, debug: bool = False) -> str:
    """Format error message with context and suggestions."""
    error_type = type(error).__name__

    message_parts = [
        f"[red]Error during {operation}:[/red]",
        f"[red]{error_type}: {error}[/red]"
    ]

    suggestions = suggestions_for(error)
    if suggestions:
        message_parts.append("")
        message_parts.append("[yellow]Suggestions:[/yellow]")
        for suggestion in suggestions:
            message_parts.append(f"  • {suggestion}")

    if debug:
        message_parts.append("")
        message_parts.append("[dim]Debug information:[/dim]")
        message_parts.append(f"[dim]{traceback.format_exc()}[/dim]")

    return "\n".join(message_parts)


def handle_cli_error(error: Exception, operation: str, debug: bool = False) -> None:
    """Print an error with rich formatting and exit with its exit code."""
    if isinstance(error, CLIError):
        exit_code = error.exit_code
    else:
        exit_code = EXIT_CODES["general_error"]

    console.print(format_error_message(error, operation, debug))
    console.print(f"\n[dim]For more help, run: discrete-hmm {operation.split()[0]} --help[/dim]")

    logger.error(f"CLI error in {operation}: {error}", exc_info=debug)

    raise typer.Exit(exit_code)


def parse_labels(value: str, option: str) -> List[str]:
    """
    Split a comma separated option value into labels.

    Raises:
        InputError: If the value holds no labels
    """
    labels = [label.strip() for label in value.split(",") if label.strip()]
    if not labels:
        raise InputError(
            f"{option} must contain at least one label",
            suggestions=[f"Example: {option} A,B,C"]
        )
    return labels
