"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from compat.output.errors import print_run_error, run_error_exit_code

if TYPE_CHECKING:
    from compat.cli.context import CLIContext
    from compat.services.run_errors import RunError


def exit_on_run_error(error: RunError, ctx: CLIContext) -> NoReturn:
    """Report a fatal run error and exit with its mapped code."""
    print_run_error(error, ctx.console)
    raise typer.Exit(code=run_error_exit_code(error))
