from __future__ import annotations

from pathlib import Path

import typer

from compat.cli.commands._helpers import exit_on_run_error
from compat.cli.context import CLIContext, build_context
from compat.core.result import Err
from compat.output.console import Style
from compat.services.run import RunService
from compat.services.runner import RunReport


def run(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Resolve and filter releases, then stop."
    ),
    max_releases: int | None = typer.Option(
        None, "--max-releases", help="Maximum number of releases to consider."
    ),
    floor: str | None = typer.Option(
        None, "--floor", help="Oldest release to test (e.g. v1.13)."
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: ./envoy-compat.toml)."
    ),
    compose_dir: Path | None = typer.Option(
        None, "--compose-dir", help="Directory holding the compose project and Dockerfile."
    ),
) -> None:
    """Test the SDS integration against recent Envoy releases."""
    ctx = build_context(
        config_path=config,
        max_releases=max_releases,
        floor=floor,
        compose_dir=compose_dir,
    )
    ctx.console.print(f"compose dir: {ctx.compose_dir}", Style.DIM)

    service = RunService(
        config=ctx.config,
        floor=ctx.floor,
        http=ctx.http,
        console=ctx.console,
        compose_dir=ctx.compose_dir,
    )
    result = service.run(dry_run=dry_run)
    if isinstance(result, Err):
        exit_on_run_error(result.error, ctx)

    if result.value is not None:
        _print_summary(ctx, result.value)


def _print_summary(ctx: CLIContext, report: RunReport) -> None:
    console = ctx.console
    console.header("Summary")
    for outcome in report.outcomes:
        console.print(
            f"{outcome.release.artifact_tag}: mTLS in {outcome.mtls.attempts}, "
            f"TLS in {outcome.tls.attempts} attempt(s)",
            Style.SUCCESS,
        )
    console.success(f"{len(report.outcomes)} release(s) passed")
