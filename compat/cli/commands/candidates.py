from __future__ import annotations

from pathlib import Path

import typer

from compat.cli.commands._helpers import exit_on_run_error
from compat.cli.context import build_context
from compat.core.result import Err
from compat.services.run import RunService


def candidates(
    max_releases: int | None = typer.Option(
        None, "--max-releases", help="Maximum number of releases to consider."
    ),
    floor: str | None = typer.Option(None, "--floor", help="Oldest release to list."),
    config: Path | None = typer.Option(None, "--config", help="Config file."),
) -> None:
    """List releases that would be tested, without touching docker.

    Artifact tags go to stdout, one per line, so the list can be piped;
    progress and warnings go to stderr.
    """
    ctx = build_context(
        config_path=config,
        max_releases=max_releases,
        floor=floor,
        require_compose_dir=False,
        progress_to_stderr=True,
    )
    service = RunService(
        config=ctx.config,
        floor=ctx.floor,
        http=ctx.http,
        console=ctx.console,
        compose_dir=ctx.compose_dir,
    )

    planned = service.plan()
    if isinstance(planned, Err):
        exit_on_run_error(planned.error, ctx)

    for release in planned.value:
        typer.echo(release.artifact_tag)
