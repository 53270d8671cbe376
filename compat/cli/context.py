from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

import typer

from compat.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from compat.core.errors import ErrorCode
from compat.core.result import Err
from compat.output.console import ConsoleProtocol, RichConsole
from compat.platform.http import HttpClient, RealHttpClient
from compat.services.versions import Version, parse_version


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    floor: Version
    compose_dir: Path
    http: HttpClient
    console: ConsoleProtocol


def build_context(
    *,
    config_path: Path | None = None,
    max_releases: int | None = None,
    floor: str | None = None,
    compose_dir: Path | None = None,
    require_compose_dir: bool = True,
    progress_to_stderr: bool = False,
) -> CLIContext:
    """Load config, apply CLI overrides, and wire production adapters.

    With ``progress_to_stderr`` the console writes to stderr, leaving stdout
    to the command's own machine-readable output.
    """
    console = RichConsole(stderr=progress_to_stderr)
    path = config_path or Path.cwd() / CONFIG_FILE_NAME

    loaded = load_config_or_default(path)
    if isinstance(loaded, Err):
        console.error(loaded.error.message)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = loaded.value

    if max_releases is not None:
        if max_releases < 1:
            console.error("--max-releases must be >= 1")
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = replace(config, catalog=replace(config.catalog, max_releases=max_releases))
    if floor is not None:
        config = replace(config, catalog=replace(config.catalog, floor=floor))

    parsed_floor = parse_version(config.catalog.floor)
    if parsed_floor is None:
        console.error(f"invalid floor version: {config.catalog.floor!r} (expected e.g. v1.13)")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    root = (compose_dir or Path(config.environment.compose_dir)).expanduser().resolve()
    if require_compose_dir and not root.is_dir():
        console.error(f"compose directory not found: {root}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        config=config,
        floor=parsed_floor,
        compose_dir=root,
        http=RealHttpClient(token=os.environ.get("GITHUB_TOKEN") or None),
        console=console,
    )
