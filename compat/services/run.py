"""Compatibility run: plan releases, then test them one by one."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from compat.core.result import Err, Ok, Result
from compat.output.console import Style
from compat.platform.process import Runner, run
from compat.services.availability import AcceptedRelease, filter_available
from compat.services.catalog import resolve_candidates
from compat.services.docker import ComposeEnvironment, DockerImageBuilder, SpireServer
from compat.services.run_errors import ArtifactNotPublished, RunError
from compat.services.runner import ReleaseTestRunner, RunReport, SharedInfrastructure

if TYPE_CHECKING:
    from compat.core.config import Config
    from compat.output.console import ConsoleProtocol
    from compat.platform.http import HttpClient
    from compat.services.collaborators import Builder, Environment, IdentityService
    from compat.services.versions import Version

__all__ = ["RunService", "BUNDLE_FILE_NAME"]

BUNDLE_FILE_NAME = "bundle.crt"


class RunService:
    """Resolve, filter and test releases for one invocation.

    Collaborators default to the docker-backed implementations rooted at
    ``compose_dir``; tests pass mocks instead.
    """

    def __init__(
        self,
        *,
        config: Config,
        floor: Version,
        http: HttpClient,
        console: ConsoleProtocol,
        compose_dir: Path,
        runner: Runner = run,
        builder: Builder | None = None,
        environment: Environment | None = None,
        identity: IdentityService | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._floor = floor
        self._http = http
        self._console = console
        self._compose_dir = compose_dir
        self._sleep = sleep

        if environment is None:
            environment = ComposeEnvironment(compose_dir=compose_dir, runner=runner)
        if builder is None:
            builder = DockerImageBuilder(
                compose_dir=compose_dir,
                image_name=config.environment.image_name,
                runner=runner,
            )
        if identity is None:
            identity = SpireServer(
                environment=environment, service=config.identity.server_service
            )
        self._environment = environment
        self._builder = builder
        self._identity = identity

    def plan(self) -> Result[tuple[AcceptedRelease, ...], RunError]:
        """Resolve candidates from the catalog and keep the published ones."""
        console = self._console
        console.header("Releases")

        candidates = resolve_candidates(self._http, self._config.catalog, floor=self._floor)
        if isinstance(candidates, Err):
            return candidates

        listed = ", ".join(str(v) for v in candidates.value) or "none"
        console.print(f"candidates (floor {self._floor}): {listed}", Style.DIM)

        return filter_available(
            self._http,
            candidates.value,
            registry_url=self._config.registry.url,
            floor=self._floor,
            on_skip=self._report_skip,
        )

    def _report_skip(self, skipped: ArtifactNotPublished) -> None:
        message = f"{skipped.artifact_tag}: image not published, skipping"
        if skipped.reason:
            message += f" ({skipped.reason})"
        self._console.warning(message)

    def execute(self, releases: tuple[AcceptedRelease, ...]) -> Result[RunReport, RunError]:
        """Bring up shared infrastructure once and test every release."""
        env_cfg = self._config.environment
        with SharedInfrastructure(
            environment=self._environment,
            identity=self._identity,
            identity_config=self._config.identity,
            services=env_cfg.shared_services,
            bundle_path=self._compose_dir / BUNDLE_FILE_NAME,
            console=self._console,
            sleep=self._sleep,
        ) as shared:
            booted = shared.bootstrap()
            if isinstance(booted, Err):
                return booted

            runner = ReleaseTestRunner(
                builder=self._builder,
                environment=self._environment,
                services=env_cfg.per_release_services,
                probe=self._config.probe,
                console=self._console,
                sleep=self._sleep,
            )
            return runner.run_all(releases, shared)

    def run(self, *, dry_run: bool = False) -> Result[RunReport | None, RunError]:
        """Plan, then execute unless ``dry_run``.

        Nothing is built or started when planning fails.
        """
        planned = self.plan()
        if isinstance(planned, Err):
            return planned

        releases = planned.value
        self._console.info(f"testing: {', '.join(r.artifact_tag for r in releases)}")
        if dry_run:
            return Ok(None)

        executed = self.execute(releases)
        if isinstance(executed, Err):
            return executed
        return Ok(executed.value)
