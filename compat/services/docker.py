"""Docker-backed collaborators.

Everything runs through the docker CLI from the compose directory, which
holds the Dockerfile for the test image, the compose file and the service
configuration.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path

from compat.core.result import Err, Ok, Result
from compat.platform.process import ProcessError, Runner, run
from compat.services.availability import AcceptedRelease
from compat.services.collaborators import Environment, WorkloadEntry
from compat.services.run_errors import BuildFailure, EnvironmentFailure, RegistrationFailure
from compat.services.timeouts import (
    COMPOSE_EXEC_TIMEOUT_SECONDS,
    COMPOSE_TIMEOUT_SECONDS,
    DOCKER_BUILD_TIMEOUT_SECONDS,
)

__all__ = ["DockerImageBuilder", "ComposeEnvironment", "SpireServer"]


def _env_failure(action: str, error: ProcessError) -> EnvironmentFailure:
    return EnvironmentFailure(action=action, returncode=error.returncode, detail=error.detail())


class DockerImageBuilder:
    """Builds the proxy+agent test image on top of a given upstream tag.

    The Dockerfile is expected to take the upstream image tag as the
    ``ENVOY_IMAGE_TAG`` build argument.
    """

    def __init__(self, *, compose_dir: Path, image_name: str, runner: Runner = run) -> None:
        self._compose_dir = compose_dir
        self._image_name = image_name
        self._runner = runner

    def build(self, release: AcceptedRelease) -> Result[str, BuildFailure]:
        cmd = [
            "docker",
            "build",
            "--build-arg",
            f"ENVOY_IMAGE_TAG={release.artifact_tag}",
            "-t",
            self._image_name,
            ".",
        ]
        result = self._runner(cmd, cwd=self._compose_dir, timeout=DOCKER_BUILD_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                BuildFailure(
                    artifact_tag=release.artifact_tag,
                    returncode=result.error.returncode,
                    detail=result.error.detail(),
                )
            )
        return Ok(self._image_name)


class ComposeEnvironment:
    """``docker compose`` project rooted at ``compose_dir``."""

    def __init__(self, *, compose_dir: Path, runner: Runner = run) -> None:
        self._compose_dir = compose_dir
        self._runner = runner

    def _compose(
        self, args: list[str], *, action: str, timeout: float
    ) -> Result[str, EnvironmentFailure]:
        result = self._runner(
            ["docker", "compose", *args], cwd=self._compose_dir, timeout=timeout
        )
        if isinstance(result, Err):
            return Err(_env_failure(action, result.error))
        return result

    def start(self, services: Sequence[str] | None = None) -> Result[None, EnvironmentFailure]:
        names = list(services or [])
        result = self._compose(
            ["up", "-d", *names],
            action=f"start {' '.join(names) or 'all services'}",
            timeout=COMPOSE_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return result
        return Ok(None)

    def stop(self, services: Sequence[str] | None = None) -> Result[None, EnvironmentFailure]:
        if not services:
            result = self._compose(
                ["down", "--remove-orphans"], action="down", timeout=COMPOSE_TIMEOUT_SECONDS
            )
            if isinstance(result, Err):
                return result
            return Ok(None)

        names = list(services)
        label = " ".join(names)
        stopped = self._compose(
            ["stop", *names], action=f"stop {label}", timeout=COMPOSE_TIMEOUT_SECONDS
        )
        if isinstance(stopped, Err):
            return stopped
        removed = self._compose(
            ["rm", "-f", *names], action=f"remove {label}", timeout=COMPOSE_TIMEOUT_SECONDS
        )
        if isinstance(removed, Err):
            return removed
        return Ok(None)

    def exec(self, service: str, script: str) -> Result[str, EnvironmentFailure]:
        return self._compose(
            ["exec", "-T", service, "sh", "-c", script],
            action=f"exec in {service}",
            timeout=COMPOSE_EXEC_TIMEOUT_SECONDS,
        )


class SpireServer:
    """SPIRE server CLI, executed inside its compose service."""

    def __init__(
        self,
        *,
        environment: Environment,
        service: str = "spire-server",
        binary: str = "/opt/spire/bin/spire-server",
    ) -> None:
        self._environment = environment
        self._service = service
        self._binary = binary

    def _cli(self, *args: str) -> Result[str, EnvironmentFailure]:
        return self._environment.exec(self._service, shlex.join([self._binary, *args]))

    def healthcheck(self) -> bool:
        return isinstance(self._cli("healthcheck"), Ok)

    def bundle(self) -> Result[str, EnvironmentFailure]:
        result = self._cli("bundle", "show")
        if isinstance(result, Ok) and not result.value.strip():
            return Err(EnvironmentFailure(action="bundle show", returncode=0, detail="empty bundle"))
        return result

    def register(self, entry: WorkloadEntry) -> Result[None, RegistrationFailure]:
        result = self._cli(
            "entry",
            "create",
            "-parentID",
            entry.parent_id,
            "-spiffeID",
            entry.spiffe_id,
            "-selector",
            entry.selector,
            "-x509SVIDTTL",
            str(entry.ttl_seconds),
        )
        if isinstance(result, Ok):
            return Ok(None)
        # Re-registering after an interrupted run is harmless.
        if "similar entry already exists" in result.error.detail.lower():
            return Ok(None)
        return Err(RegistrationFailure(spiffe_id=entry.spiffe_id, detail=result.error.detail))
