"""Narrow interfaces to the external systems a run drives.

The orchestration only needs five capabilities: build an image, start and
stop services, execute a command inside a service, and talk to the
identity server. Production implementations live in
``compat.services.docker``; the mocks below back the unit tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from compat.core.result import Err, Ok, Result
from compat.services.run_errors import BuildFailure, EnvironmentFailure, RegistrationFailure

if TYPE_CHECKING:
    from compat.services.availability import AcceptedRelease

__all__ = [
    "WorkloadEntry",
    "Builder",
    "Environment",
    "IdentityService",
    "MockBuilder",
    "MockEnvironment",
    "MockIdentityService",
]


@dataclass(frozen=True, slots=True)
class WorkloadEntry:
    """Registration entry binding a workload selector to a SPIFFE ID."""

    parent_id: str
    spiffe_id: str
    selector: str
    ttl_seconds: int


class Builder(Protocol):
    def build(self, release: AcceptedRelease) -> Result[str, BuildFailure]:
        """Build the test image for ``release``; returns the image name."""
        ...


class Environment(Protocol):
    def start(self, services: Sequence[str] | None = None) -> Result[None, EnvironmentFailure]:
        """Start ``services`` (all services when None)."""
        ...

    def stop(self, services: Sequence[str] | None = None) -> Result[None, EnvironmentFailure]:
        """Stop and remove ``services`` (everything when None)."""
        ...

    def exec(self, service: str, script: str) -> Result[str, EnvironmentFailure]:
        """Run a shell script inside a running service; returns its stdout."""
        ...


class IdentityService(Protocol):
    def healthcheck(self) -> bool: ...

    def bundle(self) -> Result[str, EnvironmentFailure]:
        """Trust bundle (PEM) agents need to bootstrap."""
        ...

    def register(self, entry: WorkloadEntry) -> Result[None, RegistrationFailure]: ...


# -----------------------------------------------------------------------------
# Mocks
# -----------------------------------------------------------------------------


@dataclass
class MockBuilder:
    """Records builds; fails for artifact tags listed in ``fail_tags``."""

    image_name: str = "envoy-agent-mashup"
    fail_tags: frozenset[str] = frozenset()
    built: list[str] = field(default_factory=list)

    def build(self, release: AcceptedRelease) -> Result[str, BuildFailure]:
        self.built.append(release.artifact_tag)
        if release.artifact_tag in self.fail_tags:
            return Err(BuildFailure(artifact_tag=release.artifact_tag, returncode=1))
        return Ok(self.image_name)


ExecHandler = Callable[[str, str], Result[str, EnvironmentFailure]]


def _empty_exec(service: str, script: str) -> Result[str, EnvironmentFailure]:
    return Ok("")


@dataclass
class MockEnvironment:
    """Records lifecycle calls; ``exec`` is delegated to ``on_exec``."""

    on_exec: ExecHandler = _empty_exec
    fail_start: bool = False
    fail_stop: bool = False
    calls: list[tuple[str, tuple[str, ...] | None]] = field(default_factory=list)

    def start(self, services: Sequence[str] | None = None) -> Result[None, EnvironmentFailure]:
        self.calls.append(("start", tuple(services) if services is not None else None))
        if self.fail_start:
            return Err(EnvironmentFailure(action="start", returncode=1))
        return Ok(None)

    def stop(self, services: Sequence[str] | None = None) -> Result[None, EnvironmentFailure]:
        self.calls.append(("stop", tuple(services) if services is not None else None))
        if self.fail_stop:
            return Err(EnvironmentFailure(action="stop", returncode=1))
        return Ok(None)

    def exec(self, service: str, script: str) -> Result[str, EnvironmentFailure]:
        return self.on_exec(service, script)


@dataclass
class MockIdentityService:
    """Becomes healthy after ``healthy_after`` failed health checks."""

    healthy_after: int = 0
    bundle_pem: str = "-----BEGIN CERTIFICATE-----\nMOCK\n-----END CERTIFICATE-----\n"
    fail_register: frozenset[str] = frozenset()
    health_checks: int = 0
    registered: list[WorkloadEntry] = field(default_factory=list)

    def healthcheck(self) -> bool:
        self.health_checks += 1
        return self.health_checks > self.healthy_after

    def bundle(self) -> Result[str, EnvironmentFailure]:
        return Ok(self.bundle_pem)

    def register(self, entry: WorkloadEntry) -> Result[None, RegistrationFailure]:
        if entry.spiffe_id in self.fail_register:
            return Err(RegistrationFailure(spiffe_id=entry.spiffe_id, detail="rejected (mock)"))
        self.registered.append(entry)
        return Ok(None)
