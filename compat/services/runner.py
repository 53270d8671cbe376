"""Per-release test orchestration.

Each accepted release goes through::

    Building -> Starting -> Probing(mTLS) -> Probing(TLS) -> TearingDown -> Done

and any failure ends in ``Failed`` and aborts the remaining releases. The
identity server is *not* part of that cycle: ``SharedInfrastructure``
starts it once, before the first release, and stops it once at the end.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from compat.core.result import Err, Ok, Result
from compat.output.console import Style
from compat.services.collaborators import WorkloadEntry
from compat.services.probe import ProbeResult, TransportMode, probe_connectivity
from compat.services.run_errors import (
    ConnectivityTimeout,
    EnvironmentFailure,
    RunError,
)
from compat.services.timeouts import IDENTITY_READY_ATTEMPTS, IDENTITY_READY_DELAY_SECONDS

if TYPE_CHECKING:
    from compat.core.config import IdentityConfig, ProbeConfig
    from compat.output.console import ConsoleProtocol
    from compat.services.availability import AcceptedRelease
    from compat.services.collaborators import Builder, Environment, IdentityService

__all__ = [
    "Stage",
    "RunOutcome",
    "RunReport",
    "SharedInfrastructure",
    "ReleaseTestRunner",
    "workload_entries",
]

# Upstream relay: socat appends everything it receives to this file.
CAPTURE_SERVICE = "upstream-socat"
CAPTURE_FILE = "/tmp/howdy"
# Read and truncate in one exec so a stale payload is never seen twice.
_OBSERVE_SCRIPT = f"cat {CAPTURE_FILE} 2>/dev/null; : > {CAPTURE_FILE}"


def _inject_script(mode: TransportMode) -> str:
    return f"echo {mode.payload} | socat -u STDIN TCP:downstream-proxy:{mode.listener_port}"


class Stage(Enum):
    BUILDING = "building"
    STARTING = "starting"
    PROBING_MTLS = "probing mTLS"
    PROBING_TLS = "probing TLS"
    TEARING_DOWN = "tearing down"
    DONE = "done"
    FAILED = "failed"


_PROBE_STAGES = (
    (TransportMode.MTLS, Stage.PROBING_MTLS),
    (TransportMode.TLS, Stage.PROBING_TLS),
)


@dataclass(frozen=True, slots=True)
class RunOutcome:
    release: AcceptedRelease
    mtls: ProbeResult
    tls: ProbeResult

    @property
    def passed(self) -> bool:
        return self.mtls.succeeded and self.tls.succeeded


@dataclass(frozen=True, slots=True)
class RunReport:
    outcomes: tuple[RunOutcome, ...]

    @property
    def passed(self) -> bool:
        return bool(self.outcomes) and all(o.passed for o in self.outcomes)


def workload_entries(config: IdentityConfig) -> tuple[WorkloadEntry, ...]:
    """One registration entry per proxy workload."""
    return tuple(
        WorkloadEntry(
            parent_id=config.parent_id,
            spiffe_id=f"spiffe://{config.trust_domain}/{workload}",
            selector=f"docker:label:envoy-compat.service:{workload}",
            ttl_seconds=config.svid_ttl_seconds,
        )
        for workload in config.workloads
    )


class SharedInfrastructure:
    """Long-lived identity server shared by every release iteration.

    Use as a context manager: ``close()`` runs exactly once, when the
    whole run is over, whatever happened in between.
    """

    def __init__(
        self,
        *,
        environment: Environment,
        identity: IdentityService,
        identity_config: IdentityConfig,
        services: Sequence[str],
        bundle_path: Path,
        console: ConsoleProtocol,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._environment = environment
        self._identity = identity
        self._identity_config = identity_config
        self._services = tuple(services)
        self._bundle_path = bundle_path
        self._console = console
        self._sleep = sleep
        self._ready = False
        self._closed = False

    @property
    def ready(self) -> bool:
        return self._ready and not self._closed

    def bootstrap(self) -> Result[None, RunError]:
        """Start the identity server, export its bundle, register workloads."""
        console = self._console
        console.header("Shared infrastructure")

        started = self._environment.start(self._services)
        if isinstance(started, Err):
            return started

        health = probe_connectivity(
            inject=self._identity.healthcheck,
            observe=lambda: True,
            max_attempts=IDENTITY_READY_ATTEMPTS,
            interval=IDENTITY_READY_DELAY_SECONDS,
            sleep=self._sleep,
        )
        if not health.succeeded:
            return Err(
                EnvironmentFailure(
                    action="wait for identity server",
                    returncode=-1,
                    detail=f"not healthy after {health.attempts} checks",
                )
            )
        console.success(f"identity server healthy ({', '.join(self._services)})")

        bundle = self._identity.bundle()
        if isinstance(bundle, Err):
            return bundle
        try:
            self._bundle_path.parent.mkdir(parents=True, exist_ok=True)
            self._bundle_path.write_text(bundle.value, encoding="utf-8")
        except OSError as e:
            return Err(EnvironmentFailure(action="write trust bundle", returncode=-1, detail=str(e)))
        console.print(f"bundle: {self._bundle_path}", Style.DIM)

        for entry in workload_entries(self._identity_config):
            registered = self._identity.register(entry)
            if isinstance(registered, Err):
                return registered
            console.print(f"registered {entry.spiffe_id}", Style.DIM)

        self._ready = True
        return Ok(None)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        result = self._environment.stop(None)
        if isinstance(result, Err):
            self._console.warning(f"final teardown failed: {result.error.action}")

    def __enter__(self) -> SharedInfrastructure:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: object | None,
    ) -> None:
        self.close()


class ReleaseTestRunner:
    """Runs the build/start/probe/teardown cycle for each release."""

    def __init__(
        self,
        *,
        builder: Builder,
        environment: Environment,
        services: Sequence[str],
        probe: ProbeConfig,
        console: ConsoleProtocol,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._builder = builder
        self._environment = environment
        self._services = tuple(services)
        self._probe = probe
        self._console = console
        self._sleep = sleep
        self.transitions: list[tuple[str, Stage]] = []

    def _enter(self, release: AcceptedRelease, stage: Stage) -> None:
        self.transitions.append((release.artifact_tag, stage))
        self._console.step(release.artifact_tag, stage.value)

    def run_all(
        self, releases: Sequence[AcceptedRelease], shared: SharedInfrastructure
    ) -> Result[RunReport, RunError]:
        """Test releases in order; the first failure aborts the run."""
        outcomes: list[RunOutcome] = []
        for release in releases:
            self._console.header(f"Envoy {release.version}")
            result = self.run_release(release, shared)
            if isinstance(result, Err):
                return result
            outcomes.append(result.value)
            self._console.success(f"{release.artifact_tag} passed")
        return Ok(RunReport(outcomes=tuple(outcomes)))

    def run_release(
        self, release: AcceptedRelease, shared: SharedInfrastructure
    ) -> Result[RunOutcome, RunError]:
        if not shared.ready:
            return Err(
                EnvironmentFailure(
                    action="use shared infrastructure",
                    returncode=-1,
                    detail="identity server was not bootstrapped",
                )
            )

        self._enter(release, Stage.BUILDING)
        built = self._builder.build(release)
        if isinstance(built, Err):
            self._enter(release, Stage.FAILED)
            return built

        self._enter(release, Stage.STARTING)
        outcome = self._start_and_probe(release)

        self._enter(release, Stage.TEARING_DOWN)
        stopped = self._environment.stop(self._services)
        if isinstance(stopped, Err):
            self._console.warning(f"teardown failed: {stopped.error.action}")

        if isinstance(outcome, Err):
            self._enter(release, Stage.FAILED)
            return outcome
        self._enter(release, Stage.DONE)
        return outcome

    def _start_and_probe(self, release: AcceptedRelease) -> Result[RunOutcome, RunError]:
        started = self._environment.start(self._services)
        if isinstance(started, Err):
            return started

        results: dict[TransportMode, ProbeResult] = {}
        for mode, stage in _PROBE_STAGES:
            self._enter(release, stage)
            result = self.probe(release, mode)
            if not result.succeeded:
                return Err(
                    ConnectivityTimeout(
                        artifact_tag=release.artifact_tag, mode=mode, attempts=result.attempts
                    )
                )
            self._console.success(f"{mode} traffic relayed (attempt {result.attempts})")
            results[mode] = result

        return Ok(
            RunOutcome(
                release=release,
                mtls=results[TransportMode.MTLS],
                tls=results[TransportMode.TLS],
            )
        )

    def probe(self, release: AcceptedRelease, mode: TransportMode) -> ProbeResult:
        """Send ``mode.payload`` through the proxies and look for it upstream."""
        env = self._environment
        max_attempts = self._probe.max_attempts

        def inject() -> bool:
            return isinstance(env.exec(mode.injector_service, _inject_script(mode)), Ok)

        def observe() -> bool:
            captured = env.exec(CAPTURE_SERVICE, _OBSERVE_SCRIPT)
            return isinstance(captured, Ok) and mode.payload in captured.value

        def on_retry(attempt: int) -> None:
            self._console.print(
                f"{release.artifact_tag}: {mode} attempt {attempt}/{max_attempts} failed, retrying",
                Style.DIM,
            )

        return probe_connectivity(
            inject,
            observe,
            max_attempts=max_attempts,
            interval=self._probe.interval_seconds,
            sleep=self._sleep,
            on_retry=on_retry,
        )
