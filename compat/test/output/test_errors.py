from __future__ import annotations

import pytest

from compat.core.errors import ErrorCode
from compat.output.console import MockConsole
from compat.output.errors import print_run_error, run_error_exit_code
from compat.services.probe import TransportMode
from compat.services.run_errors import (
    BuildFailure,
    CatalogUnavailable,
    ConnectivityTimeout,
    EnvironmentFailure,
    NoEligibleRelease,
    RegistrationFailure,
    RunError,
)
from compat.services.versions import Version


@pytest.mark.parametrize(
    ("error", "code", "stage"),
    [
        (CatalogUnavailable(url="https://x", message="HTTP 503"), ErrorCode.NETWORK_ERROR, "catalog"),
        (NoEligibleRelease(candidates=()), ErrorCode.NO_RELEASE, "availability"),
        (BuildFailure(artifact_tag="v1.21-latest", returncode=1), ErrorCode.BUILD_ERROR, "build"),
        (
            EnvironmentFailure(action="start upstream-proxy", returncode=1),
            ErrorCode.ENV_ERROR,
            "environment",
        ),
        (
            RegistrationFailure(spiffe_id="spiffe://domain.test/upstream-proxy"),
            ErrorCode.ENV_ERROR,
            "identity",
        ),
        (
            ConnectivityTimeout(artifact_tag="v1.21-latest", mode=TransportMode.MTLS, attempts=15),
            ErrorCode.CONNECTIVITY_ERROR,
            "probe",
        ),
    ],
)
def test_every_error_names_its_stage_and_exit_code(
    error: RunError, code: ErrorCode, stage: str
) -> None:
    console = MockConsole()

    print_run_error(error, console)

    assert console.has_error()
    assert console.outputs[0].message.startswith(f"error: {stage}:")
    assert run_error_exit_code(error) == int(code)


def test_no_eligible_release_lists_candidates() -> None:
    console = MockConsole()

    print_run_error(NoEligibleRelease(candidates=(Version(1, 21), Version(1, 20))), console)

    assert console.find("v1.21, v1.20")


def test_connectivity_timeout_mentions_mode_and_attempts() -> None:
    console = MockConsole()

    print_run_error(
        ConnectivityTimeout(artifact_tag="v1.20-latest", mode=TransportMode.TLS, attempts=15),
        console,
    )

    assert "TLS traffic not relayed for v1.20-latest after 15 attempts" in console.text


def test_build_failure_prints_detail() -> None:
    console = MockConsole()

    print_run_error(
        BuildFailure(artifact_tag="v1.21-latest", returncode=1, detail="manifest unknown"),
        console,
    )

    assert "manifest unknown" in console.text
