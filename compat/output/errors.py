"""Error presentation utilities.

Centralized run-error formatting and exit code mapping: every fatal
condition names the stage that failed and maps to a stable exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from compat.core.errors import ErrorCode
from compat.output.console import Style
from compat.services.run_errors import (
    BuildFailure,
    CatalogUnavailable,
    ConnectivityTimeout,
    EnvironmentFailure,
    NoEligibleRelease,
    RegistrationFailure,
    RunError,
)

if TYPE_CHECKING:
    from compat.output.console import ConsoleProtocol

__all__ = ["print_run_error", "run_error_exit_code"]


def print_run_error(error: RunError, console: ConsoleProtocol) -> None:
    """Print run error to console with appropriate formatting."""
    match error:
        case CatalogUnavailable(url=url, message=message):
            console.error(f"catalog: release list unavailable: {message}")
            console.print(f"url: {url}", Style.DIM)
        case NoEligibleRelease(candidates=candidates):
            console.error("availability: no testable release")
            if candidates:
                listed = ", ".join(str(v) for v in candidates)
                console.print(f"no published image for: {listed}", Style.DIM)
            else:
                console.print("hint: the catalog returned no release at or above the floor", Style.DIM)
        case BuildFailure(artifact_tag=tag, returncode=rc, detail=detail):
            console.error(f"build: test image for {tag} failed (exit {rc})")
            if detail:
                console.print(detail, Style.DIM)
        case EnvironmentFailure(action=action, returncode=rc, detail=detail):
            console.error(f"environment: {action} failed (exit {rc})")
            if detail:
                console.print(detail, Style.DIM)
        case RegistrationFailure(spiffe_id=spiffe_id, detail=detail):
            console.error(f"identity: registering {spiffe_id} failed")
            if detail:
                console.print(detail, Style.DIM)
        case ConnectivityTimeout(artifact_tag=tag, mode=mode, attempts=attempts):
            console.error(f"probe: {mode} traffic not relayed for {tag} after {attempts} attempts")
            console.print(
                "hint: inspect proxy logs with `docker compose logs upstream-proxy downstream-proxy`",
                Style.DIM,
            )


def run_error_exit_code(error: RunError) -> int:
    """Get exit code for a run error."""
    match error:
        case CatalogUnavailable():
            return int(ErrorCode.NETWORK_ERROR)
        case NoEligibleRelease():
            return int(ErrorCode.NO_RELEASE)
        case BuildFailure():
            return int(ErrorCode.BUILD_ERROR)
        case EnvironmentFailure() | RegistrationFailure():
            return int(ErrorCode.ENV_ERROR)
        case ConnectivityTimeout():
            return int(ErrorCode.CONNECTIVITY_ERROR)
