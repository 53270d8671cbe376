"""Error codes for CLI exit status.

A compatibility run is binary pass/fail; the exit code tells CI *which*
stage broke. Values are part of the CLI contract and must stay stable:

- 0: Success (every selected release passed both probes)
- 1: User error (bad arguments, invalid config file)
- 2: Environment error (docker/compose failure, identity registration)
- 3: Build error (test image could not be built)
- 4: Network error (release catalog unreachable)
- 5: No eligible release (catalog reachable, nothing to test)
- 6: Connectivity error (a probe exhausted its retry budget)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    NO_RELEASE = 5
    CONNECTIVITY_ERROR = 6
