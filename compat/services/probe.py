"""Bounded-retry connectivity probe.

The proxies, the agents feeding them certificates, and the socat relays
all start asynchronously; the first few attempts routinely fail while SDS
secrets are still being delivered. Instead of a readiness protocol between
those processes, a probe simply retries an end-to-end exchange a fixed
number of times.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

__all__ = ["ProbeResult", "TransportMode", "probe_connectivity"]


class TransportMode(Enum):
    """Connection variant exercised through the downstream proxy."""

    MTLS = "mtls"
    TLS = "tls"

    def __str__(self) -> str:
        return "mTLS" if self is TransportMode.MTLS else "TLS"

    @property
    def payload(self) -> str:
        return f"HELLO_{self.value.upper()}"

    @property
    def injector_service(self) -> str:
        return f"downstream-socat-{self.value}"

    @property
    def listener_port(self) -> int:
        return 8001 if self is TransportMode.MTLS else 8002


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of a probe.

    Attributes:
        succeeded: True if some attempt both injected and observed the signal
        attempts: Attempt that succeeded, or the full budget on failure
    """

    succeeded: bool
    attempts: int


def probe_connectivity(
    inject: Callable[[], bool],
    observe: Callable[[], bool],
    *,
    max_attempts: int,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Callable[[int], None] | None = None,
) -> ProbeResult:
    """Run inject-then-observe until both succeed in the same attempt.

    ``observe`` is only called after a successful ``inject`` and must
    consume what it reads, so a signal from an earlier attempt can never
    satisfy a later one. Sleeps ``interval`` between attempts, never after
    the last one.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        if inject() and observe():
            return ProbeResult(succeeded=True, attempts=attempt)

        if attempt < attempts:
            if on_retry is not None:
                on_retry(attempt)
            sleep(interval)

    return ProbeResult(succeeded=False, attempts=attempts)
