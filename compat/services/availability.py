"""Registry availability filter.

Upstream publishes release tags before the matching container images, so
a fresh release can be missing from the registry for a while. Those
versions are skipped, not failed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from compat.core.result import Err, Ok, Result
from compat.services.run_errors import ArtifactNotPublished, NoEligibleRelease
from compat.services.versions import CandidateSet, Version

if TYPE_CHECKING:
    from compat.platform.http import HttpClient

__all__ = ["AcceptedRelease", "artifact_tag_for", "filter_available"]


def artifact_tag_for(version: Version) -> str:
    return f"{version}-latest"


@dataclass(frozen=True, slots=True)
class AcceptedRelease:
    """A version with a published image, ready to be tested."""

    version: Version
    artifact_tag: str

    @classmethod
    def for_version(cls, version: Version) -> AcceptedRelease:
        return cls(version=version, artifact_tag=artifact_tag_for(version))


def filter_available(
    http: HttpClient,
    candidates: CandidateSet,
    *,
    registry_url: str,
    floor: Version | None,
    on_skip: Callable[[ArtifactNotPublished], None] | None = None,
) -> Result[tuple[AcceptedRelease, ...], NoEligibleRelease]:
    """Keep candidates whose ``{version}-latest`` image exists.

    Walks ``candidates`` newest first and stops after the floor version
    (inclusive). Each version is checked once; lookups that fail for any
    reason count as "not published" and are reported through ``on_skip``.

    Returns:
        Ok(releases), newest first, or Err(NoEligibleRelease) if none remain
    """
    accepted: list[AcceptedRelease] = []
    base = registry_url.rstrip("/")

    for version in candidates:
        if floor is not None and version < floor:
            break

        tag = artifact_tag_for(version)
        result = http.exists(f"{base}/{tag}")
        if isinstance(result, Ok) and result.value:
            accepted.append(AcceptedRelease.for_version(version))
        elif on_skip is not None:
            reason = str(result.error) if isinstance(result, Err) else None
            on_skip(ArtifactNotPublished(version=version, artifact_tag=tag, reason=reason))

        if version == floor:
            break

    if not accepted:
        return Err(NoEligibleRelease(candidates=candidates))
    return Ok(tuple(accepted))
