from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from compat.services.probe import TransportMode
    from compat.services.versions import Version


@dataclass(frozen=True, slots=True)
class CatalogUnavailable:
    url: str
    message: str


@dataclass(frozen=True, slots=True)
class NoEligibleRelease:
    """The catalog answered, but no candidate has a published image."""

    candidates: tuple[Version, ...]


@dataclass(frozen=True, slots=True)
class ArtifactNotPublished:
    """Registry has no image for this version yet. A skip, never fatal."""

    version: Version
    artifact_tag: str
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class BuildFailure:
    artifact_tag: str
    returncode: int
    detail: str = ""


@dataclass(frozen=True, slots=True)
class EnvironmentFailure:
    action: str
    returncode: int
    detail: str = ""


@dataclass(frozen=True, slots=True)
class RegistrationFailure:
    spiffe_id: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class ConnectivityTimeout:
    artifact_tag: str
    mode: TransportMode
    attempts: int


RunError = (
    CatalogUnavailable
    | NoEligibleRelease
    | BuildFailure
    | EnvironmentFailure
    | RegistrationFailure
    | ConnectivityTimeout
)
