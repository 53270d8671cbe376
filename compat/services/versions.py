from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

# Stable release tags only: v1.21, v1.21.3, 1.21.3. Anything with a
# pre-release or build suffix (v1.21.0-rc1, v1.22.0-dev) does not match.
_RELEASE_RE = re.compile(r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?$")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    """A release family: major.minor, point release dropped.

    Ordering compares the integer pair, so v1.10 > v1.9.
    """

    major: int
    minor: int

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}"


CandidateSet = tuple[Version, ...]


def parse_release_tag(tag: str) -> Version | None:
    """Normalize a release tag to its version family.

    Returns None for malformed or suffixed tags.
    """
    m = _RELEASE_RE.match(tag.strip())
    if m is None:
        return None
    return Version(int(m.group(1)), int(m.group(2)))


def parse_version(text: str) -> Version | None:
    """Parse a user-supplied version such as ``v1.13`` or ``1.13.0``."""
    return parse_release_tag(text)


def build_candidate_set(
    tags: Iterable[str],
    *,
    max_releases: int,
    floor: Version | None = None,
) -> CandidateSet:
    """Normalize, dedupe and order tags, newest first.

    Collection stops at ``max_releases`` entries or once the floor has been
    taken, whichever comes first. Nothing older than the floor is kept.
    """
    families = {v for v in (parse_release_tag(t) for t in tags) if v is not None}

    out: list[Version] = []
    for version in sorted(families, reverse=True):
        if len(out) >= max_releases:
            break
        if floor is not None and version < floor:
            break
        out.append(version)
        if version == floor:
            break
    return tuple(out)
