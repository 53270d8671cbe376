from __future__ import annotations

from compat.core.result import Err, Ok
from compat.platform.http import HttpError, MockHttpClient
from compat.services.availability import AcceptedRelease, artifact_tag_for, filter_available
from compat.services.run_errors import ArtifactNotPublished
from compat.services.versions import Version

_REGISTRY = "https://registry.example.com/envoy/tags"
_CANDIDATES = (Version(1, 21), Version(1, 20), Version(1, 19), Version(1, 13))


def _http(published: set[str]) -> MockHttpClient:
    http = MockHttpClient()
    for tag in published:
        http.set_exists(f"{_REGISTRY}/{tag}", True)
    return http


def _probed(http: MockHttpClient) -> list[str]:
    return [url.rsplit("/", 1)[1] for kind, url in http.calls if kind == "exists"]


def test_artifact_tag_convention() -> None:
    assert artifact_tag_for(Version(1, 21)) == "v1.21-latest"
    assert AcceptedRelease.for_version(Version(1, 9)).artifact_tag == "v1.9-latest"


def test_all_published_stops_at_floor_inclusive() -> None:
    http = _http({"v1.21-latest", "v1.20-latest", "v1.19-latest", "v1.13-latest"})

    result = filter_available(http, _CANDIDATES, registry_url=_REGISTRY, floor=Version(1, 13))

    assert isinstance(result, Ok)
    assert [r.version for r in result.value] == list(_CANDIDATES)
    assert _probed(http) == ["v1.21-latest", "v1.20-latest", "v1.19-latest", "v1.13-latest"]


def test_missing_newest_is_skipped_not_failed() -> None:
    http = _http({"v1.20-latest", "v1.19-latest", "v1.13-latest"})
    skipped: list[ArtifactNotPublished] = []

    result = filter_available(
        http,
        _CANDIDATES,
        registry_url=_REGISTRY,
        floor=Version(1, 13),
        on_skip=skipped.append,
    )

    assert isinstance(result, Ok)
    assert result.value[0] == AcceptedRelease(version=Version(1, 20), artifact_tag="v1.20-latest")
    assert Version(1, 21) not in [r.version for r in result.value]
    assert skipped == [ArtifactNotPublished(version=Version(1, 21), artifact_tag="v1.21-latest")]


def test_stops_after_floor_even_with_older_candidates() -> None:
    candidates = (Version(1, 21), Version(1, 20), Version(1, 19))
    http = _http({"v1.21-latest", "v1.20-latest", "v1.19-latest"})

    result = filter_available(http, candidates, registry_url=_REGISTRY, floor=Version(1, 20))

    assert isinstance(result, Ok)
    assert [r.version for r in result.value] == [Version(1, 21), Version(1, 20)]
    assert "v1.19-latest" not in _probed(http)


def test_never_returns_versions_below_floor() -> None:
    candidates = (Version(1, 21), Version(1, 17))
    http = _http({"v1.21-latest", "v1.17-latest"})

    result = filter_available(http, candidates, registry_url=_REGISTRY, floor=Version(1, 18))

    assert isinstance(result, Ok)
    assert all(r.version >= Version(1, 18) for r in result.value)


def test_registry_error_counts_as_unpublished() -> None:
    http = _http({"v1.20-latest"})
    url = f"{_REGISTRY}/v1.21-latest"
    http.set_exists(url, HttpError(url=url, status=503, message="Service Unavailable"))
    skipped: list[ArtifactNotPublished] = []

    result = filter_available(
        http,
        (Version(1, 21), Version(1, 20)),
        registry_url=_REGISTRY + "/",
        floor=None,
        on_skip=skipped.append,
    )

    assert isinstance(result, Ok)
    assert [r.artifact_tag for r in result.value] == ["v1.20-latest"]
    assert skipped[0].reason is not None
    assert "503" in skipped[0].reason


def test_nothing_published_is_no_eligible_release() -> None:
    http = _http(set())

    result = filter_available(http, _CANDIDATES, registry_url=_REGISTRY, floor=Version(1, 13))

    assert isinstance(result, Err)
    assert result.error.candidates == _CANDIDATES


def test_empty_candidate_set_is_no_eligible_release() -> None:
    http = _http(set())

    result = filter_available(http, (), registry_url=_REGISTRY, floor=Version(1, 13))

    assert isinstance(result, Err)
    assert http.calls == []
