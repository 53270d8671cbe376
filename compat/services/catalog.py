"""Release catalog lookup.

The catalog is the GitHub Releases API of the proxy under test. Only the
``tag_name`` of each release is consumed; one page is assumed to reach
back far enough, so there is no pagination.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

from compat.core.result import Err, Ok, Result
from compat.core.structured import as_obj_list, as_str_dict, get_bool, get_str
from compat.services.run_errors import CatalogUnavailable
from compat.services.versions import CandidateSet, Version, build_candidate_set

if TYPE_CHECKING:
    from compat.core.config import CatalogConfig
    from compat.platform.http import HttpClient

__all__ = ["catalog_url", "extract_release_tags", "resolve_candidates"]


def catalog_url(config: CatalogConfig) -> str:
    """Catalog URL with ``per_page`` set, unless the configured URL sets it."""
    query = parse_qs(urlsplit(config.url).query, keep_blank_values=True)
    if "per_page" in query:
        return config.url
    sep = "&" if "?" in config.url else "?"
    return f"{config.url}{sep}per_page={config.page_size}"


def extract_release_tags(payload: object) -> list[str]:
    """Pull stable release tags out of a releases payload.

    Anything unexpected (non-list payload, entries without a tag, drafts,
    pre-releases) is dropped rather than reported.
    """
    entries = as_obj_list(payload)
    if entries is None:
        return []

    tags: list[str] = []
    for entry in entries:
        release = as_str_dict(entry)
        if release is None:
            continue
        if get_bool(release, "draft") or get_bool(release, "prerelease"):
            continue
        tag = get_str(release, "tag_name")
        if tag is not None:
            tags.append(tag)
    return tags


def resolve_candidates(
    http: HttpClient,
    config: CatalogConfig,
    *,
    floor: Version | None,
) -> Result[CandidateSet, CatalogUnavailable]:
    """Fetch the catalog and return the ordered, bounded candidate set.

    Returns:
        Ok(CandidateSet), possibly empty, or Err(CatalogUnavailable) when
        the catalog cannot be fetched
    """
    url = catalog_url(config)
    result = http.get_json(url)
    if isinstance(result, Err):
        return Err(CatalogUnavailable(url=url, message=str(result.error)))

    tags = extract_release_tags(result.value)
    return Ok(build_candidate_set(tags, max_releases=config.max_releases, floor=floor))
