"""Typed configuration loading and access.

The runner works without any config file; ``envoy-compat.toml`` only
overrides defaults. Layout:

    [catalog]
    url = "https://api.github.com/repos/envoyproxy/envoy/releases"
    page_size = 100
    max_releases = 5
    floor = "v1.13"

    [registry]
    url = "https://hub.docker.com/v2/repositories/envoyproxy/envoy/tags"

    [probe]
    max_attempts = 15
    interval_seconds = 2.0

    [environment]
    compose_dir = "envoy-sds"
    image_name = "envoy-agent-mashup"
    per_release_services = ["upstream-proxy", "downstream-proxy", ...]

    [identity]
    trust_domain = "domain.test"
    parent_id = "spiffe://domain.test/spire/agent/x509pop/envoy-compat"
    svid_ttl_seconds = 3600

When only ``trust_domain`` is set, ``parent_id`` follows it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "Config",
    "CatalogConfig",
    "RegistryConfig",
    "ProbeConfig",
    "EnvironmentConfig",
    "IdentityConfig",
    "ConfigError",
    "CONFIG_FILE_NAME",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "envoy-compat.toml"

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

DEFAULT_CATALOG_URL = "https://api.github.com/repos/envoyproxy/envoy/releases"
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_RELEASES = 5
DEFAULT_FLOOR = "v1.13"

DEFAULT_REGISTRY_URL = "https://hub.docker.com/v2/repositories/envoyproxy/envoy/tags"

DEFAULT_MAX_ATTEMPTS = 15
DEFAULT_INTERVAL_SECONDS = 2.0

DEFAULT_COMPOSE_DIR = "envoy-sds"
DEFAULT_IMAGE_NAME = "envoy-agent-mashup"
DEFAULT_SHARED_SERVICES = ("spire-server",)
DEFAULT_PER_RELEASE_SERVICES = (
    "upstream-proxy",
    "downstream-proxy",
    "upstream-socat",
    "downstream-socat-mtls",
    "downstream-socat-tls",
)

DEFAULT_TRUST_DOMAIN = "domain.test"


def default_parent_id(trust_domain: str) -> str:
    """Parent ID of the x509pop-attested agent in ``trust_domain``."""
    return f"spiffe://{trust_domain}/spire/agent/x509pop/envoy-compat"


DEFAULT_PARENT_ID = default_parent_id(DEFAULT_TRUST_DOMAIN)
DEFAULT_SVID_TTL_SECONDS = 3600
DEFAULT_WORKLOADS = ("upstream-proxy", "downstream-proxy")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Where releases come from and how many to keep."""

    url: str = DEFAULT_CATALOG_URL
    page_size: int = DEFAULT_PAGE_SIZE
    max_releases: int = DEFAULT_MAX_RELEASES
    floor: str = DEFAULT_FLOOR


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Artifact registry queried for ``{version}-latest`` tags."""

    url: str = DEFAULT_REGISTRY_URL


@dataclass(frozen=True, slots=True)
class ProbeConfig:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS


@dataclass(frozen=True, slots=True)
class EnvironmentConfig:
    """Compose project holding the test services.

    ``shared_services`` are started once and outlive every release;
    ``per_release_services`` are started and removed around each release.
    """

    compose_dir: str = DEFAULT_COMPOSE_DIR
    image_name: str = DEFAULT_IMAGE_NAME
    shared_services: tuple[str, ...] = DEFAULT_SHARED_SERVICES
    per_release_services: tuple[str, ...] = DEFAULT_PER_RELEASE_SERVICES


@dataclass(frozen=True, slots=True)
class IdentityConfig:
    trust_domain: str = DEFAULT_TRUST_DOMAIN
    parent_id: str = DEFAULT_PARENT_ID
    svid_ttl_seconds: int = DEFAULT_SVID_TTL_SECONDS
    server_service: str = "spire-server"
    workloads: tuple[str, ...] = DEFAULT_WORKLOADS


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a numeric setting is out of range.
        """
        catalog: StrDict = get_table(data, "catalog") or {}
        registry: StrDict = get_table(data, "registry") or {}
        probe: StrDict = get_table(data, "probe") or {}
        environment: StrDict = get_table(data, "environment") or {}
        identity: StrDict = get_table(data, "identity") or {}
        trust_domain = get_str(identity, "trust_domain") or DEFAULT_TRUST_DOMAIN

        config = cls(
            catalog=CatalogConfig(
                url=get_str(catalog, "url") or DEFAULT_CATALOG_URL,
                page_size=_or_default(get_int(catalog, "page_size"), DEFAULT_PAGE_SIZE),
                max_releases=_or_default(
                    get_int(catalog, "max_releases"), DEFAULT_MAX_RELEASES
                ),
                floor=get_str(catalog, "floor") or DEFAULT_FLOOR,
            ),
            registry=RegistryConfig(
                url=get_str(registry, "url") or DEFAULT_REGISTRY_URL,
            ),
            probe=ProbeConfig(
                max_attempts=_or_default(get_int(probe, "max_attempts"), DEFAULT_MAX_ATTEMPTS),
                interval_seconds=_or_default(
                    get_float(probe, "interval_seconds"), DEFAULT_INTERVAL_SECONDS
                ),
            ),
            environment=EnvironmentConfig(
                compose_dir=get_str(environment, "compose_dir") or DEFAULT_COMPOSE_DIR,
                image_name=get_str(environment, "image_name") or DEFAULT_IMAGE_NAME,
                shared_services=get_str_list(environment, "shared_services")
                or DEFAULT_SHARED_SERVICES,
                per_release_services=get_str_list(environment, "per_release_services")
                or DEFAULT_PER_RELEASE_SERVICES,
            ),
            identity=IdentityConfig(
                trust_domain=trust_domain,
                parent_id=get_str(identity, "parent_id") or default_parent_id(trust_domain),
                svid_ttl_seconds=_or_default(
                    get_int(identity, "svid_ttl_seconds"), DEFAULT_SVID_TTL_SECONDS
                ),
                server_service=get_str(identity, "server_service") or "spire-server",
                workloads=get_str_list(identity, "workloads") or DEFAULT_WORKLOADS,
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Reject settings the runner cannot honor.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if self.catalog.page_size < 1:
            raise ValueError("catalog.page_size must be >= 1")
        if self.catalog.max_releases < 1:
            raise ValueError("catalog.max_releases must be >= 1")
        if self.probe.max_attempts < 1:
            raise ValueError("probe.max_attempts must be >= 1")
        if self.probe.interval_seconds < 0:
            raise ValueError("probe.interval_seconds must be >= 0")
        if self.identity.svid_ttl_seconds < 1:
            raise ValueError("identity.svid_ttl_seconds must be >= 1")
        overlap = set(self.environment.shared_services) & set(
            self.environment.per_release_services
        )
        if overlap:
            names = ", ".join(sorted(overlap))
            raise ValueError(f"services cannot be both shared and per-release: {names}")


V = TypeVar("V")


def _or_default(value: V | None, default: V) -> V:
    # Only a missing key takes the default; 0 must reach validate().
    return default if value is None else value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to envoy-compat.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config from file; a missing file means defaults.

    A file that exists but cannot be parsed is still an error: silently
    falling back would test the wrong releases.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
