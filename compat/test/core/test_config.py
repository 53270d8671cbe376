"""Tests for compat.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from compat.core.config import (
    CatalogConfig,
    Config,
    EnvironmentConfig,
    IdentityConfig,
    ProbeConfig,
    load_config,
    load_config_or_default,
)
from compat.core.result import Err, Ok


class TestDefaults:
    def test_catalog(self) -> None:
        config = CatalogConfig()
        assert config.url == "https://api.github.com/repos/envoyproxy/envoy/releases"
        assert config.max_releases == 5
        assert config.floor == "v1.13"

    def test_probe(self) -> None:
        config = ProbeConfig()
        assert config.max_attempts == 15
        assert config.interval_seconds == 2.0

    def test_environment_keeps_identity_server_shared(self) -> None:
        config = EnvironmentConfig()
        assert config.image_name == "envoy-agent-mashup"
        assert "spire-server" in config.shared_services
        assert "spire-server" not in config.per_release_services
        assert "upstream-proxy" in config.per_release_services

    def test_identity(self) -> None:
        config = IdentityConfig()
        assert config.trust_domain == "domain.test"
        assert config.workloads == ("upstream-proxy", "downstream-proxy")

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.probe = ProbeConfig()  # type: ignore[misc]


class TestFromDict:
    def test_empty_is_default(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_overrides(self) -> None:
        config = Config.from_dict(
            {
                "catalog": {"max_releases": 3, "floor": "v1.20"},
                "probe": {"max_attempts": 4, "interval_seconds": 0},
                "environment": {"per_release_services": ["upstream-proxy"]},
                "identity": {"svid_ttl_seconds": 60},
            }
        )
        assert config.catalog.max_releases == 3
        assert config.catalog.floor == "v1.20"
        assert config.probe.max_attempts == 4
        assert config.probe.interval_seconds == 0.0
        assert config.environment.per_release_services == ("upstream-proxy",)
        assert config.identity.svid_ttl_seconds == 60

    def test_wrong_types_fall_back_to_defaults(self) -> None:
        config = Config.from_dict({"probe": {"max_attempts": "many"}, "catalog": []})
        assert config.probe.max_attempts == 15
        assert config.catalog == CatalogConfig()

    def test_rejects_negative_interval(self) -> None:
        with pytest.raises(ValueError, match="interval_seconds"):
            Config.from_dict({"probe": {"interval_seconds": -1}})

    @pytest.mark.parametrize(
        ("section", "key"),
        [
            ("catalog", "page_size"),
            ("catalog", "max_releases"),
            ("probe", "max_attempts"),
            ("identity", "svid_ttl_seconds"),
        ],
    )
    def test_rejects_zero(self, section: str, key: str) -> None:
        with pytest.raises(ValueError, match=f"{section}.{key}"):
            Config.from_dict({section: {key: 0}})

    def test_parent_id_follows_trust_domain(self) -> None:
        config = Config.from_dict({"identity": {"trust_domain": "example.org"}})
        assert config.identity.parent_id == "spiffe://example.org/spire/agent/x509pop/envoy-compat"

    def test_explicit_parent_id_wins(self) -> None:
        config = Config.from_dict(
            {"identity": {"trust_domain": "example.org", "parent_id": "spiffe://example.org/agent"}}
        )
        assert config.identity.parent_id == "spiffe://example.org/agent"

    def test_rejects_shared_service_torn_down_per_release(self) -> None:
        with pytest.raises(ValueError, match="spire-server"):
            Config.from_dict({"environment": {"per_release_services": ["spire-server"]}})


class TestLoadConfig:
    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "envoy-compat.toml"
        path.write_text('[catalog]\nfloor = "v1.18"\nmax_releases = 2\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.catalog.floor == "v1.18"
        assert result.value.catalog.max_releases == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "missing.toml")

        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[catalog\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_zero_max_releases_is_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / "envoy-compat.toml"
        path.write_text("[catalog]\nmax_releases = 0\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "catalog.max_releases" in result.error.message

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[probe]\ninterval_seconds = -5\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid config" in result.error.message


class TestLoadConfigOrDefault:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / "envoy-compat.toml")
        assert result == Ok(Config())

    def test_broken_file_is_still_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / "envoy-compat.toml"
        path.write_text("not toml at all = = =", encoding="utf-8")

        assert isinstance(load_config_or_default(path), Err)
