"""
Tests for settings loading from config.yaml and environment variables.
"""

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
import yaml

from snaplink.config import CollectorSettings, Settings, get_settings, load_config_file, reload_settings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[pytest.MonkeyPatch, None, None]:
    """Remove SNAPLINK_* variables and reset the settings cache around the test."""
    for name in list(os.environ):
        if name.startswith("SNAPLINK_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield monkeypatch
    # Config files write straight to os.environ
    for name in list(os.environ):
        if name.startswith("SNAPLINK_"):
            del os.environ[name]
    get_settings.cache_clear()


class TestDefaults:
    """Defaults match the documented behaviour."""

    def test_store_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = Settings()
        assert settings.store.default_validity_days == 30
        assert settings.store.shortcode_length == 6

    def test_collector_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        collector = CollectorSettings()
        assert collector.origin == "backend"
        assert collector.max_in_flight == 100
        assert collector.default_token_lifetime_seconds == 3600

    def test_auth_payload_uses_wire_names(self) -> None:
        collector = CollectorSettings(
            email="a@b.c", name="A", roll_no="1", access_code="x", client_id="id", client_secret="sec",
        )
        assert collector.auth_payload() == {
            "email": "a@b.c",
            "name": "A",
            "rollNo": "1",
            "accessCode": "x",
            "clientID": "id",
            "clientSecret": "sec",
        }

    @pytest.mark.parametrize("origin", ["frontend", "mobile"])
    def test_non_backend_origin_rejected(self, origin: str) -> None:
        with pytest.raises(ValueError):
            CollectorSettings(origin=origin)


class TestConfigFile:
    """config.yaml provides defaults that env vars override."""

    def test_load_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"store": {"default_validity_days": 7}}))

        assert load_config_file(str(path)) == {"store": {"default_validity_days": 7}}

    def test_missing_config_file(self, tmp_path: Path) -> None:
        assert load_config_file(str(tmp_path / "absent.yaml")) == {}

    def test_config_file_values_applied(self, clean_env: pytest.MonkeyPatch) -> None:
        config = {
            "server": {"port": 8123, "public_base_url": "https://s.example"},
            "store": {"default_validity_days": 7},
            "collector": {"log_url": "http://collector.local/logs", "client_id": "cfg-client"},
        }
        with patch("snaplink.config.load_config_file", return_value=config):
            settings = reload_settings()

        assert settings.port == 8123
        assert settings.public_base_url == "https://s.example"
        assert settings.store.default_validity_days == 7
        assert settings.collector.log_url == "http://collector.local/logs"
        assert settings.collector.client_id == "cfg-client"

    def test_env_overrides_config_file(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SNAPLINK_STORE_DEFAULT_VALIDITY_DAYS", "14")
        with patch("snaplink.config.load_config_file", return_value={"store": {"default_validity_days": 7}}):
            settings = reload_settings()

        assert settings.store.default_validity_days == 14
