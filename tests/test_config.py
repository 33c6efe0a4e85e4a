"""Tests for settings loading."""

import os

import pytest
from pydantic import ValidationError

from hookwatch.config import Settings, WebhooksConfig, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.upper().startswith("HOOKWATCH_"):
            monkeypatch.delenv(name, raising=False)
    # Keep the user's real config dir out of the way
    monkeypatch.setenv("HOOKWATCH_CONFIG_DIR", str(tmp_path / "empty"))


class TestWebhooksConfig:
    def test_defaults(self):
        cfg = WebhooksConfig()
        assert cfg.secret == ""
        assert cfg.require_signature is False
        assert cfg.deduplicate_deliveries is False
        assert cfg.capacity == 200
        assert cfg.port == 8420
        assert cfg.bind == "0.0.0.0"
        assert cfg.ingest_path == "/api/webhook"
        assert cfg.events_path == "/api/webhooks"
        assert cfg.admin_token == ""

    def test_paths_get_leading_slash(self):
        cfg = WebhooksConfig(ingest_path="hooks", events_path="events")
        assert cfg.ingest_path == "/hooks"
        assert cfg.events_path == "/events"

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            WebhooksConfig(capacity=0)

    def test_settings_has_webhooks(self):
        settings = Settings()
        assert isinstance(settings.webhooks, WebhooksConfig)
        assert settings.log_level == "INFO"
        assert settings.log_json is False


class TestLoadSettings:
    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("HOOKWATCH_WEBHOOKS__SECRET", "from-env")
        monkeypatch.setenv("HOOKWATCH_WEBHOOKS__REQUIRE_SIGNATURE", "true")
        monkeypatch.setenv("HOOKWATCH_LOG_LEVEL", "DEBUG")
        settings = load_settings()
        assert settings.webhooks.secret == "from-env"
        assert settings.webhooks.require_signature is True
        assert settings.log_level == "DEBUG"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "webhooks:\n"
            "  secret: from-yaml\n"
            "  capacity: 50\n"
            "log_json: true\n"
        )
        settings = load_settings(path)
        assert settings.webhooks.secret == "from-yaml"
        assert settings.webhooks.capacity == 50
        assert settings.log_json is True

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("webhooks:\n  secret: from-yaml\n  port: 9000\n")
        monkeypatch.setenv("HOOKWATCH_WEBHOOKS__SECRET", "from-env")
        settings = load_settings(path)
        assert settings.webhooks.secret == "from-env"
        assert settings.webhooks.port == 9000

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("webhooks:\n  admin_token: adm\n")
        monkeypatch.setenv("HOOKWATCH_CONFIG", str(path))
        assert load_settings().webhooks.admin_token == "adm"

    def test_default_config_dir(self, tmp_path, monkeypatch):
        config_dir = tmp_path / "cfg"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("webhooks:\n  deduplicate_deliveries: true\n")
        monkeypatch.setenv("HOOKWATCH_CONFIG_DIR", str(config_dir))
        assert load_settings().webhooks.deduplicate_deliveries is True

    def test_missing_file_falls_back_to_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "nope.yaml")
        assert settings.webhooks.secret == ""

    def test_unrelated_env_var_with_yaml_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("webhooks:\n  secret: from-yaml\n")
        monkeypatch.setenv("HOOKWATCH_DATA_DIR", "/x")
        assert load_settings(path).webhooks.secret == "from-yaml"

    def test_unrelated_env_var_without_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOOKWATCH_DATA_DIR", "/x")
        assert load_settings(tmp_path / "nope.yaml").webhooks.secret == ""

    def test_env_overrides_yaml_top_level(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("log_level: WARNING\n")
        monkeypatch.setenv("HOOKWATCH_LOG_LEVEL", "ERROR")
        assert load_settings(path).log_level == "ERROR"
