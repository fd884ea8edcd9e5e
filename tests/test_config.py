"""Tests for environment configuration."""

from pathlib import Path

import pytest

from gymsync.config import DEFAULT_STATE_PATH, GIPHY_API_URL, Config

ENV_VARS = (
    "DATABASE_URL",
    "GYMSYNC_STATE_PATH",
    "GYMSYNC_SYNC_CODE",
    "GIPHY_API_KEY",
    "GYMSYNC_GIPHY_URL",
    "GYMSYNC_SUBSCRIBE_DELAY",
    "GYMSYNC_POLL_INTERVAL",
    "GYMSYNC_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config.from_env()
    assert config.database_url is None
    assert config.state_path == DEFAULT_STATE_PATH
    assert config.default_sync_code == "SHARED"
    assert config.giphy_api_url == GIPHY_API_URL
    assert config.subscribe_delay_seconds == 0.5
    assert config.poll_interval_seconds == 5.0
    assert config.log_format == "text"


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/gym")
    monkeypatch.setenv("GYMSYNC_STATE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("GYMSYNC_SYNC_CODE", "CREW")
    monkeypatch.setenv("GIPHY_API_KEY", "k")
    monkeypatch.setenv("GYMSYNC_SUBSCRIBE_DELAY", "1.5")
    monkeypatch.setenv("GYMSYNC_LOG_FORMAT", "json")
    config = Config.from_env()
    assert config.require_database_url() == "postgresql://db/gym"
    assert config.state_path == Path(tmp_path / "s.json")
    assert config.default_sync_code == "CREW"
    assert config.giphy_api_key == "k"
    assert config.subscribe_delay_seconds == 1.5
    assert config.log_format == "json"


def test_database_url_required_for_store_commands():
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        Config.from_env().require_database_url()


def test_frozen():
    config = Config.from_env()
    with pytest.raises(AttributeError):
        config.log_format = "json"
