from __future__ import annotations

import pytest

from src.config import load_config

SETTINGS = """
ovh:
  endpoint: ovh-eu
  application_key: ${TEST_OVH_AK}
  application_secret: ${TEST_OVH_AS}
messenger:
  page_access_token: ${TEST_PAGE_TOKEN}
scheduler:
  status_hours: "*/3"
  expires_hour: 4
database:
  path: data/test.db
logging:
  level: DEBUG
"""


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(SETTINGS, encoding="utf-8")
    return path


def test_env_vars_are_resolved(settings_file, tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TEST_OVH_AK", "ak")
    monkeypatch.setenv("TEST_OVH_AS", "as")
    monkeypatch.setenv("TEST_PAGE_TOKEN", "page")

    config = load_config(settings_file, env_path=tmp_path / ".env")

    assert config.ovh.application_key == "ak"
    assert config.ovh.application_secret == "as"
    assert config.ovh.timeout_seconds == 30.0
    assert config.messenger.page_access_token == "page"
    assert config.messenger.graph_url.endswith("/me/messages")
    assert config.scheduler.status_hours == "*/3"
    assert config.scheduler.status_minute == 0
    assert config.scheduler.expires_hour == 4
    assert config.default_locale == "fr_FR"
    assert config.log_level == "DEBUG"


def test_missing_env_var_raises(settings_file, tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TEST_OVH_AK", "ak")
    monkeypatch.delenv("TEST_OVH_AS", raising=False)
    monkeypatch.setenv("TEST_PAGE_TOKEN", "page")

    with pytest.raises(ValueError, match="TEST_OVH_AS"):
        load_config(settings_file, env_path=tmp_path / ".env")


def test_missing_section_raises(tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("ovh:\n  endpoint: ovh-eu\n", encoding="utf-8")

    with pytest.raises(ValueError, match="settings"):
        load_config(path, env_path=tmp_path / ".env")


def test_out_of_range_schedule_raises(tmp_path, monkeypatch) -> None:
    for var in ("TEST_OVH_AK", "TEST_OVH_AS", "TEST_PAGE_TOKEN"):
        monkeypatch.setenv(var, "x")
    path = tmp_path / "settings.yaml"
    path.write_text(SETTINGS.replace("expires_hour: 4", "expires_hour: 24"), encoding="utf-8")

    with pytest.raises(ValueError, match="expires_hour"):
        load_config(path, env_path=tmp_path / ".env")


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml", env_path=tmp_path / ".env")
