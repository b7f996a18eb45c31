"""Unit tests for settings and the project rules loader."""

import sys
from datetime import timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.devlog.config import (  # noqa: E402
    load_projects_config,
    load_settings,
    resolve_timezone,
)
from backend.devlog.errors import ConfigError  # noqa: E402


def test_missing_projects_file_means_no_projects(tmp_path):
    assert load_projects_config(str(tmp_path / "projects.yaml")) is None


def test_load_projects_config(tmp_path):
    path = tmp_path / "projects.yaml"
    path.write_text(
        "projects:\n"
        "  - name: Alpha\n"
        "    match:\n"
        "      browser:\n"
        "        title: ['(?i)alpha']\n"
        "      terminal:\n"
        "        cwd: ['^/home/alice/proj.*']\n"
        "  - name: Beta\n"
        "    match:\n"
        "      terminal:\n"
        "        cwd:\n",
        encoding="utf-8",
    )

    config = load_projects_config(str(path))

    assert [project.name for project in config.projects] == ["Alpha", "Beta"]
    assert config.projects[0].match.terminal.cwd == ["^/home/alice/proj.*"]
    assert config.projects[1].match.browser.title == []
    assert config.projects[1].match.terminal.cwd == []


def test_empty_projects_file_is_an_empty_config(tmp_path):
    path = tmp_path / "projects.yaml"
    path.write_text("", encoding="utf-8")

    assert load_projects_config(str(path)).projects == []


def test_unparseable_yaml_is_a_config_error(tmp_path):
    path = tmp_path / "projects.yaml"
    path.write_text("projects: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_projects_config(str(path))


def test_wrong_shape_is_a_config_error(tmp_path):
    path = tmp_path / "projects.yaml"
    path.write_text("projects:\n  - match: {}\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="malformed"):
        load_projects_config(str(path))


def test_resolve_timezone():
    assert resolve_timezone("local") is None
    assert resolve_timezone("utc") is timezone.utc
    with pytest.raises(ConfigError):
        resolve_timezone("Mars/Olympus_Mons")


def test_load_settings_defaults(monkeypatch):
    monkeypatch.delenv("DEVLOG_DAY_TIMEZONE", raising=False)
    monkeypatch.delenv("DEVLOG_BROWSER_KEY", raising=False)

    settings = load_settings()

    assert settings.day_timezone is None
    assert settings.browser_key == "title"


def test_load_settings_rejects_unknown_browser_key(monkeypatch):
    monkeypatch.setenv("DEVLOG_BROWSER_KEY", "domain")

    with pytest.raises(ConfigError):
        load_settings()
