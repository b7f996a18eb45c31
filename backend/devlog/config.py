"""Process settings and the project rules loader."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigError
from .schemas import ProjectsConfig

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./data/devlog.db"
DEFAULT_PROJECTS_PATH = "./projects.yaml"
BROWSER_KEYS = ("title", "url")


def _env_or(name: str, fallback: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or fallback


def get_database_url() -> str:
    return _env_or("DEVLOG_DATABASE_URL", DEFAULT_DATABASE_URL)


def get_projects_path() -> str:
    return _env_or("DEVLOG_PROJECTS_PATH", DEFAULT_PROJECTS_PATH)


def resolve_timezone(name: str) -> Optional[tzinfo]:
    """Return the zone for ``name``; ``None`` stands for host local time."""
    if name.lower() == "local":
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"unknown timezone {name!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Deployment-level choices for the read path."""

    day_timezone: Optional[tzinfo] = None
    browser_key: str = "title"


def load_settings() -> Settings:
    browser_key = _env_or("DEVLOG_BROWSER_KEY", "title").lower()
    if browser_key not in BROWSER_KEYS:
        raise ConfigError(f"DEVLOG_BROWSER_KEY must be one of {', '.join(BROWSER_KEYS)}")
    return Settings(
        day_timezone=resolve_timezone(_env_or("DEVLOG_DAY_TIMEZONE", "local")),
        browser_key=browser_key,
    )


def parse_projects_config(data: object) -> ProjectsConfig:
    """Validate an already YAML-decoded project rules document."""
    if data is None:
        return ProjectsConfig()
    try:
        return ProjectsConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigError(f"malformed projects config: {exc.errors()[0]['msg']}") from exc


def load_projects_config(path: str) -> Optional[ProjectsConfig]:
    """Load project rules from ``path``.

    Returns ``None`` when the file does not exist, which means no projects
    are configured. Any other read or parse failure is a ``ConfigError``.
    """
    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigError(f"cannot read projects config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse projects config {path}: {exc}") from exc

    config = parse_projects_config(data)
    logger.debug("Loaded %d project rules from %s", len(config.projects), path)
    return config
