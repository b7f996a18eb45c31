"""Read path: query one day, classify it and render the requested shape."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Union

from sqlalchemy.orm import Session

from .aggregator import aggregate_unclassified, collect_daily_durations
from .classifier import classify, drill_down
from .config import Settings
from .errors import NotFoundError, ValidationError
from .report import (
    drill_down_payload,
    render_drill_down_markdown,
    render_stats_markdown,
    stats_payload,
)
from .schemas import ProjectsConfig

MODE_JSON = "json"
MODE_MARKDOWN = "md"
MODES = (MODE_JSON, MODE_MARKDOWN)

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class StatsReport:
    mode: str
    body: Union[str, Dict]


def parse_day(value: Optional[str]) -> date:
    if not value:
        raise ValidationError("date is required (YYYY-MM-DD)")
    if not _DAY_RE.match(value):
        raise ValidationError("date must be YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError("date must be YYYY-MM-DD") from exc


def parse_mode(value: Optional[str]) -> str:
    if not value:
        return MODE_MARKDOWN
    if value not in MODES:
        raise ValidationError("mode must be 'json' or 'md'")
    return value


def build_stats(
    db: Session,
    day: Optional[str],
    settings: Settings,
    projects: Optional[ProjectsConfig] = None,
    project: Optional[str] = None,
    mode: Optional[str] = None,
) -> StatsReport:
    """Compute the report for ``day``.

    ``projects`` is ``None`` when no project rules are configured. With a
    ``project`` name the report is that project's drill-down, and
    ``NotFoundError`` is raised when it is unknown or has no rows.
    """
    parsed_day = parse_day(day)
    parsed_mode = parse_mode(mode)
    durations = collect_daily_durations(db, parsed_day, settings)

    if project:
        rows, total, found = drill_down(durations, projects, project)
        if not found or not rows:
            raise NotFoundError(f"no activity for project {project!r} on {day}")
        if parsed_mode == MODE_JSON:
            return StatsReport(parsed_mode, drill_down_payload(project, total, rows))
        return StatsReport(parsed_mode, render_drill_down_markdown(project, total, rows))

    if projects is None:
        classification = aggregate_unclassified(durations)
    else:
        classification = classify(durations, projects)

    if parsed_mode == MODE_JSON:
        return StatsReport(parsed_mode, stats_payload(durations, classification))
    return StatsReport(parsed_mode, render_stats_markdown(classification))
