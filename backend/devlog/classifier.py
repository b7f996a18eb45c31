"""Project classifier.

Assigns browser titles and terminal working directories to named projects
using ordered regex rules. Projects are scanned in declared order, then
patterns within a project; the first match wins. Keys no rule matches go
to ``Other`` and are kept in the overflow map for drill-down.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Pattern, Tuple, Union

from .aggregator import OTHER, Classification, DailyDurations
from .config import parse_projects_config
from .errors import ConfigError
from .schemas import ProjectsConfig

BROWSER = "browser"
TERMINAL = "terminal"


@dataclass
class CompiledProject:
    name: str
    browser_title: List[Pattern[str]] = field(default_factory=list)
    terminal_cwd: List[Pattern[str]] = field(default_factory=list)


@dataclass(frozen=True)
class DrillDownRow:
    name: str
    type: str
    seconds: int


def _compile(pattern: str, project: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"invalid pattern {pattern!r} in project {project!r}: {exc}") from exc


def compile_projects(config: Union[ProjectsConfig, Mapping, None]) -> List[CompiledProject]:
    """Compile every pattern up front; any bad pattern fails the whole set."""
    if not isinstance(config, ProjectsConfig):
        config = parse_projects_config(config)
    compiled = []
    for project in config.projects:
        compiled.append(
            CompiledProject(
                name=project.name,
                browser_title=[_compile(p, project.name) for p in project.match.browser.title],
                terminal_cwd=[_compile(p, project.name) for p in project.match.terminal.cwd],
            )
        )
    return compiled


def match_project(projects: List[CompiledProject], kind: str, key: str) -> str:
    """Return the first project whose ``kind`` patterns match ``key``."""
    for project in projects:
        patterns = project.browser_title if kind == BROWSER else project.terminal_cwd
        for pattern in patterns:
            if pattern.search(key):
                return project.name
    return OTHER


def classify(
    durations: DailyDurations,
    config: Union[ProjectsConfig, Mapping, None],
) -> Classification:
    """Total seconds per project, with unmatched keys kept as overflow.

    Every configured project appears in the totals, even at zero.
    """
    projects = compile_projects(config)
    totals: Dict[str, int] = {project.name: 0 for project in projects}
    totals[OTHER] = 0
    overflow: Dict[str, Dict[str, int]] = {BROWSER: {}, TERMINAL: {}}

    for kind, items in ((BROWSER, durations.browser), (TERMINAL, durations.terminal)):
        for key, seconds in items.items():
            name = match_project(projects, kind, key)
            totals[name] += seconds
            if name == OTHER:
                overflow[kind][key] = overflow[kind].get(key, 0) + seconds

    return Classification(totals=totals, overflow=overflow)


def sort_rows(rows: List[DrillDownRow]) -> List[DrillDownRow]:
    return sorted(rows, key=lambda row: (-row.seconds, row.name, row.type))


def drill_down(
    durations: DailyDurations,
    config: Union[ProjectsConfig, Mapping, None],
    project_name: str,
) -> Tuple[List[DrillDownRow], int, bool]:
    """Collect the keys assigned to ``project_name``.

    Returns ``(rows, total_seconds, found)``. ``found`` is ``False`` when the
    name is neither a configured project nor ``Other``; callers also treat
    an empty row list as not found.
    """
    if isinstance(config, ProjectsConfig) or config is None:
        parsed: Optional[ProjectsConfig] = config
    else:
        parsed = parse_projects_config(config)
    names = {project.name for project in parsed.projects} if parsed is not None else set()
    if project_name != OTHER and project_name not in names:
        return [], 0, False

    projects = compile_projects(parsed)
    rows: List[DrillDownRow] = []
    for kind, items in ((BROWSER, durations.browser), (TERMINAL, durations.terminal)):
        for key, seconds in items.items():
            if match_project(projects, kind, key) == project_name:
                rows.append(DrillDownRow(name=key, type=kind, seconds=seconds))

    total = sum(row.seconds for row in rows)
    return sort_rows(rows), total, True
