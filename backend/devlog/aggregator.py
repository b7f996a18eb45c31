"""Per-day duration collection and the unclassified totals path."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict

from sqlalchemy.orm import Session

from .config import Settings
from .store import browser_durations_by_title, terminal_durations_by_cwd

OTHER = "Other"


@dataclass
class DailyDurations:
    """Seconds per working directory and per browser page for one day."""

    terminal: Dict[str, int] = field(default_factory=dict)
    browser: Dict[str, int] = field(default_factory=dict)

    @property
    def total_seconds(self) -> int:
        return sum(self.terminal.values()) + sum(self.browser.values())


@dataclass
class Classification:
    """Per-project totals plus the unmatched keys that landed in ``Other``."""

    totals: Dict[str, int]
    overflow: Dict[str, Dict[str, int]]


def collect_daily_durations(db: Session, day: date, settings: Settings) -> DailyDurations:
    return DailyDurations(
        terminal=terminal_durations_by_cwd(db, day, settings.day_timezone),
        browser=browser_durations_by_title(db, day, settings.day_timezone, key=settings.browser_key),
    )


def aggregate_unclassified(durations: DailyDurations) -> Classification:
    """Report every key under ``Other`` when no project rules exist."""
    return Classification(
        totals={OTHER: durations.total_seconds},
        overflow={"browser": dict(durations.browser), "terminal": dict(durations.terminal)},
    )
