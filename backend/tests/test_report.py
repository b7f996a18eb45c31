"""Unit tests for report rendering."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.devlog.aggregator import Classification, DailyDurations  # noqa: E402
from backend.devlog.classifier import DrillDownRow  # noqa: E402
from backend.devlog.report import (  # noqa: E402
    LEFT,
    RIGHT,
    ceil_minutes,
    display_width,
    drill_down_payload,
    fit,
    render_drill_down_markdown,
    render_row,
    render_stats_markdown,
    stats_payload,
)


def _summary_line(name: str, minutes: str) -> str:
    return f"| {name.ljust(60)} | {minutes.rjust(9)} |\n"


def _detail_line(name: str, kind: str, minutes: str) -> str:
    return f"| {name.ljust(60)} | {kind.ljust(8)} | {minutes.rjust(9)} |\n"


SUMMARY_HEADER = _summary_line("Project", "Time(min)") + _summary_line("-" * 60, "-" * 9)


@pytest.mark.parametrize(
    "seconds, minutes",
    [(0, 0), (1, 1), (59, 1), (60, 1), (61, 2), (3600, 60), (-5, 0)],
)
def test_ceil_minutes(seconds, minutes):
    assert ceil_minutes(seconds) == minutes


def test_display_width_counts_wide_and_combining_characters():
    assert display_width("abc") == 3
    assert display_width("日本") == 4
    assert display_width("e\u0301") == 1


def test_fit_pads_to_width():
    assert fit("abc", 5) == "abc  "
    assert fit("7", 9, RIGHT) == "        7"


def test_fit_truncates_instead_of_wrapping():
    assert fit("abcdef", 3) == "abc"
    assert fit("abcdef", 3, RIGHT) == "abc"


def test_fit_never_splits_a_wide_character():
    fitted = fit("日本語", 5)

    assert fitted == "日本 "
    assert display_width(fitted) == 5


def test_fit_keeps_combining_marks():
    assert fit("e\u0301", 3) == "e\u0301  "


def test_render_row():
    row = render_row(["Docs", "browser", "5"], [(6, LEFT), (8, LEFT), (3, RIGHT)])

    assert row == "| Docs   | browser  |   5 |\n"


def test_render_stats_markdown_layout_and_order():
    classification = Classification(
        totals={"Other": 60, "Beta": 61, "Alpha": 61},
        overflow={"browser": {"Docs": 60}, "terminal": {"/tmp": 0, "/a": 60}},
    )

    text = render_stats_markdown(classification)

    expected = (
        "# Project Summary\n\n"
        + SUMMARY_HEADER
        + _summary_line("Alpha", "2")
        + _summary_line("Beta", "2")
        + _summary_line("Other", "1")
        + "\n# Others List\n\n"
        + _detail_line("Others", "Type", "Time(min)")
        + _detail_line("-" * 60, "-" * 8, "-" * 9)
        + _detail_line("/a", "terminal", "1")
        + _detail_line("Docs", "browser", "1")
        + _detail_line("/tmp", "terminal", "0")
    )
    assert text == expected


def test_render_stats_markdown_sorts_by_seconds_not_minutes():
    classification = Classification(totals={"A": 61, "B": 119}, overflow={"browser": {}, "terminal": {}})

    lines = render_stats_markdown(classification).splitlines()

    assert lines[4].startswith("| B ")
    assert lines[5].startswith("| A ")


def test_render_stats_markdown_wide_names_stay_aligned():
    classification = Classification(
        totals={"日本語プロジェクト": 120, "Other": 0},
        overflow={"browser": {"x" * 80: 0}, "terminal": {}},
    )

    lines = render_stats_markdown(classification).splitlines()
    table_lines = [line for line in lines if line.startswith("|")]

    assert {display_width(line) for line in table_lines[:4]} == {len(SUMMARY_HEADER.splitlines()[0])}
    assert "x" * 61 not in lines[-1]


def test_render_drill_down_markdown():
    rows = [
        DrillDownRow(name="/home/alice/project", type="terminal", seconds=600),
        DrillDownRow(name="Alpha board", type="browser", seconds=61),
    ]

    text = render_drill_down_markdown("Alpha", 661, rows)

    assert text == (
        "# Alpha 12: Drill down\n\n"
        + _detail_line("Title/CWD", "Type", "Time(min)")
        + _detail_line("-" * 60, "-" * 8, "-" * 9)
        + _detail_line("/home/alice/project", "terminal", "10")
        + _detail_line("Alpha board", "browser", "2")
    )


def test_stats_payload_shape():
    durations = DailyDurations(terminal={"/a": 0}, browser={"Docs": 300})
    classification = Classification(
        totals={"Other": 300}, overflow={"browser": {"Docs": 300}, "terminal": {"/a": 0}}
    )

    assert stats_payload(durations, classification) == {
        "terminal_command": {"/a": 0},
        "browser_active_span": {"Docs": 300},
        "projects": {"Other": 300},
        "project_others": {"browser": {"Docs": 300}, "terminal": {"/a": 0}},
    }


def test_drill_down_payload_uses_title_cwd_key():
    rows = [DrillDownRow(name="Docs", type="browser", seconds=61)]

    assert drill_down_payload("Beta", 61, rows) == {
        "name": "Beta",
        "seconds": 61,
        "list": [{"title/cwd": "Docs", "type": "browser", "seconds": 61}],
    }
