"""Report rendering: structured payloads and fixed-width markdown tables."""
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from wcwidth import wcwidth

from .aggregator import Classification, DailyDurations
from .classifier import DrillDownRow, sort_rows
from .schemas import DrillDownItem, DrillDownOut, StatsOut

NAME_WIDTH = 60
TYPE_WIDTH = 8
TIME_WIDTH = 9

LEFT = "<"
RIGHT = ">"


def ceil_minutes(seconds: int) -> int:
    """Whole minutes, rounding any partial minute up."""
    if seconds <= 0:
        return 0
    return -(-seconds // 60)


def display_width(text: str) -> int:
    """Terminal column count of ``text``; wide glyphs count 2, combining 0."""
    return sum(max(wcwidth(char), 0) for char in text)


def truncate(text: str, width: int) -> str:
    out = []
    used = 0
    for char in text:
        char_width = max(wcwidth(char), 0)
        if used + char_width > width:
            break
        out.append(char)
        used += char_width
    return "".join(out)


def fit(text: str, width: int, align: str = LEFT) -> str:
    """Pad or truncate ``text`` to exactly ``width`` display columns."""
    if width <= 0:
        return ""
    if display_width(text) > width:
        text = truncate(text, width)
    padding = " " * (width - display_width(text))
    return padding + text if align == RIGHT else text + padding


def render_row(cells: Sequence[str], columns: Sequence[Tuple[int, str]]) -> str:
    """Render one markdown table row with fixed column widths."""
    parts = [fit(cell, width, align) for cell, (width, align) in zip(cells, columns)]
    return "| " + " | ".join(parts) + " |\n"


def _render_table(headers: Sequence[str], columns: Sequence[Tuple[int, str]], rows: List[Sequence[str]]) -> str:
    lines = [
        render_row(headers, [(width, LEFT) for width, _ in columns]),
        render_row(["-" * width for width, _ in columns], columns),
    ]
    lines.extend(render_row(row, columns) for row in rows)
    return "".join(lines)


SUMMARY_COLUMNS = ((NAME_WIDTH, LEFT), (TIME_WIDTH, RIGHT))
DETAIL_COLUMNS = ((NAME_WIDTH, LEFT), (TYPE_WIDTH, LEFT), (TIME_WIDTH, RIGHT))


def render_stats_markdown(classification: Classification) -> str:
    projects = sorted(classification.totals.items(), key=lambda item: (-item[1], item[0]))
    others = sort_rows(
        [
            DrillDownRow(name=name, type=kind, seconds=seconds)
            for kind, items in classification.overflow.items()
            for name, seconds in items.items()
        ]
    )

    parts = ["# Project Summary\n\n"]
    parts.append(
        _render_table(
            ["Project", "Time(min)"],
            SUMMARY_COLUMNS,
            [[name, str(ceil_minutes(seconds))] for name, seconds in projects],
        )
    )
    parts.append("\n# Others List\n\n")
    parts.append(
        _render_table(
            ["Others", "Type", "Time(min)"],
            DETAIL_COLUMNS,
            [[row.name, row.type, str(ceil_minutes(row.seconds))] for row in others],
        )
    )
    return "".join(parts)


def render_drill_down_markdown(project_name: str, total_seconds: int, rows: List[DrillDownRow]) -> str:
    header = f"# {project_name} {ceil_minutes(total_seconds)}: Drill down\n\n"
    return header + _render_table(
        ["Title/CWD", "Type", "Time(min)"],
        DETAIL_COLUMNS,
        [[row.name, row.type, str(ceil_minutes(row.seconds))] for row in rows],
    )


def stats_payload(durations: DailyDurations, classification: Classification) -> Dict:
    return StatsOut(
        terminal_command=durations.terminal,
        browser_active_span=durations.browser,
        projects=classification.totals,
        project_others=classification.overflow,
    ).model_dump()


def drill_down_payload(project_name: str, total_seconds: int, rows: List[DrillDownRow]) -> Dict:
    return DrillDownOut(
        name=project_name,
        seconds=total_seconds,
        list=[DrillDownItem(title_cwd=row.name, type=row.type, seconds=row.seconds) for row in rows],
    ).model_dump(by_alias=True)
