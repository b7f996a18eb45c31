"""Event model and validation of raw submissions."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import AwareDatetime, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .schemas import EventIn

BROWSER_ACTIVE_SPAN = "browser_active_span"
TERMINAL_COMMAND = "terminal_command"
EVENT_TYPES = (BROWSER_ACTIVE_SPAN, TERMINAL_COMMAND)

LEGACY_SCHEMA_VERSION = 1
CURRENT_SCHEMA_VERSION = 2

_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?P<fraction>\.\d+)?"
    r"(?:Z|[+-](?P<off_h>\d{2}):(?P<off_m>\d{2}))$"
)
_AWARE_DATETIME = TypeAdapter(AwareDatetime)


def parse_timestamp(value: str) -> datetime:
    """Parse an offset-qualified date-time such as ``2024-01-01T09:00:00.5+02:00``.

    Fractional seconds are optional and truncated to microseconds. Values
    without an explicit ``Z`` or ``+HH:MM`` offset are rejected.
    """
    value = value.upper()
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise ValueError(f"not an offset-qualified timestamp: {value!r}")
    if match["off_h"] is not None and (int(match["off_h"]) > 23 or int(match["off_m"]) > 59):
        raise ValueError(f"offset out of range: {value!r}")
    fraction = match["fraction"]
    if fraction is not None and len(fraction) > 7:
        value = value[: match.start("fraction") + 7] + value[match.end("fraction") :]
    return _AWARE_DATETIME.validate_python(value)


@dataclass(frozen=True)
class Event:
    """A validated activity event ready to be stored."""

    type: str
    source: str
    event_id: str
    schema_version: int
    start_ts: str
    end_ts: str
    start_at: datetime
    end_at: datetime
    url: Optional[str] = None
    title: Optional[str] = None
    cwd: Optional[str] = None
    command: Optional[str] = None

    def key_fields(self) -> dict:
        """Return the fields required by this event's type."""
        if self.type == BROWSER_ACTIVE_SPAN:
            return {"url": self.url, "title": self.title}
        return {"cwd": self.cwd, "command": self.command}


def _decode(raw: bytes) -> EventIn:
    try:
        return EventIn.model_validate_json(raw)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ()))
        if error["type"] == "extra_forbidden":
            raise ValidationError(f"unknown field {field!r}") from exc
        if error["type"].startswith("json"):
            raise ValidationError("body must be a JSON object") from exc
        if field:
            raise ValidationError(f"{field}: {error['msg']}") from exc
        raise ValidationError("body must be a JSON object") from exc


def _is_legacy_instant(wire: EventIn) -> bool:
    return wire.type == TERMINAL_COMMAND and wire.schema_version == LEGACY_SCHEMA_VERSION


def validate_event(wire: EventIn) -> None:
    """Check required fields in order, raising on the first violation."""
    if not wire.type:
        raise ValidationError("type is required")
    if not wire.source:
        raise ValidationError("source is required")
    if not wire.event_id:
        raise ValidationError("event_id is required")
    if not wire.schema_version:
        raise ValidationError("schema_version is required")
    if not wire.start_ts or (not wire.end_ts and not _is_legacy_instant(wire)):
        raise ValidationError("start_ts and end_ts are required")
    try:
        parse_timestamp(wire.start_ts)
    except ValueError as exc:
        raise ValidationError("start_ts must be RFC3339") from exc
    if wire.end_ts:
        try:
            parse_timestamp(wire.end_ts)
        except ValueError as exc:
            raise ValidationError("end_ts must be RFC3339") from exc

    if wire.type == BROWSER_ACTIVE_SPAN:
        if not wire.url:
            raise ValidationError("url is required for browser_active_span")
        if not wire.title:
            raise ValidationError("title is required for browser_active_span")
        if wire.cwd or wire.command:
            raise ValidationError("cwd and command are not allowed for browser_active_span")
    elif wire.type == TERMINAL_COMMAND:
        if not wire.cwd:
            raise ValidationError("cwd is required for terminal_command")
        if not wire.command:
            raise ValidationError("command is required for terminal_command")
        if wire.url or wire.title:
            raise ValidationError("url and title are not allowed for terminal_command")
    else:
        raise ValidationError("unknown type")


def normalize(raw: bytes) -> Event:
    """Decode, validate and default a raw event submission.

    Legacy single-instant terminal commands (``schema_version`` 1) carry
    no meaningful end time, so ``end_ts`` is set to ``start_ts``.
    """
    wire = _decode(raw)
    validate_event(wire)

    end_ts = wire.start_ts if _is_legacy_instant(wire) else wire.end_ts
    return Event(
        type=wire.type,
        source=wire.source,
        event_id=wire.event_id,
        schema_version=wire.schema_version,
        start_ts=wire.start_ts,
        end_ts=end_ts,
        start_at=parse_timestamp(wire.start_ts),
        end_at=parse_timestamp(end_ts),
        url=wire.url,
        title=wire.title,
        cwd=wire.cwd,
        command=wire.command,
    )
