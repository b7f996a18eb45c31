"""Pydantic models for request bodies, responses and project rules."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventIn(BaseModel):
    """Wire shape of a submitted event.

    Unknown fields are rejected and no type coercion is performed. Every
    field is optional here so that the validator can report the first
    missing one in a fixed order.
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    type: Optional[str] = None
    source: Optional[str] = None
    event_id: Optional[str] = None
    schema_version: Optional[int] = None
    start_ts: Optional[str] = None
    end_ts: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    cwd: Optional[str] = None
    command: Optional[str] = None


class EventAck(BaseModel):
    status: str = "ok"
    event_id: str


class DrillDownItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title_cwd: str = Field(..., alias="title/cwd")
    type: str
    seconds: int


class DrillDownOut(BaseModel):
    name: str
    seconds: int
    list: List[DrillDownItem]


class StatsOut(BaseModel):
    terminal_command: Dict[str, int]
    browser_active_span: Dict[str, int]
    projects: Dict[str, int]
    project_others: Dict[str, Dict[str, int]]


class BrowserMatch(BaseModel):
    title: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def null_title_as_empty(cls, value):
        return [] if value is None else value


class TerminalMatch(BaseModel):
    cwd: List[str] = Field(default_factory=list)

    @field_validator("cwd", mode="before")
    @classmethod
    def null_cwd_as_empty(cls, value):
        return [] if value is None else value


class ProjectMatch(BaseModel):
    browser: BrowserMatch = Field(default_factory=BrowserMatch)
    terminal: TerminalMatch = Field(default_factory=TerminalMatch)

    @field_validator("browser", "terminal", mode="before")
    @classmethod
    def null_section_as_empty(cls, value):
        return {} if value is None else value


class ProjectConfig(BaseModel):
    name: str = Field(..., min_length=1)
    match: ProjectMatch = Field(default_factory=ProjectMatch)

    @field_validator("match", mode="before")
    @classmethod
    def null_match_as_empty(cls, value):
        return {} if value is None else value


class ProjectsConfig(BaseModel):
    """Parsed project rules; list order is matching priority."""

    projects: List[ProjectConfig] = Field(default_factory=list)

    @field_validator("projects", mode="before")
    @classmethod
    def null_projects_as_empty(cls, value):
        return [] if value is None else value
