"""Pydantic models for playlist entries and the parse result."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_GROUP = "Other"
UNKNOWN_NAME = "Unknown"


class PlaylistItem(BaseModel):
    """One media item as accepted by the generator (no id required)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    display_name: str = ""
    attribute_name: Optional[str] = None
    logo_url: Optional[str] = None
    external_id: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    group_name: Optional[str] = None
    media_url: str


class Entry(PlaylistItem):
    """A materialized entry produced by one parse run."""

    id: str
    group_name: str = DEFAULT_GROUP

    @field_validator("group_name", mode="before")
    @classmethod
    def _default_group(cls, value: Optional[str]) -> str:
        return value or DEFAULT_GROUP


class GroupSummary(BaseModel):
    """Entry count for one distinct group name."""

    name: str
    count: int


class ParseResult(BaseModel):
    """Everything a single upload yields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    entries: List[Entry]
    total_entries: int
    groups: List[GroupSummary]
