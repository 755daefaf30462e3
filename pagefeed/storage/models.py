"""
Page record domain models.

A PageRecord is one wiki page as seen by one tenant (webhook id) within the
retention window. It is identified by (tenant_id, project_name, name).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from pagefeed.utils.timestamps import format_timestamp, now_jst, parse_timestamp


def dedupe_authors(*author_lists: list[str]) -> list[str]:
    """Case-sensitive union of author lists, first occurrence wins."""
    merged: dict[str, None] = {}
    for authors in author_lists:
        for author in authors:
            merged.setdefault(author, None)
    return list(merged)


class PageRecord(BaseModel):
    """A retained page update, merged across author edits."""

    model_config = ConfigDict(frozen=False)

    tenant_id: str = Field(..., description="Webhook id the record belongs to")
    project_name: str = Field(..., description="Cosense project (first URL path segment)")
    name: str = Field(..., description="Page title")
    link: str = Field(default="", description="Canonical page URL")
    authors: list[str] = Field(default_factory=list, description="Duplicate-free author names")
    updated_at: datetime = Field(default_factory=now_jst, description="Time of the last merge")

    @field_validator("authors")
    @classmethod
    def _unique_authors(cls, value: list[str]) -> list[str]:
        return dedupe_authors(value)

    @field_validator("updated_at", mode="before")
    @classmethod
    def _parse_updated_at(cls, value: Any) -> datetime:
        return parse_timestamp(value)

    @field_serializer("updated_at")
    def _format_updated_at(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_store_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict for the key-value backend."""
        return self.model_dump(mode="json")

    @classmethod
    def from_store_dict(cls, data: dict[str, Any]) -> PageRecord:
        return cls.model_validate(data)


class PageUpdate(BaseModel):
    """One incoming author edit, as extracted from a webhook attachment."""

    page_name: str
    link: str = ""
    author_name: str = ""


class TenantRegistration(BaseModel):
    """Registration entry for a webhook id."""

    registered: bool = True
    created_at: datetime = Field(default_factory=now_jst)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> datetime:
        return parse_timestamp(value)

    @field_serializer("created_at")
    def _format_created_at(self, value: datetime) -> str:
        return format_timestamp(value)
