"""Pydantic schemas for the public case study API."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CaseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    case_id: UUID
    slug: str
    title: str
    client: str | None = None
    industry: str | None = None
    summary: str | None = None
    image: str | None = None
    tags: list[str] = Field(default_factory=list)
    published_at: datetime | None = None


class CaseDetail(CaseSummary):
    content: str
    related_cases: list[CaseSummary] = Field(default_factory=list)
