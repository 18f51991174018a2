"""
Request models for the meeting intelligence pipeline.

Provides type-safe, validated inputs for a research run.
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class AttendeeInput(BaseModel):
    """Raw identity hints for one meeting attendee."""

    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    title: Optional[str] = Field(None, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    linkedin_url: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("email", "title", "company", "linkedin_url", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("linkedin_url")
    @classmethod
    def validate_url(cls, v):
        if v is not None and not v.lower().startswith(("http://", "https://")):
            raise ValueError("Invalid URL format")
        return v

    @property
    def name_tokens(self) -> List[str]:
        return self.name.split()


class ResearchRequest(BaseModel):
    """A single research run: target company plus the people we are meeting."""

    company: str = Field(..., min_length=1, max_length=200)
    attendees: List[AttendeeInput] = Field(..., min_length=1)
    purpose: Optional[str] = Field(None, max_length=2000)
    additional_context: Optional[str] = Field(None, max_length=10000)
    industry: Optional[str] = Field(None, max_length=200)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("purpose", "additional_context", "industry", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return _blank_to_none(v)
