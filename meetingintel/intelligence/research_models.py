"""
Shared data structures for the research phase.

These models capture what the orchestrator learned about the attendees
and the target company so the prompt builder, the tool handlers and the
report assembler all see the same snapshot.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Single organic web search hit."""

    title: str
    snippet: str
    link: str = ""
    is_error: bool = False

    @classmethod
    def error(cls, message: str, title: str = "Search failed") -> "SearchResult":
        """Synthetic result standing in for a failed provider call."""
        return cls(title=title, snippet=message, link="", is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "snippet": self.snippet, "link": self.link}


@dataclass(frozen=True, slots=True)
class WebPageContent:
    """Readable text extracted from a webpage."""

    title: str
    content: str
    url: str


@dataclass(frozen=True, slots=True)
class CRMContact:
    """Contact record as stored in the CRM."""

    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    lifecycle_stage: Optional[str] = None
    linkedin_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


@dataclass(frozen=True, slots=True)
class EnrichedPerson:
    """Person profile returned by the enrichment provider."""

    email: str
    full_name: Optional[str] = None
    job_title: Optional[str] = None
    job_company: Optional[str] = None
    industry: Optional[str] = None
    linkedin_url: Optional[str] = None
    education: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    confidence: Optional[float] = None


@dataclass(frozen=True, slots=True)
class AttendeeProfile:
    """
    Everything the attendee phase learned about one person.

    Built once per attendee per run and never mutated afterwards.
    """

    name: str
    company: str
    title: Optional[str] = None
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    linkedin_snippet: Optional[str] = None
    linkedin_profile_content: Optional[str] = None
    crm_contact: Optional[CRMContact] = None
    enrichment: Optional[EnrichedPerson] = None
    search_results: List[SearchResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CompanyProfile:
    """Four independent result sets describing the target company."""

    overview: List[SearchResult] = field(default_factory=list)
    recent_news: List[SearchResult] = field(default_factory=list)
    financial_info: List[SearchResult] = field(default_factory=list)
    digital_transformation: List[SearchResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CompetitiveLandscape:
    """Competitive landscape search results plus a one-line summary."""

    results: List[SearchResult] = field(default_factory=list)
    summary: str = ""


@dataclass(frozen=True, slots=True)
class ResearchContext:
    """
    Aggregate output of one research run.

    Owned by a single run; ``sources`` holds every non-empty link the run
    touched, deduplicated in first-seen order.
    """

    company: str
    attendees: List[AttendeeProfile] = field(default_factory=list)
    company_profile: CompanyProfile = field(default_factory=CompanyProfile)
    competitive_landscape: CompetitiveLandscape = field(default_factory=CompetitiveLandscape)
    sources: List[str] = field(default_factory=list)
    purpose: Optional[str] = None
    additional_context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to primitive dict for downstream JSON serialisation."""
        return asdict(self)
