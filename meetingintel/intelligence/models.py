"""Report models for the meeting intelligence pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from meetingintel.intelligence.research_models import ResearchContext

UNKNOWN = "Unknown"
NOT_AVAILABLE = "Not available (report returned as raw text)"

REQUIRED_REPORT_FIELDS = (
    "executiveSummary",
    "targetCompanyIntelligence",
    "meetingAttendeeAnalysis",
    "strategicOpportunityAssessment",
    "meetingDynamicsStrategy",
    "keyQuestions",
    "potentialObjectionsResponses",
)


@dataclass(frozen=True, slots=True)
class StructuredReport:
    """A draft that parsed into a complete report object."""

    fields: Dict[str, Any]
    text: str


@dataclass(frozen=True, slots=True)
class RawReport:
    """A draft that did not validate; ``text`` is kept verbatim."""

    text: str


ValidatedDraft = Union[StructuredReport, RawReport]


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {to_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


class ReportModel(BaseModel):
    """Base for models serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportMetadata(ReportModel):
    company: str
    attendees_count: int
    sources_count: int
    generated_at: datetime
    model: str
    tool_rounds: int = 0
    critique_applied: bool = False
    duration_seconds: Optional[float] = None
    correlation_id: Optional[str] = None


class IntelligenceReport(ReportModel):
    """
    Final meeting intelligence report.

    ``format`` is "structured" when the model's JSON validated and "raw"
    when the draft text was kept as-is in ``raw_text``.
    """

    executive_summary: str
    target_company_intelligence: str = UNKNOWN
    meeting_attendee_analysis: str = UNKNOWN
    competitive_landscape_analysis: str = UNKNOWN
    strategic_opportunity_assessment: str = UNKNOWN
    meeting_dynamics_strategy: str = UNKNOWN
    key_questions: List[str] = Field(default_factory=list)
    potential_objections_responses: str = UNKNOWN
    follow_up_action_plan: str = UNKNOWN
    research_validation_needed: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    format: Literal["structured", "raw"] = "structured"
    raw_text: Optional[str] = None
    research_context: ResearchContext
    metadata: ReportMetadata

    @field_serializer("research_context")
    def serialize_research_context(self, context: ResearchContext) -> Dict[str, Any]:
        return _camelize(context.to_dict())

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
