"""Merges research, the validated draft and run metadata into the final report."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from meetingintel.intelligence.models import (
    NOT_AVAILABLE,
    UNKNOWN,
    IntelligenceReport,
    RawReport,
    ReportMetadata,
    StructuredReport,
    ValidatedDraft,
)
from meetingintel.intelligence.research_models import ResearchContext

DEFAULT_CONFIDENCE = 0.75
RAW_CONFIDENCE = 0.5


def as_text(value: Any, default: str = UNKNOWN) -> str:
    """Flatten a report section into text."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip() or default
    if isinstance(value, list):
        items = [as_text(v, "") for v in value]
        items = [i for i in items if i]
        return "\n".join(f"• {i}" for i in items) if items else default
    if isinstance(value, dict):
        lines = [f"{k}: {as_text(v, '')}" for k, v in value.items()]
        return "\n".join(lines) if lines else default
    return str(value)


def as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [as_text(v, "") for v in value if as_text(v, "")]
    text = as_text(value, "")
    return [text] if text else []


def clamp_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    if confidence != confidence:  # NaN
        return default
    return min(1.0, max(0.0, confidence))


def build_metadata(
    context: ResearchContext,
    model: str,
    tool_rounds: int = 0,
    critique_applied: bool = False,
    duration_seconds: Optional[float] = None,
    correlation_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> ReportMetadata:
    return ReportMetadata(
        company=context.company,
        attendees_count=len(context.attendees),
        sources_count=len(context.sources),
        generated_at=generated_at or datetime.now(timezone.utc),
        model=model,
        tool_rounds=tool_rounds,
        critique_applied=critique_applied,
        duration_seconds=duration_seconds,
        correlation_id=correlation_id,
    )


def assemble_report(
    context: ResearchContext, draft: ValidatedDraft, metadata: ReportMetadata
) -> IntelligenceReport:
    """Pure merge; no I/O."""
    if isinstance(draft, StructuredReport):
        fields = draft.fields
        return IntelligenceReport(
            executive_summary=as_text(fields.get("executiveSummary")),
            target_company_intelligence=as_text(fields.get("targetCompanyIntelligence")),
            meeting_attendee_analysis=as_text(fields.get("meetingAttendeeAnalysis")),
            competitive_landscape_analysis=as_text(fields.get("competitiveLandscapeAnalysis")),
            strategic_opportunity_assessment=as_text(fields.get("strategicOpportunityAssessment")),
            meeting_dynamics_strategy=as_text(fields.get("meetingDynamicsStrategy")),
            key_questions=as_list(fields.get("keyQuestions")),
            potential_objections_responses=as_text(fields.get("potentialObjectionsResponses")),
            follow_up_action_plan=as_text(fields.get("followUpActionPlan")),
            research_validation_needed=as_list(fields.get("researchValidationNeeded")),
            confidence=clamp_confidence(fields.get("confidence")),
            format="structured",
            research_context=context,
            metadata=metadata,
        )

    if not isinstance(draft, RawReport):
        raise TypeError(f"Unsupported draft type: {type(draft).__name__}")

    return IntelligenceReport(
        executive_summary=draft.text,
        target_company_intelligence=NOT_AVAILABLE,
        meeting_attendee_analysis=NOT_AVAILABLE,
        competitive_landscape_analysis=NOT_AVAILABLE,
        strategic_opportunity_assessment=NOT_AVAILABLE,
        meeting_dynamics_strategy=NOT_AVAILABLE,
        key_questions=[],
        potential_objections_responses=NOT_AVAILABLE,
        follow_up_action_plan=NOT_AVAILABLE,
        research_validation_needed=[],
        confidence=RAW_CONFIDENCE,
        format="raw",
        raw_text=draft.text,
        research_context=context,
        metadata=metadata,
    )
