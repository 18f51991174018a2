"""
Meeting intelligence for business development meetings.

Researches a target company and its meeting attendees, then drives an LLM
to write a structured intelligence report.
"""

from meetingintel.intelligence.models import IntelligenceReport
from meetingintel.intelligence.report_pipeline import MeetingIntelligencePipeline, generate_report

__version__ = "1.0.0"

__all__ = ["IntelligenceReport", "MeetingIntelligencePipeline", "generate_report"]
