"""
Co-ordinates the meeting intelligence workflow (research → generate → validate → critique).

``MeetingIntelligencePipeline.generate_report`` is the single entry point;
collaborators are built from ``Settings`` unless injected.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from meetingintel.core.config import Settings, get_settings
from meetingintel.core.exceptions import ValidationError
from meetingintel.core.logging import clear_correlation_id, get_correlation_id, set_correlation_id
from meetingintel.core.models import AttendeeInput, ResearchRequest
from meetingintel.data.hubspot_client import HubSpotClient
from meetingintel.data.openai_client import OpenAIChatClient
from meetingintel.data.peopledatalabs_client import PeopleDataLabsClient
from meetingintel.data.scrape_client import WebScraper
from meetingintel.data.search_client import SerperSearchClient
from meetingintel.intelligence.cache import SearchCache
from meetingintel.intelligence.contact_matcher import ContactMatcher, ContactStore
from meetingintel.intelligence.conversation_engine import ConversationEngine, build_tool_handlers
from meetingintel.intelligence.critique import CritiqueRefiner
from meetingintel.intelligence.models import (
    IntelligenceReport,
    RawReport,
    StructuredReport,
    ValidatedDraft,
)
from meetingintel.intelligence.prompts import build_report_messages
from meetingintel.intelligence.report_assembler import assemble_report, build_metadata
from meetingintel.intelligence.report_validator import ReportValidator
from meetingintel.intelligence.research_orchestrator import PersonEnricher, ResearchOrchestrator
from meetingintel.utils.reliability import ProviderRateLimiter, RetryPolicy, track_performance

logger = structlog.get_logger(__name__)

AttendeeLike = Union[AttendeeInput, Dict[str, Any]]


class MeetingIntelligencePipeline:
    """Execute one research run and turn it into an ``IntelligenceReport``."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        llm: Optional[OpenAIChatClient] = None,
        search_cache: Optional[SearchCache] = None,
        contact_store: Optional[ContactStore] = None,
        enricher: Optional[PersonEnricher] = None,
        scraper: Optional[WebScraper] = None,
        validator: Optional[ReportValidator] = None,
    ) -> None:
        self.settings = settings or get_settings()
        config = self.settings
        retry_policy = RetryPolicy.from_config(config.retry)

        self.llm = llm or OpenAIChatClient(config.openai, retry_policy=retry_policy)
        if search_cache is None:
            search_cache = SearchCache(
                SerperSearchClient(
                    config.search, timeout=config.request_timeout, retry_policy=retry_policy
                ),
                ttl_seconds=config.search.cache_ttl_seconds,
                max_results=config.search.max_results,
            )
        self.search_cache = search_cache

        if contact_store is None and config.hubspot.token:
            contact_store = HubSpotClient(
                config.hubspot, timeout=config.request_timeout, retry_policy=retry_policy
            )
        self.contact_matcher = (
            ContactMatcher(contact_store, prefix_length=config.research.fuzzy_prefix_length)
            if contact_store is not None
            else None
        )

        if enricher is None and config.peopledatalabs.api_key:
            enricher = PeopleDataLabsClient(
                config.peopledatalabs,
                rate_limiter=ProviderRateLimiter(
                    max_requests=config.peopledatalabs.max_requests_per_minute,
                    name="peopledatalabs",
                ),
                timeout=config.request_timeout,
                retry_policy=retry_policy,
            )
        self.enricher = enricher

        self.scraper = scraper or WebScraper(
            max_content_length=config.research.max_scrape_length,
            timeout=config.research.scrape_timeout,
        )

        self.orchestrator = ResearchOrchestrator(
            self.search_cache,
            contact_matcher=self.contact_matcher,
            enricher=self.enricher,
            scraper=self.scraper,
            config=config.research,
        )
        self.engine = ConversationEngine(
            self.llm,
            build_tool_handlers(self.search_cache, self.scraper, self.contact_matcher),
            max_tool_rounds=config.research.max_tool_rounds,
            deadline_seconds=config.openai.generation_deadline_seconds,
            tools_enabled=config.openai.tools_enabled,
            temperature=config.openai.temperature,
            max_tokens=config.openai.max_tokens,
        )
        self.validator = validator or ReportValidator()
        self.critique = (
            CritiqueRefiner(
                self.llm,
                temperature=config.openai.critique_temperature,
                max_tokens=config.openai.max_tokens,
                timeout=config.openai.generation_deadline_seconds,
            )
            if config.openai.self_critique
            else None
        )

    @track_performance("generate_report")
    def generate_report(
        self,
        company: str,
        attendees: Sequence[AttendeeLike],
        purpose: Optional[str] = None,
        additional_context: Optional[str] = None,
        industry: Optional[str] = None,
    ) -> IntelligenceReport:
        """
        Research the meeting and produce the intelligence report.

        Raises:
            ValidationError: Company or attendees are missing or malformed
            GenerationError: The model could not produce a draft
            GenerationTimeoutError: Generation exceeded its overall deadline
        """
        request = self.build_request(company, attendees, purpose, additional_context, industry)

        owns_correlation_id = get_correlation_id() is None
        correlation_id = get_correlation_id() or set_correlation_id()
        started = time.monotonic()

        try:
            logger.info(
                "report_generation_started",
                company=request.company,
                attendees=len(request.attendees),
            )
            context = self.orchestrator.run(request)

            conversation = self.engine.run(build_report_messages(context))
            validated, critique_applied = self._validate_and_refine(conversation.content)

            metadata = build_metadata(
                context,
                model=self.llm.model,
                tool_rounds=conversation.tool_rounds,
                critique_applied=critique_applied,
                duration_seconds=round(time.monotonic() - started, 3),
                correlation_id=correlation_id,
            )
            report = assemble_report(context, validated, metadata)

            logger.info(
                "report_generation_completed",
                company=request.company,
                format=report.format,
                sources=metadata.sources_count,
                tool_rounds=metadata.tool_rounds,
                critique_applied=critique_applied,
            )
            return report
        finally:
            if owns_correlation_id:
                clear_correlation_id()

    @staticmethod
    def build_request(
        company: str,
        attendees: Sequence[AttendeeLike],
        purpose: Optional[str] = None,
        additional_context: Optional[str] = None,
        industry: Optional[str] = None,
    ) -> ResearchRequest:
        try:
            return ResearchRequest(
                company=company,
                attendees=[
                    a if isinstance(a, AttendeeInput) else AttendeeInput(**a)
                    for a in (attendees or [])
                ],
                purpose=purpose,
                additional_context=additional_context,
                industry=industry,
            )
        except (PydanticValidationError, TypeError) as e:
            logger.warning("invalid_research_request", error=str(e))
            raise ValidationError(f"Invalid research request: {e}") from e

    def _validate_and_refine(self, draft: str) -> Tuple[ValidatedDraft, bool]:
        """
        Validate the draft, then the critic's revision when enabled.

        The revision wins if it validates; otherwise a structured original
        is kept; otherwise the revision is returned as raw text.
        """
        validated = self.validator.validate(draft)
        if self.critique is None:
            return validated, False

        refined = self.critique.refine(draft)
        if refined == draft:
            return validated, False

        refined_validated = self.validator.validate(refined)
        if isinstance(refined_validated, StructuredReport):
            return refined_validated, True
        if isinstance(validated, StructuredReport):
            logger.warning("critique_output_invalid_keeping_original")
            return validated, False
        return RawReport(text=refined), True

    def close(self) -> None:
        store = self.contact_matcher.store if self.contact_matcher else None
        for client in (self.search_cache.provider, store, self.enricher, self.scraper):
            close = getattr(client, "close", None)
            if callable(close):
                close()


def generate_report(
    company: str,
    attendees: List[AttendeeLike],
    purpose: Optional[str] = None,
    additional_context: Optional[str] = None,
    industry: Optional[str] = None,
) -> IntelligenceReport:
    """Convenience wrapper building a pipeline from the global settings."""
    pipeline = MeetingIntelligencePipeline()
    try:
        return pipeline.generate_report(
            company,
            attendees,
            purpose=purpose,
            additional_context=additional_context,
            industry=industry,
        )
    finally:
        pipeline.close()
