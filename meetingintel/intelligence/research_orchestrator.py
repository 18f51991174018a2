"""
Research phase of the meeting intelligence pipeline.

Builds a ``ResearchContext`` from three phases: per-attendee research
(CRM, enrichment, LinkedIn discovery, background search), company research
and a competitive landscape scan. Every provider failure degrades to empty
or error-marked data; nothing here raises provider errors to the caller.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple

import structlog

from meetingintel.core.config import ResearchConfig
from meetingintel.core.models import AttendeeInput, ResearchRequest
from meetingintel.intelligence.cache import SearchCache
from meetingintel.intelligence.contact_matcher import ContactMatcher
from meetingintel.intelligence.research_models import (
    AttendeeProfile,
    CompanyProfile,
    CompetitiveLandscape,
    CRMContact,
    EnrichedPerson,
    ResearchContext,
    SearchResult,
)

logger = structlog.get_logger(__name__)

LINKEDIN_PROFILE_MARKER = "linkedin.com/in/"


class PersonEnricher(Protocol):
    def enrich_person(self, email: str) -> Optional[EnrichedPerson]: ...


class ProfileScraper(Protocol):
    def fetch_linkedin_profile(self, url: str) -> Optional[str]: ...


def _join_query(*parts: Optional[str]) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def linkedin_query(name: str, company: str, title: Optional[str] = None) -> str:
    return _join_query(name, company, title, "linkedin")


def background_query(name: str, company: str, title: Optional[str] = None) -> str:
    return _join_query(name, company, title, "background experience")


def company_queries(company: str, year: int) -> Dict[str, str]:
    return {
        "overview": f"{company} company overview business model strategy {year}",
        "recent_news": f"{company} news earnings digital transformation {year}",
        "financial_info": f"{company} annual report earnings financial results {year}",
        "digital_transformation": f"{company} digital transformation data analytics technology strategy",
    }


def competitive_query(company: str, industry: Optional[str] = None) -> str:
    if industry:
        return f"{industry} digital transformation leaders {company} competitors analysis"
    return f"{company} competitors industry leaders digital transformation"


def match_linkedin_result(name: str, results: List[SearchResult]) -> Optional[SearchResult]:
    """
    First result that is a LinkedIn profile mentioning the attendee.

    Both the first and last name tokens must appear in the title or the
    snippet; names with fewer than two tokens never match.
    """
    tokens = name.lower().split()
    if len(tokens) < 2:
        return None
    first, last = tokens[0], tokens[-1]

    for result in results:
        if result.is_error or LINKEDIN_PROFILE_MARKER not in result.link:
            continue
        haystack = f"{result.title} {result.snippet}".lower()
        if first in haystack and last in haystack:
            return result
    return None


def collect_sources(
    attendees: List[AttendeeProfile],
    company_profile: CompanyProfile,
    competitive: CompetitiveLandscape,
) -> List[str]:
    """Every non-empty link the run touched, deduplicated in first-seen order."""
    links: List[str] = []
    for attendee in attendees:
        if attendee.linkedin_url:
            links.append(attendee.linkedin_url)
        links.extend(r.link for r in attendee.search_results)
    for result_set in (
        company_profile.overview,
        company_profile.recent_news,
        company_profile.financial_info,
        company_profile.digital_transformation,
        competitive.results,
    ):
        links.extend(r.link for r in result_set)

    return list(dict.fromkeys(link for link in links if link))


class ResearchOrchestrator:
    """
    Runs the attendee, company and competitive phases for one request.

    Attendee research fans out over a thread pool bounded by
    ``max_concurrent_attendees``; the company and competitive phases run on
    the same pool. Attendee output order always matches input order.
    """

    def __init__(
        self,
        search_cache: SearchCache,
        contact_matcher: Optional[ContactMatcher] = None,
        enricher: Optional[PersonEnricher] = None,
        scraper: Optional[ProfileScraper] = None,
        config: Optional[ResearchConfig] = None,
        year: Optional[int] = None,
    ):
        self.search_cache = search_cache
        self.contact_matcher = contact_matcher
        self.enricher = enricher
        self.scraper = scraper
        self.config = config or ResearchConfig()
        self.year = year

    @property
    def current_year(self) -> int:
        return self.year or datetime.now().year

    def run(self, request: ResearchRequest) -> ResearchContext:
        logger.info(
            "research_started", company=request.company, attendees=len(request.attendees)
        )

        attendees: List[Optional[AttendeeProfile]] = [None] * len(request.attendees)
        company_profile = CompanyProfile()
        competitive = CompetitiveLandscape()

        workers = max(1, self.config.max_concurrent_attendees)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            attendee_futures = {
                executor.submit(self._safe_research_attendee, attendee, request.company): idx
                for idx, attendee in enumerate(request.attendees)
            }
            company_future = executor.submit(self.research_company, request.company)
            competitive_future = executor.submit(
                self.research_competitive_landscape, request.company, request.industry
            )

            for future in as_completed(attendee_futures):
                attendees[attendee_futures[future]] = future.result()

            try:
                company_profile = company_future.result()
            except Exception as e:
                logger.error("company_research_failed", company=request.company, error=str(e))

            try:
                competitive = competitive_future.result()
            except Exception as e:
                logger.error("competitive_research_failed", company=request.company, error=str(e))

        profiles = [a for a in attendees if a is not None]
        sources = collect_sources(profiles, company_profile, competitive)

        logger.info(
            "research_completed",
            company=request.company,
            attendees=len(profiles),
            sources=len(sources),
        )
        return ResearchContext(
            company=request.company,
            attendees=profiles,
            company_profile=company_profile,
            competitive_landscape=competitive,
            sources=sources,
            purpose=request.purpose,
            additional_context=request.additional_context,
        )

    def _safe_research_attendee(self, attendee: AttendeeInput, company: str) -> AttendeeProfile:
        try:
            return self.research_attendee(attendee, company)
        except Exception as e:
            logger.error(
                "attendee_research_failed",
                attendee=attendee.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return AttendeeProfile(
                name=attendee.name,
                company=attendee.company or company,
                title=attendee.title,
                email=attendee.email,
                linkedin_url=attendee.linkedin_url,
            )

    def research_attendee(self, attendee: AttendeeInput, company: str) -> AttendeeProfile:
        company = attendee.company or company

        crm_contact = self._resolve_crm(attendee)
        enrichment = self._enrich(attendee)

        linkedin_url = (
            attendee.linkedin_url
            or (crm_contact.linkedin_url if crm_contact else None)
            or (enrichment.linkedin_url if enrichment else None)
        )
        linkedin_snippet = None
        if not linkedin_url:
            linkedin_url, linkedin_snippet = self._discover_linkedin(
                attendee.name, company, attendee.title
            )

        profile_content = None
        if linkedin_url and self.scraper is not None and self.config.scrape_linkedin:
            profile_content = self._scrape_linkedin(attendee.name, linkedin_url)

        search_results = self.search_cache.get_or_fetch(
            background_query(attendee.name, company, attendee.title),
            self.config.background_results,
        )

        logger.info(
            "attendee_research_completed",
            attendee=attendee.name,
            crm_match=crm_contact is not None,
            enriched=enrichment is not None,
            linkedin=bool(linkedin_url),
        )
        return AttendeeProfile(
            name=attendee.name,
            company=company,
            title=attendee.title,
            email=attendee.email,
            linkedin_url=linkedin_url,
            linkedin_snippet=linkedin_snippet,
            linkedin_profile_content=profile_content,
            crm_contact=crm_contact,
            enrichment=enrichment,
            search_results=search_results,
        )

    def _resolve_crm(self, attendee: AttendeeInput) -> Optional[CRMContact]:
        if self.contact_matcher is None:
            return None
        try:
            return self.contact_matcher.find_contact(attendee)
        except Exception as e:
            logger.warning("crm_lookup_failed", attendee=attendee.name, error=str(e))
            return None

    def _enrich(self, attendee: AttendeeInput) -> Optional[EnrichedPerson]:
        if self.enricher is None or not attendee.email:
            return None
        try:
            return self.enricher.enrich_person(attendee.email)
        except Exception as e:
            logger.warning("enrichment_failed", attendee=attendee.name, error=str(e))
            return None

    def _scrape_linkedin(self, name: str, url: str) -> Optional[str]:
        try:
            return self.scraper.fetch_linkedin_profile(url)
        except Exception as e:
            logger.warning("linkedin_scrape_failed", attendee=name, url=url, error=str(e))
            return None

    def _discover_linkedin(
        self, name: str, company: str, title: Optional[str]
    ) -> Tuple[Optional[str], Optional[str]]:
        results = self.search_cache.get_or_fetch(
            linkedin_query(name, company, title), self.config.linkedin_search_limit
        )
        match = match_linkedin_result(name, results)
        if match is None:
            logger.debug("linkedin_profile_not_found", attendee=name)
            return None, None
        return match.link, match.snippet

    def research_company(self, company: str) -> CompanyProfile:
        queries = company_queries(company, self.current_year)
        limits = {
            "overview": self.config.overview_results,
            "recent_news": self.config.news_results,
            "financial_info": self.config.financial_results,
            "digital_transformation": self.config.digital_results,
        }
        profile = CompanyProfile(
            **{
                key: self.search_cache.get_or_fetch(query, limits[key])
                for key, query in queries.items()
            }
        )
        logger.info("company_research_completed", company=company)
        return profile

    def research_competitive_landscape(
        self, company: str, industry: Optional[str] = None
    ) -> CompetitiveLandscape:
        results = self.search_cache.get_or_fetch(
            competitive_query(company, industry), self.config.competitive_results
        )
        return CompetitiveLandscape(
            results=results,
            summary=f"Based on {len(results)} search results for competitive landscape",
        )
