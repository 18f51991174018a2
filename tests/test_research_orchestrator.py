"""Behavioural tests for the research orchestrator."""

from meetingintel.core.config import ResearchConfig
from meetingintel.core.exceptions import CRMError, EnrichmentQuotaError
from meetingintel.core.models import AttendeeInput, ResearchRequest
from meetingintel.intelligence.cache import SearchCache
from meetingintel.intelligence.contact_matcher import ContactMatcher
from meetingintel.intelligence.research_models import CRMContact, EnrichedPerson, SearchResult
from meetingintel.intelligence.research_orchestrator import (
    ResearchOrchestrator,
    background_query,
    company_queries,
    competitive_query,
    linkedin_query,
    match_linkedin_result,
)


class DummySearchProvider:
    """Serves canned results per query; anything else gets one generic hit."""

    def __init__(self, canned=None):
        self.canned = canned or {}
        self.queries = []

    def search(self, query, max_results):
        self.queries.append(query)
        if query in self.canned:
            return self.canned[query]
        slug = abs(hash(query)) % 10_000
        return [SearchResult(title=query, snippet="generic", link=f"https://example.com/{slug}")]


class FlakyContactStore:
    """Raises for one attendee, finds nobody else."""

    def __init__(self, failing_email):
        self.failing_email = failing_email

    def find_by_email(self, email):
        if email == self.failing_email:
            raise CRMError("HubSpot unavailable")
        return None

    def find_by_name_company(self, first_name, last_name, company=None):
        return []

    def find_by_first_name_prefix(self, prefix, last_name):
        return []


class DummyEnricher:
    def __init__(self, person=None, error=None):
        self.person = person
        self.error = error
        self.emails = []

    def enrich_person(self, email):
        self.emails.append(email)
        if self.error:
            raise self.error
        return self.person


class DummyScraper:
    def __init__(self, content="Profile text " * 10):
        self.content = content
        self.urls = []

    def fetch_linkedin_profile(self, url):
        self.urls.append(url)
        return self.content


def make_orchestrator(provider=None, **kwargs) -> ResearchOrchestrator:
    cache = SearchCache(provider or DummySearchProvider())
    config = kwargs.pop("config", ResearchConfig(max_concurrent_attendees=3))
    return ResearchOrchestrator(cache, config=config, year=2025, **kwargs)


def test_query_templates():
    assert linkedin_query("Jane Doe", "Acme Co", "VP Sales") == "Jane Doe Acme Co VP Sales linkedin"
    assert linkedin_query("Jane Doe", "Acme Co") == "Jane Doe Acme Co linkedin"
    assert background_query("Jane Doe", "Acme Co") == "Jane Doe Acme Co background experience"
    assert company_queries("Acme", 2025)["overview"] == (
        "Acme company overview business model strategy 2025"
    )
    assert competitive_query("Acme", "Retail") == (
        "Retail digital transformation leaders Acme competitors analysis"
    )
    assert competitive_query("Acme") == "Acme competitors industry leaders digital transformation"


def test_linkedin_match_requires_profile_link_and_both_names():
    results = [
        SearchResult(title="Jane Doe - Acme", snippet="", link="https://linkedin.com/company/acme"),
        SearchResult(title="Jane Smith", snippet="Acme", link="https://linkedin.com/in/jsmith"),
        SearchResult(title="Profile", snippet="jane doe, VP", link="https://www.linkedin.com/in/janedoe"),
    ]

    assert match_linkedin_result("Jane Doe", results).link == "https://www.linkedin.com/in/janedoe"
    assert match_linkedin_result("Jane", results) is None


def test_partial_failure_keeps_every_attendee_in_order():
    provider = DummySearchProvider()
    orchestrator = make_orchestrator(
        provider,
        contact_matcher=ContactMatcher(FlakyContactStore("bob@acme.com")),
    )
    request = ResearchRequest(
        company="Acme Co",
        attendees=[
            AttendeeInput(name="Alice Smith", email="alice@acme.com"),
            AttendeeInput(name="Bob Jones", email="bob@acme.com"),
            AttendeeInput(name="Carol White", email="carol@acme.com"),
        ],
    )

    context = orchestrator.run(request)

    assert [a.name for a in context.attendees] == ["Alice Smith", "Bob Jones", "Carol White"]
    bob = context.attendees[1]
    assert bob.crm_contact is None
    assert bob.search_results


def test_unexpected_attendee_failure_produces_minimal_profile(monkeypatch):
    orchestrator = make_orchestrator()

    def explode(attendee, company):
        raise RuntimeError("boom")

    monkeypatch.setattr(orchestrator, "research_attendee", explode)
    context = orchestrator.run(
        ResearchRequest(company="Acme Co", attendees=[AttendeeInput(name="Jane Doe", title="CTO")])
    )

    profile = context.attendees[0]
    assert profile.name == "Jane Doe"
    assert profile.company == "Acme Co"
    assert profile.title == "CTO"
    assert profile.search_results == []


def test_linkedin_precedence_input_then_crm_then_enrichment():
    crm_contact = CRMContact(
        email="jane@acme.com", first_name="Jane", last_name="Doe",
        linkedin_url="https://linkedin.com/in/from-crm",
    )

    class Store(FlakyContactStore):
        def find_by_email(self, email):
            return crm_contact

    enricher = DummyEnricher(
        EnrichedPerson(email="jane@acme.com", linkedin_url="https://linkedin.com/in/from-pdl")
    )
    orchestrator = make_orchestrator(
        contact_matcher=ContactMatcher(Store(None)), enricher=enricher
    )

    with_input = orchestrator.research_attendee(
        AttendeeInput(name="Jane Doe", email="jane@acme.com", linkedin_url="https://linkedin.com/in/given"),
        "Acme Co",
    )
    from_crm = orchestrator.research_attendee(
        AttendeeInput(name="Jane Doe", email="jane@acme.com"), "Acme Co"
    )

    assert with_input.linkedin_url == "https://linkedin.com/in/given"
    assert from_crm.linkedin_url == "https://linkedin.com/in/from-crm"
    assert from_crm.enrichment is not None

    pdl_only = make_orchestrator(enricher=enricher).research_attendee(
        AttendeeInput(name="Jane Doe", email="jane@acme.com"), "Acme Co"
    )
    assert pdl_only.linkedin_url == "https://linkedin.com/in/from-pdl"


def test_linkedin_discovery_and_scrape():
    query = linkedin_query("Jane Doe", "Acme Co", "VP Sales")
    provider = DummySearchProvider(
        {
            query: [
                SearchResult(
                    title="Jane Doe - VP Sales - Acme Co | LinkedIn",
                    snippet="Experienced sales leader",
                    link="https://www.linkedin.com/in/janedoe",
                )
            ]
        }
    )
    scraper = DummyScraper()
    orchestrator = make_orchestrator(provider, scraper=scraper)

    profile = orchestrator.research_attendee(AttendeeInput(name="Jane Doe", title="VP Sales"), "Acme Co")

    assert profile.linkedin_url == "https://www.linkedin.com/in/janedoe"
    assert profile.linkedin_snippet == "Experienced sales leader"
    assert profile.linkedin_profile_content == scraper.content
    assert scraper.urls == ["https://www.linkedin.com/in/janedoe"]


def test_scrape_failure_keeps_crm_and_background_results():
    crm_contact = CRMContact(
        email="jane@acme.com", first_name="Jane", last_name="Doe",
        linkedin_url="https://linkedin.com:abc/in/jane",
    )

    class Store(FlakyContactStore):
        def find_by_email(self, email):
            return crm_contact

    class ExplodingScraper(DummyScraper):
        def fetch_linkedin_profile(self, url):
            self.urls.append(url)
            raise ValueError("Invalid port: 'abc'")

    scraper = ExplodingScraper()
    orchestrator = make_orchestrator(
        contact_matcher=ContactMatcher(Store(None)), scraper=scraper
    )

    context = orchestrator.run(
        ResearchRequest(
            company="Acme Co",
            attendees=[AttendeeInput(name="Jane Doe", email="jane@acme.com")],
        )
    )

    profile = context.attendees[0]
    assert scraper.urls == ["https://linkedin.com:abc/in/jane"]
    assert profile.crm_contact == crm_contact
    assert profile.linkedin_url == "https://linkedin.com:abc/in/jane"
    assert profile.linkedin_profile_content is None
    assert len(profile.search_results) == 1


def test_scraping_disabled_by_config():
    scraper = DummyScraper()
    orchestrator = make_orchestrator(
        scraper=scraper, config=ResearchConfig(scrape_linkedin=False)
    )

    profile = orchestrator.research_attendee(
        AttendeeInput(name="Jane Doe", linkedin_url="https://linkedin.com/in/janedoe"), "Acme Co"
    )

    assert profile.linkedin_profile_content is None
    assert scraper.urls == []


def test_enrichment_failure_is_not_fatal():
    orchestrator = make_orchestrator(enricher=DummyEnricher(error=EnrichmentQuotaError("quota")))

    profile = orchestrator.research_attendee(
        AttendeeInput(name="Jane Doe", email="jane@acme.com"), "Acme Co"
    )

    assert profile.enrichment is None
    assert profile.search_results


def test_enrichment_skipped_without_email():
    enricher = DummyEnricher()
    make_orchestrator(enricher=enricher).research_attendee(AttendeeInput(name="Jane Doe"), "Acme")
    assert enricher.emails == []


def test_company_and_competitive_phases_use_templates_and_limits():
    provider = DummySearchProvider(
        {
            competitive_query("Acme Co", "Retail"): [
                SearchResult(title=f"c{i}", snippet="", link=f"https://c.com/{i}") for i in range(10)
            ]
        }
    )
    orchestrator = make_orchestrator(provider)

    context = orchestrator.run(
        ResearchRequest(
            company="Acme Co", attendees=[AttendeeInput(name="Jane Doe")], industry="Retail"
        )
    )

    for query in company_queries("Acme Co", 2025).values():
        assert query in provider.queries
    assert len(context.competitive_landscape.results) == 8
    assert context.competitive_landscape.summary == (
        "Based on 8 search results for competitive landscape"
    )


def test_sources_are_deduplicated_non_empty_links_in_first_seen_order():
    shared = SearchResult(title="shared", snippet="", link="https://shared.com")
    provider = DummySearchProvider(
        {
            background_query("Jane Doe", "Acme Co"): [shared, SearchResult(title="e", snippet="")],
            company_queries("Acme Co", 2025)["overview"]: [shared],
        }
    )
    context = make_orchestrator(provider).run(
        ResearchRequest(
            company="Acme Co",
            attendees=[AttendeeInput(name="Jane Doe", linkedin_url="https://linkedin.com/in/jd")],
        )
    )

    assert context.sources[:2] == ["https://linkedin.com/in/jd", "https://shared.com"]
    assert len(context.sources) == len(set(context.sources))
    assert "" not in context.sources
