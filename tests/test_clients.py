"""Tests for the provider clients against mocked HTTP transports."""

import json
from types import SimpleNamespace
from unittest.mock import Mock

import httpx
import openai
import pytest

from meetingintel.core.config import HubSpotConfig, OpenAIConfig, PeopleDataLabsConfig, SearchConfig
from meetingintel.core.exceptions import (
    CRMError,
    EnrichmentQuotaError,
    GenerationError,
    GenerationTimeoutError,
    ScrapeError,
    SearchProviderError,
)
from meetingintel.data.hubspot_client import HubSpotClient
from meetingintel.data.openai_client import OpenAIChatClient
from meetingintel.data.peopledatalabs_client import (
    PeopleDataLabsClient,
    extract_current_job,
    extract_education_summary,
    extract_linkedin_url,
)
from meetingintel.data.scrape_client import TRUNCATION_MARKER, WebScraper, truncate
from meetingintel.data.search_client import SerperSearchClient
from meetingintel.utils.reliability import ProviderRateLimiter, RetryPolicy

FAST_RETRY = RetryPolicy(max_attempts=2, base_delay=0, max_delay=0)


def mock_http(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestSerperSearchClient:
    def test_parses_organic_results(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["key"] = request.headers["X-API-KEY"]
            return httpx.Response(
                200,
                json={"organic": [{"title": "Acme", "snippet": "About Acme", "link": "https://acme.com"}]},
            )

        client = SerperSearchClient(
            SearchConfig(api_key="k"), retry_policy=FAST_RETRY, http_client=mock_http(handler)
        )
        results = client.search("acme overview", 5)

        assert seen == {"body": {"q": "acme overview", "num": 5}, "key": "k"}
        assert results[0].title == "Acme"
        assert results[0].link == "https://acme.com"

    def test_missing_key_raises(self):
        client = SerperSearchClient(SearchConfig(api_key=None))
        with pytest.raises(SearchProviderError):
            client.search("acme")

    def test_server_errors_are_retried_then_raised(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        client = SerperSearchClient(
            SearchConfig(api_key="k"), retry_policy=FAST_RETRY, http_client=mock_http(handler)
        )
        with pytest.raises(SearchProviderError):
            client.search("acme")
        assert len(calls) == 2

    def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, text="bad key")

        client = SerperSearchClient(
            SearchConfig(api_key="k"), retry_policy=FAST_RETRY, http_client=mock_http(handler)
        )
        with pytest.raises(SearchProviderError):
            client.search("acme")
        assert len(calls) == 1


class TestHubSpotClient:
    def test_email_lookup_normalizes_and_maps_contact(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "results": [
                        {
                            "id": "101",
                            "properties": {
                                "email": "jane@acme.com",
                                "firstname": "Jane",
                                "lastname": "Doe",
                                "company": "Acme Co",
                                "lifecyclestage": "customer",
                            },
                        }
                    ]
                },
            )

        client = HubSpotClient(
            HubSpotConfig(token="t"), retry_policy=FAST_RETRY, http_client=mock_http(handler)
        )
        contact = client.find_by_email(" Jane@Acme.com ")

        assert seen["body"]["filterGroups"][0]["filters"][0]["value"] == "jane@acme.com"
        assert contact.id == "101"
        assert contact.full_name == "Jane Doe"
        assert contact.lifecycle_stage == "customer"

    def test_prefix_lookup_uses_token_wildcard(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": []})

        client = HubSpotClient(
            HubSpotConfig(token="t"), retry_policy=FAST_RETRY, http_client=mock_http(handler)
        )
        assert client.find_by_first_name_prefix("Jona", "Smith") == []

        filters = seen["body"]["filterGroups"][0]["filters"]
        assert filters[0] == {"propertyName": "firstname", "operator": "CONTAINS_TOKEN", "value": "Jona*"}
        assert filters[1]["value"] == "Smith"

    def test_unconfigured_raises(self):
        with pytest.raises(CRMError):
            HubSpotClient(HubSpotConfig(token=None)).find_by_email("jane@acme.com")


class TestPeopleDataLabsClient:
    def make_client(self, handler, limiter=None):
        return PeopleDataLabsClient(
            PeopleDataLabsConfig(api_key="k"),
            rate_limiter=limiter,
            retry_policy=FAST_RETRY,
            http_client=mock_http(handler),
        )

    def test_enriches_profile(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "status": 200,
                    "likelihood": 8,
                    "data": {
                        "full_name": "jane doe",
                        "job_title": "vp sales",
                        "job_company_name": "acme",
                        "linkedin_url": "linkedin.com/in/janedoe",
                        "skills": ["sales", "saas"],
                        "education": [{"school": {"name": "State U"}, "degrees": ["BA"], "majors": ["economics"]}],
                    },
                },
            )

        limiter = ProviderRateLimiter(max_requests=10)
        person = self.make_client(handler, limiter).enrich_person("Jane@Acme.com")

        assert person.email == "jane@acme.com"
        assert person.job_title == "vp sales"
        assert person.linkedin_url == "https://linkedin.com/in/janedoe"
        assert person.education == ["State U - BA in economics"]
        assert limiter.request_count == 1

    def test_not_found_returns_none(self):
        client = self.make_client(lambda request: httpx.Response(404, json={"status": 404}))
        assert client.enrich_person("nobody@acme.com") is None

    def test_quota_exhausted_raises(self):
        client = self.make_client(lambda request: httpx.Response(402, json={"status": 402}))
        with pytest.raises(EnrichmentQuotaError):
            client.enrich_person("jane@acme.com")

    def test_extractors(self):
        profile = {
            "profiles": [{"network": "LinkedIn", "url": "linkedin.com/in/jd"}],
            "job_history": [
                {"title": "AE", "company": {"name": "Old"}, "end_date": "2020-01"},
                {"title": "VP", "company": {"name": "Acme", "industry": "retail"}},
            ],
        }
        assert extract_linkedin_url(profile) == "https://linkedin.com/in/jd"
        assert extract_current_job(profile) == {"title": "VP", "company": "Acme", "industry": "retail"}
        assert extract_education_summary({}) == []


ARTICLE_HTML = """
<html><head><title>Acme Pricing Update</title></head>
<body><nav>Home | About | Contact</nav>
<article><h1>Acme Pricing Update</h1>
<p>Acme Co announced a new pricing model for its enterprise customers this quarter,
moving from seat-based licences to usage-based billing across all product lines.
Executives said the change follows two years of experimentation with mid-market accounts.</p>
<p>Analysts expect the shift to lift net revenue retention, although several large
customers have asked for committed-spend discounts before renewing. The company plans
to publish a migration guide and a cost calculator ahead of the first billing cycle.</p>
</article></body></html>
"""


class TestWebScraper:
    def test_extracts_title_and_text(self):
        scraper = WebScraper(http_client=mock_http(lambda r: httpx.Response(200, text=ARTICLE_HTML)))

        page = scraper.fetch_text("https://acme.com/pricing")

        assert "Acme" in page.title
        assert "usage-based billing" in page.content
        assert "Home | About" not in page.content
        assert page.url == "https://acme.com/pricing"

    def test_content_is_capped_with_marker(self):
        scraper = WebScraper(
            max_content_length=50,
            http_client=mock_http(lambda r: httpx.Response(200, text=ARTICLE_HTML)),
        )
        content = scraper.fetch_text("https://acme.com/pricing").content

        assert content.endswith(TRUNCATION_MARKER)
        assert len(content) == 50

    def test_http_error_raises_scrape_error(self):
        scraper = WebScraper(http_client=mock_http(lambda r: httpx.Response(500)))
        with pytest.raises(ScrapeError):
            scraper.fetch_text("https://acme.com")

    def test_linkedin_login_wall_is_discarded(self):
        html = "<html><body><p>Sign in</p><p>Join now</p></body></html>"
        scraper = WebScraper(http_client=mock_http(lambda r: httpx.Response(200, text=html)))
        assert scraper.fetch_linkedin_profile("https://linkedin.com/in/jd") is None

    def test_linkedin_fetch_failure_returns_none(self):
        scraper = WebScraper(http_client=mock_http(lambda r: httpx.Response(403)))
        assert scraper.fetch_linkedin_profile("https://linkedin.com/in/jd") is None

    def test_malformed_linkedin_url_returns_none(self):
        scraper = WebScraper(http_client=mock_http(lambda r: httpx.Response(200, text=ARTICLE_HTML)))
        assert scraper.fetch_linkedin_profile("https://linkedin.com:abc/in/jane") is None

    def test_truncate_keeps_marker_within_cap(self):
        assert truncate("x" * 40, 40) == "x" * 40
        assert truncate("x" * 41, 40) == "x" * (40 - len(TRUNCATION_MARKER)) + TRUNCATION_MARKER


def make_completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestOpenAIChatClient:
    def make_client(self, create, retry_policy=FAST_RETRY, **kwargs):
        sdk = Mock()
        sdk.chat.completions.create = create
        return OpenAIChatClient(
            OpenAIConfig(api_key="k"), retry_policy=retry_policy, client=sdk, **kwargs
        )

    def test_returns_content_and_tool_calls(self):
        call = SimpleNamespace(
            id="c1", function=SimpleNamespace(name="search_web", arguments='{"query": "x"}')
        )
        create = Mock(return_value=make_completion(content=None, tool_calls=[call]))
        client = self.make_client(create)

        result = client.complete(
            [{"role": "user", "content": "hi"}], tools=[{"type": "function"}], timeout=12.5
        )

        assert result.tool_calls[0].name == "search_web"
        assert result.assistant_message()["tool_calls"][0]["id"] == "c1"
        kwargs = create.call_args.kwargs
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["timeout"] == pytest.approx(12.5, abs=0.5)
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 3000

    def test_connection_errors_are_retried(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        create = Mock(side_effect=[openai.APIConnectionError(request=request), make_completion("ok")])

        assert self.make_client(create).complete([]).content == "ok"
        assert create.call_count == 2

    def test_timeout_maps_to_generation_timeout(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        create = Mock(side_effect=openai.APITimeoutError(request=request))

        with pytest.raises(GenerationTimeoutError):
            self.make_client(create).complete([], timeout=5)
        assert create.call_count == 1

    def test_missing_key_raises_generation_error(self):
        with pytest.raises(GenerationError):
            OpenAIChatClient(OpenAIConfig(api_key=None)).complete([])

    def test_retries_share_the_remaining_budget(self, clock):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        timeouts = []

        def create(**kwargs):
            timeouts.append(kwargs["timeout"])
            if len(timeouts) == 1:
                clock.advance(0.4)
                raise openai.APIConnectionError(request=request)
            return make_completion("ok")

        client = self.make_client(Mock(side_effect=create), clock=clock)

        assert client.complete([], timeout=1.0).content == "ok"
        assert timeouts == [pytest.approx(1.0), pytest.approx(0.6)]

    def test_failed_attempts_past_deadline_raise_timeout(self, clock):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

        def create(**kwargs):
            clock.advance(kwargs["timeout"])
            raise openai.APIConnectionError(request=request)

        create_mock = Mock(side_effect=create)
        client = self.make_client(
            create_mock,
            retry_policy=RetryPolicy(max_attempts=3, base_delay=0, max_delay=0),
            clock=clock,
        )

        with pytest.raises(GenerationTimeoutError):
            client.complete([], timeout=1.0)
        assert create_mock.call_count == 1

    def test_exhausted_retries_after_deadline_raise_timeout(self, clock):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

        def create(**kwargs):
            clock.advance(kwargs["timeout"] + 0.1)
            raise openai.APIConnectionError(request=request)

        client = self.make_client(
            Mock(side_effect=create), retry_policy=RetryPolicy.no_retry(), clock=clock
        )

        with pytest.raises(GenerationTimeoutError):
            client.complete([], timeout=1.0)
