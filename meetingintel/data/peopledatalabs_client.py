"""People Data Labs person enrichment client."""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from meetingintel.core.config import PeopleDataLabsConfig
from meetingintel.core.exceptions import (
    EnrichmentError,
    EnrichmentQuotaError,
    ExternalServiceError,
)
from meetingintel.data.base import ProviderClient
from meetingintel.data.hubspot_client import normalize_email
from meetingintel.intelligence.research_models import EnrichedPerson
from meetingintel.utils.reliability import ProviderRateLimiter, RetryPolicy

logger = structlog.get_logger(__name__)


class PeopleDataLabsClient(ProviderClient):
    """
    Enriches attendees by email.

    The API is quota-constrained, so every HTTP request (retries included)
    first takes a slot from the sliding-window rate limiter.
    """

    service_name = "peopledatalabs"

    def __init__(
        self,
        config: PeopleDataLabsConfig,
        rate_limiter: Optional[ProviderRateLimiter] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config
        self.rate_limiter = rate_limiter or ProviderRateLimiter(
            max_requests=config.max_requests_per_minute, name=self.service_name
        )
        super().__init__(
            base_url=config.api_base,
            headers={"X-Api-Key": config.api_key or "", "Content-Type": "application/json"},
            timeout=timeout,
            retry_policy=retry_policy,
            http_client=http_client,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _send(self, method, path, json_data, params):
        self.rate_limiter.acquire()
        return super()._send(method, path, json_data, params)

    def enrich_person(self, email: str) -> Optional[EnrichedPerson]:
        """
        Look up a person by email.

        Returns None when the provider has no profile for the address.

        Raises:
            EnrichmentQuotaError: The account quota is exhausted (HTTP 402)
            EnrichmentError: Any other provider failure
        """
        if not self.is_configured:
            raise EnrichmentError("PEOPLEDATALABS_API_KEY not configured")

        email = normalize_email(email)
        body = {
            "email": email,
            "required": "emails",
            "data_include": ",".join(self.config.enrichment_fields),
        }
        try:
            response = self._make_request("POST", "/person/enrich", json_data=body)
            payload = response.json()
        except ExternalServiceError as e:
            if e.status_code == 404:
                logger.info("pdl_no_profile", email=email)
                return None
            if e.status_code == 402:
                logger.error("pdl_quota_exceeded")
                raise EnrichmentQuotaError("People Data Labs API quota exceeded") from e
            raise EnrichmentError(str(e), details={"status_code": e.status_code}) from e
        except ValueError as e:
            raise EnrichmentError(f"Invalid People Data Labs response: {e}") from e

        data = payload.get("data")
        if payload.get("status") != 200 or not data:
            logger.info("pdl_no_profile", email=email)
            return None

        logger.info("pdl_contact_enriched", email=email)
        return self._to_person(email, data, payload.get("likelihood"))

    def _to_person(
        self, email: str, profile: Dict[str, Any], likelihood: Optional[float]
    ) -> EnrichedPerson:
        job = extract_current_job(profile)
        return EnrichedPerson(
            email=email,
            full_name=profile.get("full_name"),
            job_title=job.get("title"),
            job_company=job.get("company"),
            industry=job.get("industry") or profile.get("industry"),
            linkedin_url=extract_linkedin_url(profile),
            education=extract_education_summary(profile),
            skills=list(profile.get("skills") or [])[:15],
            summary=profile.get("summary"),
            confidence=likelihood,
        )


def extract_linkedin_url(profile: Dict[str, Any]) -> Optional[str]:
    """Prefer the top-level LinkedIn field, then the profiles list."""
    url = profile.get("linkedin_url")
    if url:
        return url if url.startswith("http") else f"https://{url}"

    for entry in profile.get("profiles") or []:
        if (entry.get("network") or "").lower() == "linkedin" and entry.get("url"):
            url = entry["url"]
            return url if url.startswith("http") else f"https://{url}"
    return None


def extract_current_job(profile: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Current title/company from the headline fields, else the open job history entry."""
    if profile.get("job_title") or profile.get("job_company_name"):
        return {
            "title": profile.get("job_title"),
            "company": profile.get("job_company_name"),
            "industry": profile.get("industry"),
        }

    history = profile.get("job_history") or []
    if not history:
        return {}

    current = next((job for job in history if not job.get("end_date")), history[0])
    company = current.get("company") or {}
    return {
        "title": current.get("title"),
        "company": company.get("name"),
        "industry": company.get("industry") or profile.get("industry"),
    }


def extract_education_summary(profile: Dict[str, Any]) -> List[str]:
    summaries = []
    for edu in profile.get("education") or []:
        school = (edu.get("school") or {}).get("name") or ""
        degrees = ", ".join(edu.get("degrees") or [])
        majors = ", ".join(edu.get("majors") or [])

        summary = school
        if degrees:
            summary += f" - {degrees}"
        if majors:
            summary += f" in {majors}"
        if summary:
            summaries.append(summary)
    return summaries
