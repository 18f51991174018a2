"""HubSpot CRM contact store client."""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from meetingintel.core.config import HubSpotConfig
from meetingintel.core.exceptions import CRMError, ExternalServiceError
from meetingintel.data.base import ProviderClient
from meetingintel.intelligence.research_models import CRMContact
from meetingintel.utils.reliability import RetryPolicy

logger = structlog.get_logger(__name__)

CONTACT_SEARCH_PATH = "/crm/v3/objects/contacts/search"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class HubSpotClient(ProviderClient):
    """
    Thin wrapper over HubSpot's contact search API.

    Only answers exact filter queries; choosing between strategies and
    between candidates is the contact matcher's job.
    """

    service_name = "hubspot"

    def __init__(
        self,
        config: HubSpotConfig,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config
        super().__init__(
            base_url=config.api_base,
            headers={
                "Authorization": f"Bearer {config.token or ''}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            retry_policy=retry_policy,
            http_client=http_client,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.config.token)

    def find_by_email(self, email: str) -> Optional[CRMContact]:
        """Exact lookup on the normalized email address."""
        filters = [{"propertyName": "email", "operator": "EQ", "value": normalize_email(email)}]
        results = self._search(filters, limit=1)
        return results[0] if results else None

    def find_by_name_company(
        self, first_name: str, last_name: str, company: Optional[str] = None
    ) -> List[CRMContact]:
        """Exact first + last name lookup, optionally constrained to a company."""
        filters = [
            {"propertyName": "firstname", "operator": "EQ", "value": first_name},
            {"propertyName": "lastname", "operator": "EQ", "value": last_name},
        ]
        if company:
            filters.append({"propertyName": "company", "operator": "EQ", "value": company})
        return self._search(filters)

    def find_by_first_name_prefix(self, prefix: str, last_name: str) -> List[CRMContact]:
        """Token-prefix match on the first name combined with an exact last name."""
        filters = [
            {"propertyName": "firstname", "operator": "CONTAINS_TOKEN", "value": f"{prefix}*"},
            {"propertyName": "lastname", "operator": "EQ", "value": last_name},
        ]
        return self._search(filters)

    def _search(self, filters: List[Dict[str, Any]], limit: Optional[int] = None) -> List[CRMContact]:
        if not self.is_configured:
            raise CRMError("HUBSPOT_TOKEN not configured")

        payload = {
            "filterGroups": [{"filters": filters}],
            "properties": self.config.contact_properties,
            "limit": limit or self.config.search_limit,
        }
        try:
            response = self._make_request("POST", CONTACT_SEARCH_PATH, json_data=payload)
            data = response.json()
        except ExternalServiceError as e:
            raise CRMError(str(e), details={"status_code": e.status_code}) from e
        except ValueError as e:
            raise CRMError(f"Invalid HubSpot response: {e}") from e

        contacts = [self._to_contact(item) for item in data.get("results") or []]
        logger.debug("hubspot_contact_search", filters=len(filters), results=len(contacts))
        return contacts

    @staticmethod
    def _to_contact(item: Dict[str, Any]) -> CRMContact:
        props = item.get("properties") or {}
        return CRMContact(
            id=str(item.get("id") or props.get("hs_object_id") or "") or None,
            email=props.get("email"),
            first_name=props.get("firstname"),
            last_name=props.get("lastname"),
            job_title=props.get("jobtitle"),
            company=props.get("company"),
            lifecycle_stage=props.get("lifecyclestage"),
            linkedin_url=props.get("linkedin_url"),
        )
