"""Serper (Google search) client."""

from typing import List, Optional

import httpx
import structlog

from meetingintel.core.config import SearchConfig
from meetingintel.core.exceptions import ExternalServiceError, SearchProviderError
from meetingintel.data.base import ProviderClient
from meetingintel.intelligence.research_models import SearchResult
from meetingintel.utils.reliability import RetryPolicy

logger = structlog.get_logger(__name__)


class SerperSearchClient(ProviderClient):
    """Runs organic web searches through the Serper API."""

    service_name = "serper"

    def __init__(
        self,
        config: SearchConfig,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config
        super().__init__(
            base_url=config.api_base,
            headers={"X-API-KEY": config.api_key or "", "Content-Type": "application/json"},
            timeout=timeout,
            retry_policy=retry_policy,
            http_client=http_client,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def search(self, query: str, max_results: int = 10) -> List[SearchResult]:
        """
        Search the web for ``query``.

        Raises:
            SearchProviderError: When the API key is missing or the call fails
        """
        if not self.is_configured:
            raise SearchProviderError("SERPER_API_KEY not configured")

        num = max(1, min(max_results, self.config.max_results))
        try:
            response = self._make_request("POST", "/search", json_data={"q": query, "num": num})
            payload = response.json()
        except ExternalServiceError as e:
            raise SearchProviderError(str(e), details={"query": query}) from e
        except ValueError as e:
            raise SearchProviderError(f"Invalid search response: {e}", details={"query": query}) from e

        results = [
            SearchResult(
                title=item.get("title") or "",
                snippet=item.get("snippet") or "",
                link=item.get("link") or "",
            )
            for item in payload.get("organic") or []
        ]
        logger.debug("serper_search_completed", query=query, results=len(results))
        return results[:num]
