"""
Shared HTTP plumbing for the research provider clients.

Every provider client sends JSON over ``httpx`` with an explicit timeout,
runs each request under the injected ``RetryPolicy`` and translates
transport and status failures into the package's exception hierarchy.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from meetingintel.core.exceptions import ExternalServiceError, TransientServiceError
from meetingintel.utils.reliability import RetryPolicy

logger = structlog.get_logger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ProviderClient:
    """Base class for JSON-over-HTTP provider clients."""

    service_name = "provider"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.client = http_client or httpx.Client(
            timeout=httpx.Timeout(timeout), headers=headers or {}, follow_redirects=True
        )
        if http_client is not None and headers:
            self.client.headers.update(headers)

    def close(self) -> None:
        self.client.close()

    def _make_request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request under the retry policy and return the successful response."""
        return self.retry_policy.call(
            self._send,
            method,
            path,
            json_data,
            params,
            retry_on=(TransientServiceError,),
        )

    def _send(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]],
        params: Optional[Dict[str, Any]],
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("provider_request", service=self.service_name, method=method, path=path)

        try:
            response = self.client.request(method=method, url=url, json=json_data, params=params)
        except httpx.TimeoutException as e:
            logger.warning("provider_timeout", service=self.service_name, path=path, error=str(e))
            raise TransientServiceError(self.service_name, f"timeout: {e}") from e
        except httpx.TransportError as e:
            logger.warning("provider_unreachable", service=self.service_name, path=path, error=str(e))
            raise TransientServiceError(self.service_name, f"transport error: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "provider_http_error",
                service=self.service_name,
                status_code=response.status_code,
                response_text=response.text[:500],
                path=path,
            )
            error_cls = (
                TransientServiceError
                if response.status_code in RETRYABLE_STATUS_CODES
                else ExternalServiceError
            )
            raise error_cls(
                self.service_name,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                details={"path": path},
            )

        return response
