"""
Shared httpx plumbing for HTTP adapters.

Maps transport failures and HTTP status codes onto the adapter error
hierarchy so the retry executor can tell transient from fatal:

    timeout / connection error / 5xx  -> TransientNetworkError (retried)
    429                                -> RateLimitError (retried)
    401 / 403                          -> AuthenticationError
    404                                -> ResourceNotFoundError
    other 4xx / unparseable body       -> AdapterProtocolError
"""

import httpx
from typing import Any, Dict, Optional
from core.config import settings
from core.exceptions import (
    AdapterProtocolError,
    AuthenticationError,
    RateLimitError,
    ResourceNotFoundError,
    TransientNetworkError,
)
from ingestion.base import SourceAdapter
import logging

logger = logging.getLogger(__name__)


class HTTPAdapter(SourceAdapter):
    """
    Base class for adapters that pull from an HTTP endpoint.

    The httpx client is created lazily and owned by the adapter unless one
    is passed in.
    """

    def __init__(self, source, retry_policy=None, client: Optional[httpx.AsyncClient] = None, **kwargs):
        super().__init__(source, retry_policy=retry_policy, **kwargs)
        self._client = client
        self._owns_client = client is None

    @property
    def timeout(self) -> float:
        return float(self.config.get("timeout", settings.HTTP_TIMEOUT))

    def default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.default_headers(),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET url and decode JSON, retrying transient failures."""
        return await self._with_retry(
            lambda: self._request_json(url, params),
            description=f"GET {url}",
        )

    async def get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        """GET url and return the body as text, retrying transient failures."""
        response = await self._with_retry(
            lambda: self._request(url, params),
            description=f"GET {url}",
        )
        return response.text

    async def _request_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._request(url, params)
        try:
            return response.json()
        except ValueError as e:
            raise AdapterProtocolError(
                f"Invalid JSON response from {url}",
                context={"url": url, "source_id": self.source.id, "body": response.text[:500]},
                original_exception=e,
            )

    async def _request(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        client = self._get_client()
        context = {"url": url, "source_id": self.source.id}

        try:
            response = await client.get(url, params=params)

        except httpx.TimeoutException as e:
            raise TransientNetworkError(
                f"Request timeout for {url}",
                context={**context, "timeout_seconds": self.timeout},
                original_exception=e,
            )

        except httpx.TransportError as e:
            raise TransientNetworkError(
                f"Network error for {url}",
                context=context,
                original_exception=e,
            )

        status = response.status_code
        context["status_code"] = status

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded for {url}",
                context=context,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if status >= 500:
            raise TransientNetworkError(f"Server error {status} for {url}", context=context)

        if status in (401, 403):
            raise AuthenticationError(f"Authentication failed for {url}", context=context)

        if status == 404:
            raise ResourceNotFoundError(f"Resource not found: {url}", context=context)

        if status >= 400:
            raise AdapterProtocolError(
                f"Unexpected status {status} for {url}",
                context={**context, "body": response.text[:500]},
            )

        return response

    async def _probe(self, url: str, params: Optional[Dict[str, Any]] = None) -> bool:
        """Single un-retried GET used by health checks."""
        try:
            response = await self._get_client().get(url, params=params, timeout=10.0)
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"Health check failed for {url}: {e}")
            return False
