"""
Base client for the external HTTP sources.

Holds one pooled httpx.AsyncClient per source and turns transport and HTTP
failures into SourceError subclasses whose codes the error classifier
understands. Clients make exactly one HTTP call per method call: retries,
timeout budgets and health tracking belong to the retry engine and the
cascade.
"""

from typing import Any, Optional

import httpx
import structlog

from tour_resolver.monitoring.metrics import source_calls_total, source_latency_seconds
from tour_resolver.sources.exceptions import (
    SourceAuthError,
    SourceConnectionError,
    SourceError,
    SourceRateLimitError,
    SourceResponseError,
    SourceTimeoutError,
    SourceUnavailableError,
)

logger = structlog.get_logger(__name__)


class BaseSourceClient:
    """
    Shared HTTP plumbing for Places, Geocoding and Gemini clients.

    Subclasses set ``source_name`` and call ``_request``.
    """

    source_name = "source"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize base client.

        Args:
            base_url: API root, e.g. https://places.googleapis.com
            api_key: Google API key
            timeout: Transport timeout in seconds (outer budget is enforced by the cascade)
            connection_limits: httpx pool limits
            transport: Custom transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._connection_limits = connection_limits or httpx.Limits(
            max_keepalive_connections=5, max_connections=20, keepalive_expiry=30.0
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "Initialized source client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
            has_api_key=bool(api_key),
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def _require_api_key(self) -> None:
        if not self.api_key:
            raise SourceAuthError(
                f"no API key configured for {self.source_name}", source=self.source_name
            )

    def _error_for_status(self, response: httpx.Response) -> SourceError:
        status_code = response.status_code
        upstream_status = ""
        try:
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                upstream_status = str(body["error"].get("status", ""))
        except ValueError:
            body = response.text[:500]

        details = {"status_code": status_code, "upstream_status": upstream_status}
        message = f"{self.source_name} returned HTTP {status_code} {upstream_status}".strip()

        if status_code == 429:
            return SourceRateLimitError(message, source=self.source_name, details=details)
        if status_code == 401:
            return SourceAuthError(message, code="UNAUTHORIZED", source=self.source_name, details=details)
        if status_code == 403:
            return SourceAuthError(message, code="FORBIDDEN", source=self.source_name, details=details)
        if status_code == 500:
            return SourceUnavailableError(message, code="INTERNAL_ERROR", source=self.source_name, details=details)
        if status_code >= 500:
            return SourceUnavailableError(message, source=self.source_name, details=details)
        return SourceResponseError(message, code="INVALID_REQUEST", source=self.source_name, details=details)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send one request and return the decoded JSON body.

        Raises:
            SourceTimeoutError: transport timeout
            SourceConnectionError: network failure
            SourceError: non-2xx responses, mapped by status code
            SourceResponseError: body is not JSON
        """
        client = await self._get_client()
        outcome = "error"
        try:
            with source_latency_seconds.labels(source=self.source_name).time():
                response = await client.request(method, path, **kwargs)
            if response.is_error:
                raise self._error_for_status(response)
            try:
                data = response.json()
            except ValueError as e:
                raise SourceResponseError(
                    f"{self.source_name} returned a non-JSON body",
                    source=self.source_name,
                    details={"parse_error": str(e)},
                ) from e
            outcome = "success"
            return data

        except httpx.TimeoutException as e:
            outcome = "timeout"
            raise SourceTimeoutError(
                f"{self.source_name} transport deadline of {self.timeout}s hit",
                source=self.source_name,
                details={"error_type": type(e).__name__},
            ) from e

        except httpx.TransportError as e:
            raise SourceConnectionError(
                f"{self.source_name} network error: {type(e).__name__}",
                source=self.source_name,
                details={"error": str(e)},
            ) from e

        finally:
            source_calls_total.labels(source=self.source_name, outcome=outcome).inc()

    async def close(self) -> None:
        """Close the pooled HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed source client", client_class=self.__class__.__name__)
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url}, timeout={self.timeout}s)"
