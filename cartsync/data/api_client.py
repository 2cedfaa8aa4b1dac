"""
Async HTTP client for the storefront backend.

Wraps httpx and maps every outcome onto the CartSync error taxonomy:
requests that yield no usable response (transport failures, undecodable
bodies, redirect loops) become ``NetworkError``, error statuses become
``ApiStatusError`` (``NotFoundSignal`` for 404) carrying the server's message.
Callers decide what a status means for their endpoint.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from cartsync.core.config import ApiConfig
from cartsync.core.exceptions import ApiStatusError, NetworkError, NotFoundSignal

logger = structlog.get_logger(__name__)


def _extract_message(response: httpx.Response) -> str:
    """Pull ``message`` out of a ``{success: false, message}`` body, if present."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = response.text.strip()
    if text:
        return text[:500]
    return response.reason_phrase or f"HTTP {response.status_code}"


class StorefrontApiClient:
    """
    Thin async client for the storefront REST API.

    No retries: a failed call is reported once and the caller decides.
    """

    def __init__(
        self,
        config: ApiConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.client = httpx.AsyncClient(
            base_url=config.endpoint,
            timeout=httpx.Timeout(config.request_timeout),
            transport=transport,
            follow_redirects=True,
        )

        logger.debug("Storefront API client initialized", endpoint=config.endpoint)

    async def __aenter__(self) -> "StorefrontApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a request to the storefront API.

        Args:
            method: HTTP method
            path: API path (relative to the configured endpoint)
            token: Bearer token, sent as ``Authorization`` when given
            json_data: JSON payload
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            NetworkError: No interpretable response
            ApiStatusError: Server answered with a 4xx/5xx status
        """
        headers = {"Authorization": f"Bearer {token}"} if token else None

        logger.debug(
            "Making storefront API request",
            method=method,
            path=path,
            authenticated=bool(token),
            has_data=bool(json_data),
        )

        try:
            response = await self.client.request(
                method, path, json=json_data, params=params, headers=headers
            )
        except httpx.RequestError as e:
            logger.error(
                "Storefront API unreachable",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise NetworkError(cause=e, details={"path": path}) from e

        if response.status_code >= 400:
            message = _extract_message(response)
            logger.warning(
                "Storefront API error response",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            error_cls = NotFoundSignal if response.status_code == 404 else ApiStatusError
            raise error_cls(
                response.status_code,
                message,
                details={"path": path, "status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("Storefront API returned invalid JSON", path=path)
            raise NetworkError(cause=e, details={"path": path}) from e

    async def health_check(self) -> Dict[str, Any]:
        """Probe the catalog endpoint; raises on failure."""
        payload = await self.request("GET", "/products")
        return {
            "status": "healthy",
            "endpoint": self.config.endpoint,
            "product_count": len(payload) if isinstance(payload, list) else None,
        }
