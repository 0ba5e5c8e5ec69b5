"""Client for the remote catalog webservice.

Contract consumed by the sync engine:
- fetch_match_page(kind, page): EAN / OEM / PCD / distributor match pages
- fetch_product_list(ids, filter): product details for a batch of external ids
- get_user_info(): account info, used as a connection test
- fetch_finder_*(): device brands, types, series and models for the device import

Every request carries the account credentials and API version as query
parameters. Transport failures and 5xx/429 responses are retried with
exponential backoff; a response carrying an `error` array is a contract
failure and is never retried.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Literal

import httpx

from catalog_sync.settings import Settings, get_settings

logger = logging.getLogger("uvicorn.error")

MatchKind = Literal["ean", "oem", "pcd", "distributor"]
ProductListFilter = Literal["all", "product_application_in"]

MATCH_ENDPOINTS: dict[str, str] = {
    "ean": "/match/ean",
    "oem": "/match/oem",
    "pcd": "/match/pcd",
    "distributor": "/match/distributor",
}

FINDER_ENDPOINTS: dict[str, str] = {
    "brands": "/finder/ink_toner/brands",
    "device_types": "/finder/ink_toner/devicetypes",
    "series": "/finder/ink_toner/modelseries",
    "models": "/finder/ink_toner/models",
}

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class WebserviceError(RuntimeError):
    """Transport failure (after retries) or unexpected HTTP status."""

    pass


class WebserviceResponseError(WebserviceError):
    """Response did not honor the contract (error payload, missing pagination)."""

    def __init__(self, message: str, remote_message: str | None = None):
        super().__init__(message)
        self.remote_message = remote_message


def remote_error_message(payload: Any) -> str | None:
    """Extract `error[0].error_message` (or a plain error string) from a response."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if not error:
        return None
    if isinstance(error, list):
        first = error[0]
        if isinstance(first, dict):
            message = first.get("error_message")
            return str(message) if message else None
        return str(first)
    if isinstance(error, dict):
        message = error.get("error_message")
        return str(message) if message else None
    return str(error)


def available_pages(payload: Any, context: str) -> int:
    """Return `page.available_pages` or raise.

    Args:
        payload: Decoded response.
        context: Prefix for the error message (e.g. "ean webservice").

    Raises:
        WebserviceResponseError: When the pagination metadata is missing.
    """
    page = payload.get("page") if isinstance(payload, dict) else None
    pages = page.get("available_pages") if isinstance(page, dict) else None
    if pages is None:
        remote = remote_error_message(payload)
        message = f"{context} no pages"
        if remote:
            message = f"{remote} {message}"
        raise WebserviceResponseError(message, remote_message=remote)
    try:
        return int(pages)
    except (TypeError, ValueError) as e:
        raise WebserviceResponseError(f"{context} invalid available_pages: {pages!r}") from e


class RemoteCatalogClient:
    """Client for the remote catalog webservice."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client from settings.

        Args:
            settings: Settings to read credentials and retry policy from.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.api_base_url.rstrip("/")
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.settings.api_timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _auth_params(self) -> dict[str, str]:
        return {
            "uid": self.settings.api_uid,
            "security_key": self.settings.api_security_key,
            "password": self.settings.api_password,
            "version": self.settings.api_version,
            "language": self.settings.api_language,
        }

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET an endpoint and decode its JSON body, retrying transient failures."""
        query: dict[str, Any] = {"filter": "all", **(params or {}), **self._auth_params()}
        url = f"{self.base_url}{endpoint}"
        client = await self._get_client()

        delay = self.settings.api_retry_initial_delay_ms / 1000
        attempt = 0
        while True:
            try:
                response = await client.get(url, params=query)
                if response.status_code in _RETRYABLE_STATUS:
                    raise WebserviceError(f"{endpoint} returned HTTP {response.status_code}")
                break
            except (httpx.TransportError, WebserviceError) as e:
                attempt += 1
                if attempt > self.settings.api_max_retries:
                    raise WebserviceError(f"{endpoint} failed after {attempt} attempts: {e}") from e
                logger.warning(f"Webservice {endpoint} attempt {attempt} failed ({e}); retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                delay *= self.settings.api_retry_multiplier

        if response.status_code >= 400:
            raise WebserviceError(f"{endpoint} returned HTTP {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise WebserviceResponseError(f"{endpoint} returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise WebserviceResponseError(f"{endpoint} returned {type(payload).__name__}, expected an object")

        remote = remote_error_message(payload)
        if remote:
            raise WebserviceResponseError(f"{endpoint}: {remote}", remote_message=remote)
        return payload

    async def fetch_match_page(self, kind: MatchKind, page: int) -> dict[str, Any]:
        """Fetch one page of EAN/OEM/PCD/distributor matches.

        Args:
            kind: Match type.
            page: 1-based page number.

        Returns:
            Decoded response: {"page": {"available_pages": n}, "match": [...]}.
        """
        endpoint = MATCH_ENDPOINTS.get(kind)
        if endpoint is None:
            raise ValueError(f"Unknown match kind: {kind}")
        return await self._get(endpoint, {"page": page})

    async def fetch_product_list(
        self,
        external_ids: Sequence[int],
        filter: ProductListFilter = "all",
    ) -> dict[str, Any]:
        """Fetch product details for a batch of external ids.

        Returns:
            Decoded response: {"page": {"available_pages": n}, "products": [...]}.
        """
        ids = ",".join(str(i) for i in external_ids)
        return await self._get("/product_list", {"products": ids, "filter": filter})

    async def get_user_info(self) -> dict[str, Any]:
        """Fetch account info (connection test)."""
        return await self._get("/user/user_info")

    # ============================================================
    # Device finder
    # ============================================================

    async def fetch_finder_brands(self) -> dict[str, Any]:
        """Fetch every device brand: {"data": [{"id", "val", "top", "main"}, ...]}."""
        return await self._get(FINDER_ENDPOINTS["brands"])

    async def fetch_finder_device_types(self, brand_id: int | None = None) -> dict[str, Any]:
        """Fetch device types: {"data": [{"id", "val", "top", "brandIds"}, ...]}."""
        params = {"brand_id": brand_id} if brand_id else None
        return await self._get(FINDER_ENDPOINTS["device_types"], params)

    async def fetch_finder_series(self, brand_id: int | None = None) -> dict[str, Any]:
        """Fetch model series: {"data": [{"id", "val", "top", "brandIds"}, ...]}."""
        params = {"brand_id": brand_id} if brand_id else None
        return await self._get(FINDER_ENDPOINTS["series"], params)

    async def fetch_finder_models(self, limit: int, start: int) -> dict[str, Any]:
        """Fetch one page of devices: {"data": [{"id", "val", "top", "bId", "mId", "dId"}, ...]}.

        Args:
            limit: Page size.
            start: Offset of the first device.
        """
        return await self._get(FINDER_ENDPOINTS["models"], {"limit": limit, "start": start})
