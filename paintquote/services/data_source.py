"""Contractor data source client.

HTTP client for the persistence API that owns company profiles, pricing
settings, the paint catalog and quote history. The core treats it as an
opaque record store: reads are retried on transport errors, writes are not.

Endpoints:
    GET  /api/companies/{company_id}
    GET  /api/companies/settings?companyId=
    GET  /api/companies/paints?companyId=         -> {"paints": [...]}
    GET  /api/quotes?companyId=&limit=            -> {"quotes": [...]}
    PUT  /api/paint-products/favorites            (price update)
    POST /api/paint-products/favorites            (new favorite)
"""

from typing import Dict, Any, List, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.config.errors import DataSourceError, ErrorCode

logger = structlog.get_logger()

FAVORITES_PATH = "/api/paint-products/favorites"


class ContractorDataSource:
    """Async client for the company/paint/quote API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        wait=None
    ):
        """Initialize ContractorDataSource.

        Args:
            settings: Settings instance (default: module settings).
            base_url: API base URL (default: settings.data_source_base_url).
            transport: Optional httpx transport (tests pass httpx.MockTransport).
            wait: Optional tenacity wait strategy for read retries.
        """
        self.settings = settings or default_settings
        self.base_url = (base_url or self.settings.data_source_base_url).rstrip("/")
        self._transport = transport
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.data_source_timeout_seconds,
            transport=self._transport
        )

    async def _get_json(self, resource: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON payload, retrying transport errors.

        Raises:
            DataSourceError: On non-success status, bad JSON, or exhausted retries.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.data_source_max_attempts),
                wait=self._wait,
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    async with self._client() as client:
                        response = await client.get(path, params=params)
                        response.raise_for_status()
                        return response.json()
        except httpx.HTTPStatusError as e:
            raise DataSourceError(
                code=ErrorCode.DATA_SOURCE_ERROR,
                message=f"Data source returned {e.response.status_code} for {resource}",
                resource=resource,
                details={"status_code": e.response.status_code, "path": path}
            )
        except httpx.HTTPError as e:
            raise DataSourceError(
                code=ErrorCode.DATA_SOURCE_ERROR,
                message=f"Data source unavailable for {resource}: {e}",
                resource=resource,
                details={"path": path}
            )
        except ValueError as e:
            raise DataSourceError(
                code=ErrorCode.DATA_SOURCE_ERROR,
                message=f"Data source returned invalid JSON for {resource}",
                resource=resource,
                details={"path": path, "parse_error": str(e)}
            )

    async def _send_json(self, resource: str, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send a single write request to the favorites endpoint.

        Raises:
            DataSourceError: On transport failure or non-success status.
        """
        try:
            async with self._client() as client:
                response = await client.request(method, FAVORITES_PATH, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DataSourceError(
                code=ErrorCode.DATA_SOURCE_WRITE_FAILED,
                message=f"{resource} rejected with status {e.response.status_code}",
                resource=resource,
                details={"status_code": e.response.status_code}
            )
        except httpx.HTTPError as e:
            raise DataSourceError(
                code=ErrorCode.DATA_SOURCE_WRITE_FAILED,
                message=f"{resource} failed: {e}",
                resource=resource
            )

        try:
            body = response.json()
        except ValueError:
            body = {}
        return body if isinstance(body, dict) else {}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_company(self, company_id: str) -> Dict[str, Any]:
        """Fetch the company profile."""
        payload = await self._get_json("company", f"/api/companies/{company_id}")
        return payload if isinstance(payload, dict) else {}

    async def get_settings(self, company_id: str) -> Dict[str, Any]:
        """Fetch the company's pricing settings."""
        payload = await self._get_json(
            "settings", "/api/companies/settings", params={"companyId": company_id}
        )
        return payload if isinstance(payload, dict) else {}

    async def get_paint_products(self, company_id: str) -> List[Dict[str, Any]]:
        """Fetch the paint catalog, in display order."""
        payload = await self._get_json(
            "paints", "/api/companies/paints", params={"companyId": company_id}
        )
        if not isinstance(payload, dict):
            return []
        return list(payload.get("paints") or [])

    async def get_recent_quotes(self, company_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Fetch the most recent quotes, most recent first."""
        payload = await self._get_json(
            "quotes",
            "/api/quotes",
            params={"companyId": company_id, "limit": limit or self.settings.recent_quotes_limit}
        )
        if not isinstance(payload, dict):
            return []
        return list(payload.get("quotes") or [])

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def update_paint_price(self, company_id: str, product_id: str, new_price: float) -> Dict[str, Any]:
        """Update the cost per gallon of one catalog entry."""
        logger.info("paint_price_update_requested", company_id=company_id, product_id=product_id)
        return await self._send_json("price_update", "PUT", {
            "companyId": company_id,
            "productId": product_id,
            "newPrice": new_price,
            "action": "update_price"
        })

    async def save_favorite_paint(
        self,
        company_id: str,
        paint_product: Dict[str, Any],
        category: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a new favorite paint product."""
        logger.info("paint_favorite_save_requested", company_id=company_id)
        return await self._send_json("save_favorite", "POST", {
            "companyId": company_id,
            "paintProduct": paint_product,
            "category": category or "wall_paint"
        })
