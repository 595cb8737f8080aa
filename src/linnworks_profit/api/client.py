"""Linnworks API client."""

from typing import Any, AsyncIterator, List, Optional

import httpx

from linnworks_profit.config.constants import (
    DEFAULT_FROM_DATE,
    DEFAULT_SEARCH_FILTERS,
    DEFAULT_TO_DATE,
    PROCESSED_ORDERS_PAGE_SIZE,
    SUB_SOURCE_SEARCH_TERMS,
)
from linnworks_profit.core.exceptions import LinnworksAPIError
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import ProcessedOrder, ProcessedOrdersPage
from .endpoints import (
    AUTHORIZE_BY_APPLICATION,
    GET_INVENTORY_ITEM_EXTENDED_PROPERTIES,
    GET_RETURN_ITEMS_INFO,
    SEARCH_PROCESSED_ORDERS,
)

logger = setup_logger(__name__)


def map_search_filters(search_filters: Optional[List[dict]]) -> List[dict]:
    """
    Rewrite Source filters for consolidator retailers onto SubSource.

    Wilko and Robert Dyas orders arrive through a consolidator, so Linnworks
    records the retailer name as the order's SubSource, not its Source.
    """
    if not search_filters:
        return [dict(f) for f in DEFAULT_SEARCH_FILTERS]

    mapped = []
    for search_filter in search_filters:
        if (
            search_filter.get("SearchField") == "Source"
            and search_filter.get("SearchTerm") in SUB_SOURCE_SEARCH_TERMS
        ):
            mapped.append({"SearchField": "SubSource", "SearchTerm": search_filter["SearchTerm"]})
        else:
            mapped.append(search_filter)
    return mapped


class LinnworksAPIClient:
    """Async HTTP client for the Linnworks API."""

    def __init__(
        self,
        auth_token: str,
        host_api: str = "https://eu-ext.linnworks.net",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize API client with a session token."""
        self.auth_token = auth_token
        self.host_api = host_api.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.host_api,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": auth_token, "Accept": "application/json"},
        )

    async def __aenter__(self) -> "LinnworksAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @staticmethod
    async def authorize_by_application(
        application_id: str,
        application_secret: str,
        token: str,
        auth_host: str = "https://api.linnworks.net",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> str:
        """
        Exchange application credentials for a session token.

        Returns:
            Session token for the Authorization header

        Raises:
            LinnworksAPIError: non-2xx response or no token in the body
        """
        payload = {
            "applicationId": application_id,
            "applicationSecret": application_secret,
            "token": token,
        }
        async with httpx.AsyncClient(base_url=auth_host, transport=transport) as client:
            logger.info("Making auth request to Linnworks API")
            response = await client.post(AUTHORIZE_BY_APPLICATION, json=payload)

        if response.is_error:
            logger.error(f"Authentication failed: {response.status_code} - {response.text}")
            raise LinnworksAPIError(
                f"Authentication failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        session_token = response.json().get("Token")
        if not session_token:
            raise LinnworksAPIError("No token received from authentication")

        logger.info("Authentication successful")
        return session_token

    async def _make_request(
        self,
        method: str,
        path: str,
        label: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        """
        Make an authenticated request to the Linnworks API.

        Args:
            method: HTTP method
            path: API endpoint path
            label: Name used in error messages (e.g. "Order items API")
            params: Query parameters
            json: JSON body

        Returns:
            Parsed JSON response

        Raises:
            LinnworksAPIError: non-2xx response, message includes the status
            httpx.HTTPError: transport failure
        """
        logger.debug(f"Making API request to {path}")
        response = await self.client.request(method, path, params=params, json=json)

        if response.is_error:
            logger.error(f"{label} error calling {path}: {response.status_code} {response.text}")
            raise LinnworksAPIError(
                f"{label} error: {response.status_code}",
                status_code=response.status_code,
            )

        return response.json()

    async def get_return_items_info(self, pk_order_id: str) -> Any:
        """
        Fetch the items of a processed order.

        Returns:
            Raw response; an object or a list of objects depending on the order
        """
        return await self._make_request(
            "GET",
            GET_RETURN_ITEMS_INFO,
            "Order items API",
            params={"pkOrderId": pk_order_id},
        )

    async def get_inventory_item_extended_properties(self, item_number: str) -> Any:
        """
        Fetch extended properties (cost, shipping, marketplace fees) of an inventory item.

        Returns:
            Raw response; a list of property name/value pairs
        """
        return await self._make_request(
            "POST",
            GET_INVENTORY_ITEM_EXTENDED_PROPERTIES,
            "Inventory API",
            json={"itemNumber": item_number},
        )

    async def search_processed_orders(
        self,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        search_filters: Optional[List[dict]] = None,
        page_number: int = 1,
        results_per_page: int = PROCESSED_ORDERS_PAGE_SIZE,
    ) -> dict:
        """
        Search processed orders by processed date.

        Args:
            from_date: ISO start of the processed-date window
            to_date: ISO end of the processed-date window
            search_filters: Linnworks SearchFilters (SearchField/SearchTerm pairs)
            page_number: 1-based page
            results_per_page: Page size

        Returns:
            Raw response with ProcessedOrders paging block
        """
        body = {
            "request": {
                "SearchFilters": map_search_filters(search_filters),
                "PageNumber": page_number,
                "ResultsPerPage": results_per_page,
                "FromDate": from_date or DEFAULT_FROM_DATE,
                "DateField": "processed",
                "ToDate": to_date or DEFAULT_TO_DATE,
            }
        }
        return await self._make_request(
            "POST",
            SEARCH_PROCESSED_ORDERS,
            "Processed orders API",
            json=body,
        )

    async def iter_processed_orders(
        self,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        search_filters: Optional[List[dict]] = None,
        results_per_page: int = PROCESSED_ORDERS_PAGE_SIZE,
    ) -> AsyncIterator[ProcessedOrder]:
        """Yield every processed order in the window, walking all pages."""
        page_number = 1
        while True:
            data = await self.search_processed_orders(
                from_date=from_date,
                to_date=to_date,
                search_filters=search_filters,
                page_number=page_number,
                results_per_page=results_per_page,
            )
            page = ProcessedOrdersPage.model_validate(data.get("ProcessedOrders") or {})
            logger.info(
                f"Fetched processed orders page {page.page_number}/{page.total_pages} "
                f"({len(page.data)} orders)"
            )
            for order in page.data:
                yield order

            if not page.data or page_number >= page.total_pages:
                break
            page_number += 1

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
