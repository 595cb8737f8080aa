"""Shared test fixtures."""

import os

os.environ.setdefault("LOG_TO_FILE", "false")

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from linnworks_profit.config.marketplaces import MarketplaceMap
from linnworks_profit.core.exceptions import LinnworksAPIError
from linnworks_profit.models.order import ProcessedOrder, ProcessedOrdersPage


def run(coro):
    return asyncio.run(coro)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


class FakeLinnworksClient:
    """In-memory Linnworks client keyed by order id and SKU.

    A value that is an Exception instance is raised instead of returned.
    """

    def __init__(
        self,
        order_items: Optional[Dict[str, Any]] = None,
        properties: Optional[Dict[str, Any]] = None,
        pages: Optional[List[dict]] = None,
    ):
        self.order_items = order_items or {}
        self.properties = properties or {}
        self.pages = pages or []
        self.item_calls: List[str] = []
        self.property_calls: List[str] = []
        self.search_calls: List[dict] = []
        self.closed = False

    async def get_return_items_info(self, pk_order_id: str) -> Any:
        self.item_calls.append(pk_order_id)
        value = self.order_items.get(pk_order_id, LinnworksAPIError("Order items API error: 404", 404))
        if isinstance(value, Exception):
            raise value
        return value

    async def get_inventory_item_extended_properties(self, item_number: str) -> Any:
        self.property_calls.append(item_number)
        value = self.properties.get(item_number, [])
        if isinstance(value, Exception):
            raise value
        return value

    async def search_processed_orders(self, **kwargs) -> dict:
        self.search_calls.append(kwargs)
        page_number = kwargs.get("page_number", 1)
        return self.pages[page_number - 1] if self.pages else {"ProcessedOrders": {"Data": []}}

    async def iter_processed_orders(self, **kwargs):
        for index, page in enumerate(self.pages, start=1):
            self.search_calls.append(dict(kwargs, page_number=index))
            for order in ProcessedOrdersPage.model_validate(page["ProcessedOrders"]).data:
                yield order

    async def close(self) -> None:
        self.closed = True


def properties(cost=None, freight=None, courier=None, fees=None) -> List[dict]:
    """Build an extended-properties response in the upstream shape."""
    props = []
    if cost is not None:
        props.append({"ProperyName": "Z-Cost-Pound", "PropertyValue": str(cost)})
    if freight is not None:
        props.append({"ProperyName": "Z-Shipping Freight / Account Only", "PropertyValue": str(freight)})
    if courier is not None:
        props.append({"ProperyName": "Z-Courier Charge / Account Only", "PropertyValue": str(courier)})
    for name, value in (fees or {}).items():
        props.append({"ProperyName": name, "PropertyValue": str(value)})
    return props


def make_order(order_id="o-1", total="120.00", source="AMAZON", sub_source=None, processed_on="2025-06-15T10:00:00"):
    return ProcessedOrder.model_validate(
        {
            "pkOrderID": order_id,
            "fTotalCharge": total,
            "Source": source,
            "SubSource": sub_source,
            "dProcessedOn": processed_on,
        }
    )


@pytest.fixture
def marketplace_map() -> MarketplaceMap:
    return MarketplaceMap.load()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
