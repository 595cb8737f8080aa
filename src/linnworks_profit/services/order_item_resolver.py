"""Resolve an order identifier to its product SKU and quantity."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx

from linnworks_profit.api.client import LinnworksAPIClient
from linnworks_profit.core.exceptions import OrderItemResolutionError
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import ResolvedOrderItem

logger = setup_logger(__name__)

SKU_FIELDS = ("SKU", "ItemNumber", "sku")
NESTED_ITEM_FIELDS = ("Items", "Data")


def _first_present(record: dict, fields) -> Optional[str]:
    for field in fields:
        value = record.get(field)
        if value not in (None, ""):
            return str(value)
    return None


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    try:
        return Decimal(str(value)) if value not in (None, "") else None
    except InvalidOperation:
        return None


def _describe(data: Any) -> str:
    """Short description of an unusable response for error messages."""
    if isinstance(data, list):
        first_keys = ", ".join(data[0].keys()) if data and isinstance(data[0], dict) else "N/A"
        return f"array of {len(data)} with first item keys: {first_keys or 'N/A'}"
    if isinstance(data, dict):
        return f"object with keys: {', '.join(data.keys()) or 'N/A'}"
    return f"{type(data).__name__} with keys: N/A"


def extract_order_item(data: Any) -> ResolvedOrderItem:
    """
    Extract SKU, quantity and unit value from a GetReturnItemsInfo response.

    The response is either a list (first element used) or an object whose SKU
    may sit at the top level or under the first element of Items/Data.

    Raises:
        OrderItemResolutionError: no SKU in any known location
    """
    sku = None
    record: dict = {}

    if isinstance(data, list):
        if data and isinstance(data[0], dict):
            record = data[0]
            sku = _first_present(record, SKU_FIELDS)
    elif isinstance(data, dict):
        record = data
        sku = _first_present(record, SKU_FIELDS)
        if sku is None:
            for nested in NESTED_ITEM_FIELDS:
                items = record.get(nested)
                if isinstance(items, list) and items and isinstance(items[0], dict):
                    sku = _first_present(items[0], ("SKU",))
                    if sku:
                        break

    if not sku:
        raise OrderItemResolutionError(f"No SKU found - received {_describe(data)}")

    return ResolvedOrderItem(
        sku=sku,
        quantity=_to_int(record.get("OrderQty")),
        unit_value=_to_decimal(record.get("UnitValue")),
    )


class OrderItemResolver:
    """Looks up the product behind a processed order."""

    def __init__(self, api_client: LinnworksAPIClient):
        self.api_client = api_client

    async def resolve(self, order_id: str) -> ResolvedOrderItem:
        """
        Resolve an order identifier to its SKU and quantity.

        Raises:
            OrderItemResolutionError: no usable SKU, transport failure or unreadable body
            LinnworksAPIError: upstream returned a non-2xx status
        """
        logger.debug(f"Fetching order items for: {order_id}")
        try:
            data = await self.api_client.get_return_items_info(order_id)
        except httpx.HTTPError as e:
            raise OrderItemResolutionError(f"Order items API request failed: {e}") from e
        except ValueError as e:
            raise OrderItemResolutionError(f"Order items API returned invalid JSON: {e}") from e
        item = extract_order_item(data)
        logger.debug(f"Found SKU for {order_id}: {item.sku}")
        return item
