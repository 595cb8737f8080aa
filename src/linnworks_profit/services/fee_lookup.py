"""Cost and marketplace-fee lookup from inventory extended properties."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx

from linnworks_profit.api.client import LinnworksAPIClient
from linnworks_profit.core.exceptions import FeeLookupError
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import FeeLookup

logger = setup_logger(__name__)

COST_PROPERTIES = ("Z-Cost-Pound", "Z-Cost £ / Account Only")
FREIGHT_PROPERTY = "Z-Shipping Freight / Account Only"
COURIER_PROPERTY = "Z-Courier Charge / Account Only"
DEAL_PRICE_PROPERTY = "Z-Groupon Price"

# Extended property name -> fee key used by the marketplace map
FEE_PROPERTIES = {
    "Z-Amazon Fee": "amazon",
    "Z-B&Q Fee": "bq",
    "Z-Ebay Fee": "ebay",
    "Z-Debenhams Fee": "debenhams",
    "Z-Manomano Fee": "manomano",
    "Z-Onbuy Fee": "onbuy",
    "Z-Shein Fee": "shein",
    "Z-Shopify Fee": "shopify",
    "Z-Tesco Fee": "tesco",
    "Z-TheRange Fee": "therange",
    "Z-Tiktok Fee": "tiktok",
    "Z-Robert Dyas Fee": "robert_dyas",
    "Z-Wayfair Fee": "wayfair",
    "Z-Wilko Fee": "wilko",
    "Z-Groupon Fee": "groupon",
}

# Upstream spells it "ProperyName"
NAME_FIELDS = ("ProperyName", "PropertyName", "name")
VALUE_FIELDS = ("PropertyValue", "value")

_NUMBER_NOISE = re.compile(r"[£$€%,\s]")


def parse_amount(value: Any) -> Optional[Decimal]:
    """Best-effort numeric parse; None when the value is empty or not a number."""
    if value is None or isinstance(value, bool):
        return None
    cleaned = _NUMBER_NOISE.sub("", str(value))
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_fee_rate(value: Any) -> Optional[Decimal]:
    """
    Fee rate as a fraction.

    A value carrying a percent sign is always a percentage; a bare number above
    1 is read as a percentage too.
    """
    rate = parse_amount(value)
    if rate is None:
        return None
    if "%" in str(value) or rate > 1:
        return rate / Decimal("100")
    return rate


def _property_field(prop: dict, fields) -> Any:
    for field in fields:
        if field in prop:
            return prop[field]
    return None


def parse_inventory_properties(data: Any) -> FeeLookup:
    """
    Map extended property pairs onto cost, freight, courier, deal price and fee rates.

    Names are matched case-exact; unknown names are ignored.
    """
    cost = freight = courier = deal_price = None
    fees = {}

    if not isinstance(data, list):
        logger.warning(f"Inventory properties response is {type(data).__name__}, expected a list")
        return FeeLookup()

    for prop in data:
        if not isinstance(prop, dict):
            continue
        name = _property_field(prop, NAME_FIELDS)
        value = _property_field(prop, VALUE_FIELDS)

        if name in COST_PROPERTIES:
            cost = parse_amount(value)
        elif name == FREIGHT_PROPERTY:
            freight = parse_amount(value)
        elif name == COURIER_PROPERTY:
            courier = parse_amount(value)
        elif name == DEAL_PRICE_PROPERTY:
            deal_price = parse_amount(value)
        elif name in FEE_PROPERTIES:
            rate = parse_fee_rate(value)
            if rate is not None:
                fees[FEE_PROPERTIES[name]] = rate

    return FeeLookup(
        cost_amount=cost,
        freight_amount=freight,
        courier_amount=courier,
        deal_price=deal_price,
        fees_by_marketplace=fees,
    )


class FeeLookupClient:
    """Fetches cost and fee figures for a SKU."""

    def __init__(self, api_client: LinnworksAPIClient):
        self.api_client = api_client

    async def lookup(self, sku: str) -> FeeLookup:
        """
        Fetch and parse the inventory item's extended properties.

        Raises:
            LinnworksAPIError: upstream returned a non-2xx status
            FeeLookupError: transport failure or unreadable body
        """
        logger.debug(f"Fetching inventory properties for SKU: {sku}")
        try:
            data = await self.api_client.get_inventory_item_extended_properties(sku)
        except httpx.HTTPError as e:
            raise FeeLookupError(f"Inventory API request failed: {e}") from e
        except ValueError as e:
            raise FeeLookupError(f"Inventory API returned invalid JSON: {e}") from e
        lookup = parse_inventory_properties(data)
        logger.debug(
            f"Inventory properties for {sku}: cost={lookup.cost_amount} "
            f"freight={lookup.freight_amount} courier={lookup.courier_amount} "
            f"fees={len(lookup.fees_by_marketplace)}"
        )
        return lookup
