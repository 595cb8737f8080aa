"""Linnworks API module."""

from .client import LinnworksAPIClient
from .endpoints import GET_INVENTORY_ITEM_EXTENDED_PROPERTIES, GET_RETURN_ITEMS_INFO

__all__ = ["LinnworksAPIClient", "GET_INVENTORY_ITEM_EXTENDED_PROPERTIES", "GET_RETURN_ITEMS_INFO"]
