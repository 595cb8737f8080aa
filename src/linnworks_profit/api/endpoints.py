"""Linnworks API endpoint paths."""

AUTHORIZE_BY_APPLICATION = "/api/Auth/AuthorizeByApplication"
SEARCH_PROCESSED_ORDERS = "/api/ProcessedOrders/SearchProcessedOrders"
GET_RETURN_ITEMS_INFO = "/api/ProcessedOrders/GetReturnItemsInfo"
GET_INVENTORY_ITEM_EXTENDED_PROPERTIES = "/api/Inventory/GetInventoryItemExtendedProperties"
