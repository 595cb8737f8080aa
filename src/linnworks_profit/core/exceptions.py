"""Exception hierarchy for the profit pipeline."""

from typing import Optional


class LinnworksError(Exception):
    """Base error for the profit pipeline."""


class EnrichmentRequestError(LinnworksError):
    """Malformed enrichment request (missing token or identifier list)."""


class LinnworksAPIError(LinnworksError):
    """Non-2xx response from the Linnworks API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OrderItemResolutionError(LinnworksError):
    """No usable SKU could be resolved for an order."""


class FeeLookupError(LinnworksError):
    """Inventory cost/fee lookup failed for a resolved SKU."""
