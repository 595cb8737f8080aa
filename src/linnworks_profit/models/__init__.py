"""Data models for orders, enrichment results and profit figures."""

from .order import (
    EnrichmentResult,
    EnrichmentRun,
    FeeLookup,
    MonthlySummary,
    ProcessedOrder,
    ProcessedOrdersPage,
    ProfitedOrder,
    ProfitResult,
    ResolvedOrderItem,
    SourceProfitSummary,
)

__all__ = [
    "EnrichmentResult",
    "EnrichmentRun",
    "FeeLookup",
    "MonthlySummary",
    "ProcessedOrder",
    "ProcessedOrdersPage",
    "ProfitedOrder",
    "ProfitResult",
    "ResolvedOrderItem",
    "SourceProfitSummary",
]
