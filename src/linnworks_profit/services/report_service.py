"""Profit report: order listing -> enrichment -> profit -> summaries."""

from typing import List, Optional

from linnworks_profit.config.constants import PROFIT_REPORT_PAGE_SIZE
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import ProcessedOrder, ProfitedOrder
from linnworks_profit.services.enrichment_service import (
    ClientFactory,
    EnrichmentService,
    default_client_factory,
    validate_request,
)
from linnworks_profit.services.profit_engine import ProfitEngine

logger = setup_logger(__name__)


class ProfitReportService:
    """Builds profited orders for a processed-date window."""

    def __init__(
        self,
        enrichment_service: EnrichmentService,
        profit_engine: ProfitEngine,
        client_factory: ClientFactory = default_client_factory,
    ):
        self.enrichment_service = enrichment_service
        self.profit_engine = profit_engine
        self.client_factory = client_factory

    async def fetch_orders(
        self,
        auth_token: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        search_filters: Optional[List[dict]] = None,
    ) -> List[ProcessedOrder]:
        """Pull every processed order in the window from the Order Source."""
        validate_request([], auth_token)
        client = self.client_factory(auth_token)
        try:
            orders = [
                order
                async for order in client.iter_processed_orders(
                    from_date=from_date,
                    to_date=to_date,
                    search_filters=search_filters,
                    results_per_page=PROFIT_REPORT_PAGE_SIZE,
                )
            ]
        finally:
            await client.close()

        logger.info(f"Fetched {len(orders)} processed orders for profit report")
        return orders

    async def build(
        self,
        auth_token: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        search_filters: Optional[List[dict]] = None,
    ) -> List[ProfitedOrder]:
        """
        Fetch, enrich and profit every order in the window.

        Orders whose enrichment failed are still profited, with zero costs.
        """
        orders = await self.fetch_orders(auth_token, from_date, to_date, search_filters)
        if not orders:
            return []

        run = await self.enrichment_service.enrich(
            [order.order_id for order in orders],
            auth_token,
        )
        enrichments = run.by_order_id()

        if run.failed:
            logger.warning(f"{run.failed} of {run.processed} orders could not be enriched")

        return self.profit_engine.recompute(
            (order, enrichments.get(order.order_id)) for order in orders
        )
