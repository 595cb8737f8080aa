"""FastAPI application setup and configuration."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linnworks_profit.config.marketplaces import MarketplaceMap
from linnworks_profit.config.settings import settings
from linnworks_profit.core.fee_overrides import FeeOverrideStore
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.services.enrichment_service import EnrichmentService

logger = setup_logger(__name__)


def create_app(
    enrichment_service: Optional[EnrichmentService] = None,
    marketplace_map: Optional[MarketplaceMap] = None,
    fee_overrides: Optional[FeeOverrideStore] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Collaborators default to instances built from settings; tests pass their own.
    """
    app = FastAPI(
        title="Linnworks Profit Pipeline",
        version="1.0.0",
        description="Enriches Linnworks processed orders with cost/fee data and computes marketplace profit",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.enrichment_service = enrichment_service or EnrichmentService()
    app.state.marketplace_map = marketplace_map or MarketplaceMap.load(settings.marketplace_map_path)
    app.state.fee_overrides = fee_overrides or FeeOverrideStore(settings.fee_overrides_path)

    from linnworks_profit.server import routes

    app.include_router(routes.router)

    logger.info(f"Application created (environment={settings.environment})")
    return app
