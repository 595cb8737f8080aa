"""API routes for the profit pipeline."""

from typing import Any, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from linnworks_profit.api.client import LinnworksAPIClient
from linnworks_profit.config.constants import PROCESSED_ORDERS_PAGE_SIZE
from linnworks_profit.config.settings import settings
from linnworks_profit.core.exceptions import EnrichmentRequestError, LinnworksAPIError
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import EnrichmentResult, ProcessedOrder
from linnworks_profit.services.aggregation import summarize, summarize_by_source, to_csv
from linnworks_profit.services.profit_engine import ProfitEngine
from linnworks_profit.services.report_service import ProfitReportService

logger = setup_logger(__name__)
router = APIRouter()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


def _profit_engine(request: Request) -> ProfitEngine:
    return ProfitEngine(request.app.state.marketplace_map, request.app.state.fee_overrides)


def _report_service(request: Request) -> ProfitReportService:
    enrichment_service = request.app.state.enrichment_service
    return ProfitReportService(
        enrichment_service,
        _profit_engine(request),
        client_factory=enrichment_service.client_factory,
    )


@router.get("/")
async def root() -> dict:
    """Root endpoint with basic service info."""
    return {
        "service": "Linnworks Profit Pipeline",
        "version": "1.0.0",
        "endpoints": {
            "auth": "POST /auth",
            "processed_orders": "POST /processed-orders",
            "enhanced_orders": "POST /enhanced-orders",
            "profit": "POST /profit",
            "profit_report": "POST /profit-report",
            "profit_report_csv": "POST /profit-report/csv",
            "fee_overrides": "GET /fee-overrides",
            "health": "GET /health",
        },
    }


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint for monitoring."""
    env_checks = {
        "linnworks_application_id": "ok" if settings.linnworks_application_id else "missing",
        "linnworks_application_secret": "ok" if settings.linnworks_application_secret else "missing",
        "linnworks_token": "ok" if settings.linnworks_token else "missing",
    }
    missing_env = [k for k, v in env_checks.items() if v == "missing"]

    return {
        "status": "degraded" if missing_env else "healthy",
        "service": "linnworks-profit",
        "checks": {
            "environment": env_checks,
            "marketplace_sources": len(request.app.state.marketplace_map.sources),
            "fee_overrides": len(request.app.state.fee_overrides.all()),
        },
    }


@router.post("/auth")
async def authenticate() -> JSONResponse:
    """Exchange the configured application credentials for a session token."""
    missing = [
        name
        for name, value in (
            ("LINNWORKS_APPLICATION_ID", settings.linnworks_application_id),
            ("LINNWORKS_APPLICATION_SECRET", settings.linnworks_application_secret),
            ("LINNWORKS_TOKEN", settings.linnworks_token),
        )
        if not value
    ]
    if missing:
        return _error(f"Missing Linnworks credentials: {', '.join(missing)}", 500)

    try:
        token = await LinnworksAPIClient.authorize_by_application(
            settings.linnworks_application_id,
            settings.linnworks_application_secret,
            settings.linnworks_token,
            auth_host=settings.auth_host,
        )
    except LinnworksAPIError as e:
        logger.error(f"Error in auth: {e}", exc_info=True)
        return _error(str(e), 502)

    return JSONResponse({"token": token})


@router.post("/processed-orders")
async def processed_orders(request: Request) -> JSONResponse:
    """Pass-through page of the processed-order search."""
    body = await _read_json(request) or {}
    auth_token = body.get("authToken")
    if not auth_token:
        return _error("Authorization token is required", 400)

    client = request.app.state.enrichment_service.client_factory(auth_token)
    try:
        data = await client.search_processed_orders(
            from_date=body.get("fromDate"),
            to_date=body.get("toDate"),
            search_filters=body.get("searchFilters"),
            page_number=body.get("pageNumber", 1),
            results_per_page=body.get("resultsPerPage", PROCESSED_ORDERS_PAGE_SIZE),
        )
    except (LinnworksAPIError, httpx.HTTPError) as e:
        logger.error(f"Error in processed-orders: {e}", exc_info=True)
        return _error(str(e), 502)
    finally:
        await client.close()

    return JSONResponse(data)


@router.post("/enhanced-orders")
async def enhanced_orders(request: Request) -> JSONResponse:
    """Enrich order identifiers with SKU, cost and fee data."""
    body = await _read_json(request)
    if not isinstance(body, dict):
        return _error("Missing authToken or orderIds array", 400)

    try:
        run = await request.app.state.enrichment_service.enrich(
            body.get("orderIds"),
            body.get("authToken"),
        )
    except EnrichmentRequestError as e:
        logger.error(f"Rejected enrichment request: {e}")
        return _error(str(e), 400)

    return JSONResponse(run.to_response())


@router.post("/profit")
async def profit(request: Request) -> JSONResponse:
    """Compute profit for caller-supplied orders and enrichments."""
    body = await _read_json(request)
    entries = body.get("orders") if isinstance(body, dict) else None
    if not isinstance(entries, list):
        return _error("orders array is required", 400)

    try:
        pairs = [
            (
                ProcessedOrder.model_validate(entry.get("order") or {}),
                EnrichmentResult.model_validate(entry["enrichment"]) if entry.get("enrichment") else None,
            )
            for entry in entries
        ]
    except (ValidationError, AttributeError) as e:
        return _error(f"Invalid order payload: {e}", 400)

    profited = _profit_engine(request).recompute(pairs)
    return JSONResponse({"orders": [p.to_response() for p in profited]})


async def _build_report(request: Request):
    body = await _read_json(request) or {}
    return await _report_service(request).build(
        body.get("authToken"),
        from_date=body.get("fromDate"),
        to_date=body.get("toDate"),
        search_filters=body.get("searchFilters"),
    )


@router.post("/profit-report")
async def profit_report(request: Request) -> JSONResponse:
    """Per-source and per-month profit for a processed-date window."""
    try:
        profited = await _build_report(request)
    except EnrichmentRequestError:
        return _error("Auth token is required", 400)
    except (LinnworksAPIError, httpx.HTTPError) as e:
        logger.error(f"Error in profit-report: {e}", exc_info=True)
        return _error(str(e), 502)

    return JSONResponse(
        {
            "profitData": [s.model_dump(mode="json") for s in summarize_by_source(profited)],
            "monthly": [s.model_dump(mode="json") for s in summarize(profited)],
        }
    )


@router.post("/profit-report/csv")
async def profit_report_csv(request: Request) -> Response:
    """Same report as flat CSV rows, one per order."""
    try:
        profited = await _build_report(request)
    except EnrichmentRequestError:
        return _error("Auth token is required", 400)
    except (LinnworksAPIError, httpx.HTTPError) as e:
        logger.error(f"Error in profit-report csv: {e}", exc_info=True)
        return _error(str(e), 502)

    return Response(
        content=to_csv(profited),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="profit_report.csv"'},
    )


@router.get("/fee-overrides")
async def list_fee_overrides(request: Request) -> dict:
    """Current fee percentage overrides."""
    return {"overrides": request.app.state.fee_overrides.all()}


@router.put("/fee-overrides/{source}")
async def set_fee_override(source: str, request: Request) -> JSONResponse:
    """Store a fee percentage (0-100) for a source."""
    body = await _read_json(request) or {}
    percentage: Optional[Any] = body.get("percentage")
    if percentage is None:
        return _error("percentage is required", 400)

    try:
        entry = request.app.state.fee_overrides.set(source, percentage)
    except ValueError as e:
        return _error(str(e), 400)
    return JSONResponse({"override": entry})


@router.delete("/fee-overrides/{source}")
async def delete_fee_override(source: str, request: Request) -> JSONResponse:
    """Remove a source's fee override."""
    if not request.app.state.fee_overrides.remove(source):
        return _error(f"No fee override for {source}", 404)
    return JSONResponse({"removed": source})
