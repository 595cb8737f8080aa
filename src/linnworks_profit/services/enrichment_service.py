"""Order enrichment orchestrator.

Chains Order-Item Resolver -> Fee/Cost Lookup per order identifier and runs
many identifiers concurrently in fixed-size, paced batches.
"""

import asyncio
import time
import uuid
from typing import Callable, List, Optional, Sequence

from linnworks_profit.api.client import LinnworksAPIClient
from linnworks_profit.config.constants import (
    BATCH_SIZE,
    DELAY_BETWEEN_BATCHES_SECONDS,
    DELAY_BETWEEN_CALLS_SECONDS,
)
from linnworks_profit.config.settings import settings
from linnworks_profit.core.exceptions import EnrichmentRequestError, LinnworksError
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.integrations.rate_limiter import RequestPacer, SleepFunc
from linnworks_profit.models.order import EnrichmentResult, EnrichmentRun
from linnworks_profit.services.fee_lookup import FeeLookupClient
from linnworks_profit.services.order_item_resolver import OrderItemResolver

logger = setup_logger(__name__)

ABORTED_ERROR = "Enrichment aborted before this order was processed"

ClientFactory = Callable[[str], LinnworksAPIClient]


def default_client_factory(auth_token: str) -> LinnworksAPIClient:
    """Build an API client from global settings."""
    return LinnworksAPIClient(
        auth_token,
        host_api=settings.host_api,
        timeout=settings.request_timeout_seconds,
    )


def make_batches(order_ids: Sequence[str], batch_size: int = BATCH_SIZE) -> List[List[str]]:
    """Split identifiers into consecutive batches of at most batch_size."""
    return [list(order_ids[i:i + batch_size]) for i in range(0, len(order_ids), batch_size)]


def validate_request(order_ids, auth_token) -> List[str]:
    """
    Validate an enrichment request before any upstream call.

    Raises:
        EnrichmentRequestError: missing token or identifiers not a list
    """
    if not auth_token or not str(auth_token).strip():
        raise EnrichmentRequestError("Missing authToken or orderIds array")
    if not isinstance(order_ids, (list, tuple)):
        raise EnrichmentRequestError("Missing authToken or orderIds array")
    if any(order_id in (None, "") for order_id in order_ids):
        raise EnrichmentRequestError("orderIds must not contain empty identifiers")
    return [str(order_id) for order_id in order_ids]


class EnrichmentService:
    """Turns order identifiers into enriched records."""

    def __init__(
        self,
        client_factory: ClientFactory = default_client_factory,
        batch_size: int = BATCH_SIZE,
        call_delay: float = DELAY_BETWEEN_CALLS_SECONDS,
        batch_delay: float = DELAY_BETWEEN_BATCHES_SECONDS,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize service.

        Args:
            client_factory: Builds a Linnworks client for a session token
            batch_size: Identifiers processed concurrently per batch
            call_delay: Stagger between starts, and between resolve and lookup
            batch_delay: Pause between batches
            sleep: Awaitable sleep (injectable for tests)
            clock: Monotonic clock used for pacing
        """
        self.client_factory = client_factory
        self.batch_size = batch_size
        self.call_delay = call_delay
        self.batch_delay = batch_delay
        self._sleep = sleep
        self._clock = clock

    async def enrich(
        self,
        order_ids: Sequence[str],
        auth_token: str,
        abort_event: Optional[asyncio.Event] = None,
    ) -> EnrichmentRun:
        """
        Enrich every identifier, one result per identifier.

        Per-order failures are recorded on the result and never abort the run.
        When abort_event is set, remaining batches are skipped and their
        identifiers reported as failed.

        Raises:
            EnrichmentRequestError: malformed request, before any upstream call
        """
        ids = validate_request(order_ids, auth_token)
        batches = make_batches(ids, self.batch_size)
        run_id = str(uuid.uuid4())[:8]
        log_extra = {"run_id": run_id}

        logger.info(
            f"Processing enhanced data for {len(ids)} orders in {len(batches)} batches",
            extra=log_extra,
        )

        results: List[EnrichmentResult] = []
        client = self.client_factory(auth_token)
        try:
            resolver = OrderItemResolver(client)
            fee_lookup = FeeLookupClient(client)
            pacer = RequestPacer(
                self.batch_size, self.call_delay, sleep=self._sleep, clock=self._clock
            )

            for index, batch in enumerate(batches):
                if abort_event is not None and abort_event.is_set():
                    remaining = [oid for later in batches[index:] for oid in later]
                    logger.warning(
                        f"Enrichment aborted, skipping {len(remaining)} orders",
                        extra=log_extra,
                    )
                    results.extend(EnrichmentResult.failure(oid, ABORTED_ERROR) for oid in remaining)
                    break

                if index > 0:
                    logger.debug(f"Waiting {self.batch_delay}s before next batch", extra=log_extra)
                    await self._sleep(self.batch_delay)

                logger.info(
                    f"Processing batch {index + 1}/{len(batches)}, orders: {', '.join(batch)}",
                    extra=log_extra,
                )
                pacer.reset()
                batch_results = await asyncio.gather(
                    *(self._enrich_one(oid, resolver, fee_lookup, pacer) for oid in batch)
                )
                results.extend(batch_results)
        finally:
            await client.close()

        run = EnrichmentRun(results=results)
        logger.info(
            f"Enrichment finished: processed={run.processed} "
            f"successful={run.successful} failed={run.failed}",
            extra=log_extra,
        )
        return run

    async def _enrich_one(
        self,
        order_id: str,
        resolver: OrderItemResolver,
        fee_lookup: FeeLookupClient,
        pacer: RequestPacer,
    ) -> EnrichmentResult:
        """Resolve then look up one identifier; errors become result data."""
        sku = None
        try:
            async with pacer.slot():
                try:
                    item = await resolver.resolve(order_id)
                except LinnworksError as e:
                    logger.warning(f"Could not resolve order {order_id}: {e}")
                    return EnrichmentResult.failure(order_id, str(e))

                sku = item.sku
                await self._sleep(self.call_delay)

                try:
                    lookup = await fee_lookup.lookup(item.sku)
                except LinnworksError as e:
                    logger.warning(f"Fee lookup failed for order {order_id} (SKU {item.sku}): {e}")
                    return EnrichmentResult.failure(order_id, str(e), product_id=item.sku)

            return EnrichmentResult.from_lookup(order_id, item, lookup)

        except Exception as e:
            logger.error(f"Error enriching order {order_id}: {e}", exc_info=True)
            return EnrichmentResult.failure(order_id, str(e), product_id=sku)
