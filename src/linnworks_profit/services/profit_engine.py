"""Marketplace profit rule engine.

Selects an accounting formula by marketplace class and produces fee, VAT,
total cost and profit for one order. Missing numbers count as zero; nothing
here raises for absent data.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from linnworks_profit.config.constants import (
    CURRENCY_DECIMAL_PLACES,
    STANDARD_VAT_RATE,
    VAT_DIVISOR,
)
from linnworks_profit.config.marketplaces import MarketplaceClass, MarketplaceMap
from linnworks_profit.core.fee_overrides import FeeOverrideStore
from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import (
    EnrichmentResult,
    ProcessedOrder,
    ProfitedOrder,
    ProfitResult,
)

logger = setup_logger(__name__)

ZERO = Decimal("0")
CENT = Decimal(1).scaleb(-CURRENCY_DECIMAL_PLACES)


def to_money(value: Decimal) -> Decimal:
    """Round half-up to currency precision."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def net_of_vat(amount: Decimal) -> Decimal:
    """Strip standard-rate VAT from a VAT-inclusive amount."""
    return amount / VAT_DIVISOR


def _d(value: Optional[Decimal]) -> Decimal:
    return value if value is not None else ZERO


class CostInputs(NamedTuple):
    """Numbers a formula works from, absent values already zeroed."""

    total_charge: Decimal
    cost: Decimal
    freight: Decimal
    courier: Decimal
    deal_price: Decimal
    fee_rate: Decimal


class Figures(NamedTuple):
    """Unrounded formula output."""

    selling_price_basis: Decimal
    selling_price_ex_vat: Decimal
    marketplace_fee: Decimal
    vat: Decimal
    total_cost: Decimal
    profit: Decimal
    vat_primary: Optional[Decimal] = None
    vat_secondary: Optional[Decimal] = None


def _vat_inclusive_formula(inputs: CostInputs) -> Figures:
    """Default and consolidator marketplaces: VAT is a cost on the gross charge."""
    total = inputs.total_charge
    fee = total * inputs.fee_rate
    ex_vat = net_of_vat(total)
    vat = total - ex_vat
    total_cost = inputs.cost + inputs.freight + inputs.courier + fee + vat
    return Figures(total, ex_vat, fee, vat, total_cost, total - total_cost)


def _stock_sync_formula(inputs: CostInputs) -> Figures:
    """Price is VAT-inclusive but the channel accounts ex-VAT."""
    total = inputs.total_charge
    ex_vat = net_of_vat(total)
    fee = ex_vat * inputs.fee_rate
    total_cost = inputs.cost + inputs.freight + inputs.courier + fee
    return Figures(ex_vat, ex_vat, fee, total - ex_vat, total_cost, ex_vat - total_cost)


def _large_furniture_formula(inputs: CostInputs) -> Figures:
    """Channel pays out item total less fee plus VAT; courier is the channel's."""
    item_total = inputs.total_charge
    fee = item_total * inputs.fee_rate
    vat_a = item_total * STANDARD_VAT_RATE
    channel_price = (item_total - fee) + vat_a
    channel_ex_vat = net_of_vat(channel_price)
    vat_b = channel_price - channel_ex_vat
    total_cost = inputs.cost + inputs.freight
    return Figures(
        selling_price_basis=channel_price,
        selling_price_ex_vat=channel_ex_vat,
        marketplace_fee=fee,
        vat=vat_b,
        total_cost=total_cost,
        profit=channel_price - total_cost - vat_b,
        vat_primary=vat_a,
        vat_secondary=vat_b,
    )


def _deal_aggregator_formula(inputs: CostInputs) -> Figures:
    """Deal sites settle on their own deal price, not the order charge."""
    deal_price = inputs.deal_price
    fee = deal_price * inputs.fee_rate
    ex_vat = net_of_vat(deal_price)
    total_cost = inputs.cost + inputs.freight + inputs.courier + fee
    return Figures(deal_price, ex_vat, fee, deal_price - ex_vat, total_cost, deal_price - total_cost)


FORMULAS: Dict[MarketplaceClass, Callable[[CostInputs], Figures]] = {
    MarketplaceClass.DEFAULT: _vat_inclusive_formula,
    MarketplaceClass.CONSOLIDATOR: _vat_inclusive_formula,
    MarketplaceClass.STOCK_SYNC: _stock_sync_formula,
    MarketplaceClass.LARGE_FURNITURE: _large_furniture_formula,
    MarketplaceClass.DEAL_AGGREGATOR: _deal_aggregator_formula,
}


class ProfitEngine:
    """Computes ProfitResult for an order and its enrichment."""

    def __init__(
        self,
        marketplace_map: MarketplaceMap,
        fee_overrides: Optional[FeeOverrideStore] = None,
    ):
        self.marketplace_map = marketplace_map
        self.fee_overrides = fee_overrides

    def _fee_rate(
        self,
        order: ProcessedOrder,
        fee_key: Optional[str],
        enrichment: Optional[EnrichmentResult],
    ) -> Decimal:
        if self.fee_overrides is not None:
            override = self.fee_overrides.get_rate(order.source)
            if override is not None:
                return override
        if fee_key is None or enrichment is None:
            return ZERO
        return _d(enrichment.fees_by_marketplace.get(fee_key))

    def compute_profit(
        self,
        order: ProcessedOrder,
        enrichment: Optional[EnrichmentResult] = None,
    ) -> ProfitResult:
        """
        Apply the marketplace's accounting formula to one order.

        Args:
            order: Order with total charge, source and sub-source
            enrichment: Looked-up cost/fee figures; None counts as all zero

        Returns:
            ProfitResult with monetary fields rounded half-up to 2 dp
        """
        marketplace_class, fee_key = self.marketplace_map.classify(order.source, order.sub_source)
        fee_rate = self._fee_rate(order, fee_key, enrichment)

        inputs = CostInputs(
            total_charge=_d(order.total_charge_inc_vat),
            cost=_d(enrichment.cost_amount if enrichment else None),
            freight=_d(enrichment.freight_amount if enrichment else None),
            courier=_d(enrichment.courier_amount if enrichment else None),
            deal_price=_d(enrichment.deal_price if enrichment else None),
            fee_rate=fee_rate,
        )
        figures = FORMULAS[marketplace_class](inputs)

        return ProfitResult(
            marketplace_class=marketplace_class,
            fee_key=fee_key,
            fee_rate=fee_rate,
            selling_price_basis=to_money(figures.selling_price_basis),
            selling_price_ex_vat=to_money(figures.selling_price_ex_vat),
            marketplace_fee=to_money(figures.marketplace_fee),
            vat=to_money(figures.vat),
            vat_primary=to_money(figures.vat_primary) if figures.vat_primary is not None else None,
            vat_secondary=to_money(figures.vat_secondary) if figures.vat_secondary is not None else None,
            total_cost=to_money(figures.total_cost),
            profit=to_money(figures.profit),
        )

    def recompute(
        self,
        pairs: Iterable[Tuple[ProcessedOrder, Optional[EnrichmentResult]]],
    ) -> List[ProfitedOrder]:
        """Profit every (order, enrichment) pair; used to re-apply fee overrides."""
        profited = []
        for order, enrichment in pairs:
            profited.append(
                ProfitedOrder(
                    order=order,
                    enrichment=enrichment,
                    profit=self.compute_profit(order, enrichment),
                )
            )
        logger.info(f"Computed profit for {len(profited)} orders")
        return profited
