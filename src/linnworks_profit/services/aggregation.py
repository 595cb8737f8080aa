"""Monthly profit summaries and CSV export."""

import calendar
import csv
import io
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from linnworks_profit.core.logger import setup_logger
from linnworks_profit.models.order import (
    MonthlySummary,
    ProfitedOrder,
    SourceProfitSummary,
)
from linnworks_profit.services.profit_engine import to_money

logger = setup_logger(__name__)

UNKNOWN_SOURCE = "Unknown"
HUNDRED = Decimal("100")

CSV_COLUMNS = [
    "order_id",
    "order_number",
    "reference_num",
    "processed_on",
    "source",
    "sub_source",
    "sku",
    "quantity",
    "total_charge_inc_vat",
    "selling_price_ex_vat",
    "cost",
    "freight",
    "courier",
    "fee_rate",
    "marketplace_fee",
    "vat",
    "vat_primary",
    "vat_secondary",
    "total_cost",
    "profit",
    "error",
]


def _order_date(profited: ProfitedOrder) -> Optional[datetime]:
    return profited.order.processed_on or profited.order.received_date


def _percent(profit: Decimal, value: Decimal) -> Decimal:
    return to_money(profit / value * HUNDRED) if value else to_money(Decimal("0"))


def summarize(profited_orders: Iterable[ProfitedOrder]) -> List[MonthlySummary]:
    """
    Fold orders into per-source, per-month summaries.

    Groups by (source, sub_source, year, month) of the processed date; the
    profit percentage is derived once per group after all orders are folded.
    """
    groups: Dict[Tuple[str, Optional[str], int, int], Dict[str, Any]] = {}

    for profited in profited_orders:
        order_date = _order_date(profited)
        if order_date is None:
            logger.warning(f"Order {profited.order.order_id} has no processed date, skipping")
            continue

        key = (
            profited.order.source or UNKNOWN_SOURCE,
            profited.order.sub_source or None,
            order_date.year,
            order_date.month,
        )
        group = groups.setdefault(
            key, {"orders_number": 0, "orders_value": Decimal("0"), "profit": Decimal("0")}
        )
        group["orders_number"] += 1
        group["orders_value"] += profited.order.total_charge_inc_vat or Decimal("0")
        group["profit"] += profited.profit.profit

    summaries = []
    for (source, sub_source, year, month), group in sorted(
        groups.items(), key=lambda item: (item[0][0], item[0][1] or "", item[0][2], item[0][3])
    ):
        summaries.append(
            MonthlySummary(
                source=source,
                sub_source=sub_source,
                month=calendar.month_name[month],
                year=year,
                orders_number=group["orders_number"],
                orders_value=to_money(group["orders_value"]),
                profit=to_money(group["profit"]),
                profit_percent=_percent(group["profit"], group["orders_value"]),
            )
        )
    return summaries


def summarize_by_source(profited_orders: Iterable[ProfitedOrder]) -> List[SourceProfitSummary]:
    """Roll monthly summaries up per source, highest total value first."""
    by_source: Dict[str, List[MonthlySummary]] = defaultdict(list)
    for summary in summarize(profited_orders):
        by_source[summary.source].append(summary)

    rollups = []
    for source, monthly in by_source.items():
        monthly.sort(key=lambda s: (s.year, list(calendar.month_name).index(s.month)))
        total_value = sum((s.orders_value for s in monthly), Decimal("0"))
        total_profit = sum((s.profit for s in monthly), Decimal("0"))
        rollups.append(
            SourceProfitSummary(
                source=source,
                monthly_data=monthly,
                total_orders=sum(s.orders_number for s in monthly),
                total_value=to_money(total_value),
                total_profit=to_money(total_profit),
                average_profit_percent=_percent(total_profit, total_value),
            )
        )

    rollups.sort(key=lambda r: r.total_value, reverse=True)
    logger.info(f"Processed profit data for {len(rollups)} sources")
    return rollups


def _money_cell(value: Optional[Decimal]) -> str:
    return "" if value is None else f"{to_money(Decimal(value)):.2f}"


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def to_csv_row(profited: ProfitedOrder) -> List[str]:
    """One CSV row in CSV_COLUMNS order; missing values are empty strings."""
    order = profited.order
    enrichment = profited.enrichment
    profit = profited.profit

    return [
        _cell(order.order_id),
        _cell(order.order_number),
        _cell(order.reference_num),
        order.processed_on.isoformat() if order.processed_on else "",
        _cell(order.source),
        _cell(order.sub_source),
        _cell(enrichment.product_id if enrichment else None),
        _cell(enrichment.quantity if enrichment else None),
        _money_cell(order.total_charge_inc_vat),
        _money_cell(profit.selling_price_ex_vat),
        _money_cell(enrichment.cost_amount if enrichment else None),
        _money_cell(enrichment.freight_amount if enrichment else None),
        _money_cell(enrichment.courier_amount if enrichment else None),
        _cell(profit.fee_rate),
        _money_cell(profit.marketplace_fee),
        _money_cell(profit.vat),
        _money_cell(profit.vat_primary),
        _money_cell(profit.vat_secondary),
        _money_cell(profit.total_cost),
        _money_cell(profit.profit),
        _cell(enrichment.error if enrichment else None),
    ]


def to_csv(profited_orders: Iterable[ProfitedOrder]) -> str:
    """Render orders as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for profited in profited_orders:
        writer.writerow(to_csv_row(profited))
    return buffer.getvalue()
