"""Pydantic models for order, enrichment and profit data."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from linnworks_profit.config.marketplaces import MarketplaceClass


class ProcessedOrder(BaseModel):
    """Processed order as returned by the Linnworks order search."""

    order_id: str = Field(alias="pkOrderID")
    order_number: Optional[int] = Field(default=None, alias="nOrderId")
    reference_num: Optional[str] = Field(default=None, alias="ReferenceNum")
    received_date: Optional[datetime] = Field(default=None, alias="dReceivedDate")
    processed_on: Optional[datetime] = Field(default=None, alias="dProcessedOn")
    total_charge_inc_vat: Decimal = Field(default=Decimal("0"), alias="fTotalCharge")
    subtotal: Optional[Decimal] = Field(default=None, alias="Subtotal")
    tax: Optional[Decimal] = Field(default=None, alias="fTax")
    currency: Optional[str] = Field(default=None, alias="cCurrency")
    source: Optional[str] = Field(default=None, alias="Source")
    sub_source: Optional[str] = Field(default=None, alias="SubSource")

    class Config:
        extra = "allow"
        populate_by_name = True

    @field_validator("total_charge_inc_vat", mode="before")
    @classmethod
    def _missing_charge_is_zero(cls, value):
        return Decimal("0") if value in (None, "") else value


class ProcessedOrdersPage(BaseModel):
    """One page of the processed-order search."""

    page_number: int = Field(default=1, alias="PageNumber")
    entries_per_page: int = Field(default=0, alias="EntriesPerPage")
    total_entries: int = Field(default=0, alias="TotalEntries")
    total_pages: int = Field(default=0, alias="TotalPages")
    data: List[ProcessedOrder] = Field(default_factory=list, alias="Data")

    class Config:
        extra = "allow"
        populate_by_name = True


class ResolvedOrderItem(BaseModel):
    """Product identifier and quantity resolved for one order."""

    sku: str
    quantity: Optional[int] = None
    unit_value: Optional[Decimal] = None

    class Config:
        frozen = True


class FeeLookup(BaseModel):
    """Cost and fee figures read from an inventory item's extended properties."""

    cost_amount: Optional[Decimal] = None
    freight_amount: Optional[Decimal] = None
    courier_amount: Optional[Decimal] = None
    deal_price: Optional[Decimal] = None
    fees_by_marketplace: Dict[str, Decimal] = Field(default_factory=dict)

    class Config:
        frozen = True


class EnrichmentResult(BaseModel):
    """Outcome of enriching one order identifier."""

    order_id: str
    product_id: Optional[str] = None
    quantity: Optional[int] = None
    unit_value: Optional[Decimal] = None
    cost_amount: Optional[Decimal] = None
    freight_amount: Optional[Decimal] = None
    courier_amount: Optional[Decimal] = None
    deal_price: Optional[Decimal] = None
    fees_by_marketplace: Dict[str, Decimal] = Field(default_factory=dict)
    error: Optional[str] = None

    class Config:
        frozen = True

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.product_id)

    @classmethod
    def failure(cls, order_id: str, error: str, product_id: Optional[str] = None) -> "EnrichmentResult":
        return cls(order_id=order_id, product_id=product_id, error=error)

    @classmethod
    def from_lookup(
        cls,
        order_id: str,
        item: ResolvedOrderItem,
        lookup: FeeLookup,
    ) -> "EnrichmentResult":
        return cls(
            order_id=order_id,
            product_id=item.sku,
            quantity=item.quantity,
            unit_value=item.unit_value,
            cost_amount=lookup.cost_amount,
            freight_amount=lookup.freight_amount,
            courier_amount=lookup.courier_amount,
            deal_price=lookup.deal_price,
            fees_by_marketplace=dict(lookup.fees_by_marketplace),
        )

    def to_response(self) -> dict:
        """Serialize for API responses, including the derived success flag."""
        data = self.model_dump(mode="json")
        data["succeeded"] = self.succeeded
        return data


class EnrichmentRun(BaseModel):
    """All results of one enrichment call plus aggregate counts."""

    results: List[EnrichmentResult] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed(self) -> int:
        return self.processed - self.successful

    def by_order_id(self) -> Dict[str, EnrichmentResult]:
        return {result.order_id: result for result in self.results}

    def to_response(self) -> dict:
        return {
            "results": [result.to_response() for result in self.results],
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
        }


class ProfitResult(BaseModel):
    """Profit figures for one order; monetary fields are rounded to 2 dp."""

    marketplace_class: MarketplaceClass
    fee_key: Optional[str] = None
    fee_rate: Decimal = Decimal("0")
    selling_price_basis: Decimal
    selling_price_ex_vat: Decimal
    marketplace_fee: Decimal
    vat: Decimal
    vat_primary: Optional[Decimal] = None
    vat_secondary: Optional[Decimal] = None
    total_cost: Decimal
    profit: Decimal

    class Config:
        frozen = True


class ProfitedOrder(BaseModel):
    """Caller-side merged view of an order, its enrichment and its profit."""

    order: ProcessedOrder
    enrichment: Optional[EnrichmentResult] = None
    profit: ProfitResult

    def to_response(self) -> dict:
        """Serialize with the enrichment in the same shape as /enhanced-orders."""
        data = self.model_dump(mode="json")
        if self.enrichment is not None:
            data["enrichment"] = self.enrichment.to_response()
        return data


class MonthlySummary(BaseModel):
    """Orders of one source (and sub-source) folded per calendar month."""

    source: str
    sub_source: Optional[str] = None
    month: str
    year: int
    orders_number: int = 0
    orders_value: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    profit_percent: Decimal = Decimal("0")


class SourceProfitSummary(BaseModel):
    """Per-source rollup across months."""

    source: str
    monthly_data: List[MonthlySummary] = Field(default_factory=list)
    total_orders: int = 0
    total_value: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    average_profit_percent: Decimal = Decimal("0")
