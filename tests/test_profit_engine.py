from decimal import Decimal

from linnworks_profit.config.marketplaces import MarketplaceClass
from linnworks_profit.core.fee_overrides import FeeOverrideStore
from linnworks_profit.models.order import EnrichmentResult
from linnworks_profit.services.profit_engine import ProfitEngine, to_money
from tests.conftest import make_order


def enrichment(cost="10", freight="2", courier="1", fees=None, deal_price=None):
    return EnrichmentResult(
        order_id="o-1",
        product_id="SKU-1",
        cost_amount=Decimal(cost) if cost is not None else None,
        freight_amount=Decimal(freight) if freight is not None else None,
        courier_amount=Decimal(courier) if courier is not None else None,
        deal_price=Decimal(deal_price) if deal_price is not None else None,
        fees_by_marketplace={k: Decimal(v) for k, v in (fees or {}).items()},
    )


def test_default_formula(marketplace_map):
    """Amazon order: VAT and fee are both costs on the gross charge."""
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total="120.00", source="AMAZON"),
        enrichment(fees={"amazon": "0.15"}),
    )

    assert result.marketplace_class is MarketplaceClass.DEFAULT
    assert result.fee_key == "amazon"
    assert result.vat == Decimal("20.00")
    assert result.marketplace_fee == Decimal("18.00")
    assert result.total_cost == Decimal("51.00")
    assert result.profit == Decimal("69.00")
    assert result.selling_price_ex_vat == Decimal("100.00")


def test_stock_sync_formula(marketplace_map):
    """Stock-sync channel: fee on the ex-VAT price, no VAT cost."""
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total="120.00", source="Mirakl", sub_source="Debenhams UK"),
        enrichment(cost="5", freight="1", courier="1", fees={"debenhams": "0.10", "bq": "0.30"}),
    )

    assert result.marketplace_class is MarketplaceClass.STOCK_SYNC
    assert result.fee_key == "debenhams"
    assert result.selling_price_ex_vat == Decimal("100.00")
    assert result.marketplace_fee == Decimal("10.00")
    assert result.total_cost == Decimal("17.00")
    assert result.profit == Decimal("83.00")


def test_consolidator_picks_retailer_fee_from_sub_source(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    fees = {"wilko": "0.10", "robert_dyas": "0.20"}

    wilko = engine.compute_profit(
        make_order(total="120.00", source="VirtualStock", sub_source="WILKO-RETAIL"),
        enrichment(fees=fees),
    )
    dyas = engine.compute_profit(
        make_order(total="120.00", source="VirtualStock", sub_source="Robert Dyas"),
        enrichment(fees=fees),
    )

    assert wilko.marketplace_class is MarketplaceClass.CONSOLIDATOR
    assert wilko.marketplace_fee == Decimal("12.00")
    assert wilko.total_cost == Decimal("45.00")
    assert wilko.profit == Decimal("75.00")
    assert dyas.fee_key == "robert_dyas"
    assert dyas.marketplace_fee == Decimal("24.00")


def test_large_furniture_formula_exposes_both_vat_terms(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total="100.00", source="Wayfair"),
        enrichment(cost="30", freight="5", courier="9", fees={"wayfair": "0.15"}),
    )

    # fee 15, vatA 20, channel price 105, vatB 17.50
    assert result.marketplace_class is MarketplaceClass.LARGE_FURNITURE
    assert result.marketplace_fee == Decimal("15.00")
    assert result.vat_primary == Decimal("20.00")
    assert result.vat_secondary == Decimal("17.50")
    assert result.selling_price_basis == Decimal("105.00")
    # courier is not a cost for this channel
    assert result.total_cost == Decimal("35.00")
    assert result.profit == Decimal("52.50")


def test_deal_aggregator_uses_deal_price(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total="120.00", source="GROUPON"),
        enrichment(cost="10", freight="2", courier="3", fees={"groupon": "0.25"}, deal_price="80"),
    )

    assert result.marketplace_class is MarketplaceClass.DEAL_AGGREGATOR
    assert result.selling_price_basis == Decimal("80.00")
    assert result.marketplace_fee == Decimal("20.00")
    assert result.total_cost == Decimal("35.00")
    assert result.profit == Decimal("45.00")


def test_unmapped_source_has_zero_fee(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total="60.00", source="Some New Marketplace"),
        enrichment(fees={"amazon": "0.15"}),
    )

    assert result.marketplace_class is MarketplaceClass.DEFAULT
    assert result.fee_key is None
    assert result.marketplace_fee == Decimal("0.00")
    assert result.profit == Decimal("37.00")


def test_missing_enrichment_counts_as_zero(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(make_order(total="12.00", source="eBay"), None)

    assert result.marketplace_fee == Decimal("0.00")
    assert result.vat == Decimal("2.00")
    assert result.total_cost == Decimal("2.00")
    assert result.profit == Decimal("10.00")


def test_missing_numeric_fields_count_as_zero(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total=None, source="eBay"),
        enrichment(cost=None, freight=None, courier=None),
    )

    assert result.profit == Decimal("0.00")
    assert result.total_cost == Decimal("0.00")


def test_source_spelling_variants_share_fee_key(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    data = enrichment(fees={"bq": "0.12"})

    results = [
        engine.compute_profit(make_order(source=source), data)
        for source in ("B&Q", "b and q", "BANDQ", "BQ")
    ]

    assert {r.fee_key for r in results} == {"bq"}
    assert {r.marketplace_fee for r in results} == {Decimal("14.40")}


def test_every_monetary_field_has_two_decimal_places(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    result = engine.compute_profit(
        make_order(total="99.99", source="Amazon"),
        enrichment(cost="12.345", freight="1.1", courier="0.333", fees={"amazon": "0.153"}),
    )

    for field in ("marketplace_fee", "vat", "total_cost", "profit", "selling_price_ex_vat"):
        assert getattr(result, field).as_tuple().exponent == -2, field


def test_compute_profit_is_idempotent(marketplace_map):
    engine = ProfitEngine(marketplace_map)
    order = make_order(total="47.37", source="TikTok Shop")
    data = enrichment(cost="8.21", fees={"tiktok": "0.09"})

    assert engine.compute_profit(order, data) == engine.compute_profit(order, data)


def test_rounding_is_half_up():
    assert to_money(Decimal("0.125")) == Decimal("0.13")
    assert to_money(Decimal("2.675")) == Decimal("2.68")
    assert to_money(Decimal("-0.125")) == Decimal("-0.13")


def test_fee_override_replaces_looked_up_rate(marketplace_map, tmp_path):
    overrides = FeeOverrideStore(tmp_path / "fee_overrides.json")
    overrides.set("Amazon", 10)
    engine = ProfitEngine(marketplace_map, overrides)

    result = engine.compute_profit(
        make_order(total="120.00", source="AMAZON"),
        enrichment(fees={"amazon": "0.15"}),
    )

    assert result.fee_rate == Decimal("0.1")
    assert result.marketplace_fee == Decimal("12.00")
    assert result.profit == Decimal("75.00")


def test_recompute_reapplies_overrides_to_fetched_orders(marketplace_map, tmp_path):
    overrides = FeeOverrideStore(tmp_path / "fee_overrides.json")
    engine = ProfitEngine(marketplace_map, overrides)
    pairs = [(make_order(total="120.00", source="eBay"), enrichment(fees={"ebay": "0.15"}))]

    before = engine.recompute(pairs)[0].profit.profit
    overrides.set("EBAY", 5)
    after = engine.recompute(pairs)[0].profit.profit

    assert before == Decimal("69.00")
    assert after == Decimal("81.00")
