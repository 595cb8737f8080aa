import json

import pytest

from linnworks_profit.config.marketplaces import MarketplaceClass, MarketplaceMap


def test_bundled_map_classifies_known_channels(marketplace_map):
    assert marketplace_map.classify("AMAZON") == (MarketplaceClass.DEFAULT, "amazon")
    assert marketplace_map.classify("Wayfair") == (MarketplaceClass.LARGE_FURNITURE, "wayfair")
    assert marketplace_map.classify("Groupon") == (MarketplaceClass.DEAL_AGGREGATOR, "groupon")


def test_unknown_source_falls_back_to_default_without_fee(marketplace_map):
    assert marketplace_map.classify("NotAMarketplace") == (MarketplaceClass.DEFAULT, None)
    assert marketplace_map.classify(None) == (MarketplaceClass.DEFAULT, None)


def test_consolidator_retailer_named_by_source_when_sub_source_missing(marketplace_map):
    marketplace_class, fee_key = marketplace_map.classify("Robert Dyas", None)

    assert marketplace_class is MarketplaceClass.CONSOLIDATOR
    assert fee_key == "robert_dyas"


def test_consolidator_without_matching_sub_source_has_no_fee_key(marketplace_map):
    marketplace_class, fee_key = marketplace_map.classify("VirtualStock", "Unknown Retailer")

    assert marketplace_class is MarketplaceClass.CONSOLIDATOR
    assert fee_key is None


def test_fallback_alias_is_applied_and_logged(marketplace_map, caplog):
    with caplog.at_level("WARNING", logger="linnworks_profit"):
        classification = marketplace_map.classify("Fruugo")

    assert classification.fee_key == "onbuy"
    assert "fallback alias" in caplog.text


def test_map_loads_from_custom_file(tmp_path):
    path = tmp_path / "marketplaces.json"
    path.write_text(
        json.dumps(
            {
                "sources": {"New Shop": {"class": "default", "fee_key": "shopify"}},
                "sub_sources": {},
            }
        )
    )

    marketplace_map = MarketplaceMap.load(path)

    assert marketplace_map.classify("NEW-SHOP") == (MarketplaceClass.DEFAULT, "shopify")
    assert marketplace_map.classify("Amazon") == (MarketplaceClass.DEFAULT, None)


def test_unknown_class_in_map_is_rejected():
    with pytest.raises(ValueError):
        MarketplaceMap.from_dict({"sources": {"x": {"class": "mystery"}}})
