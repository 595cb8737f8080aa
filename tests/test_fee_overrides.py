import json
from decimal import Decimal

import pytest

from linnworks_profit.core.fee_overrides import FeeOverrideStore, normalize_source_name


@pytest.mark.parametrize(
    "name, expected",
    [
        ("B&Q", "bandq"),
        ("b and q", "bandq"),
        ("TikTok Shop", "tiktokshop"),
        ("  The-Range ", "therange"),
        (None, ""),
    ],
)
def test_normalize_source_name(name, expected):
    assert normalize_source_name(name) == expected


def test_override_survives_a_new_store_instance(tmp_path):
    path = tmp_path / "overrides" / "fee_overrides.json"
    FeeOverrideStore(path).set("Amazon", 12.5)

    reloaded = FeeOverrideStore(path)

    assert reloaded.get_rate("AMAZON") == Decimal("0.125")
    assert json.loads(path.read_text())["amazon"]["percentage"] == "12.5"


def test_unknown_source_has_no_override(tmp_path):
    store = FeeOverrideStore(tmp_path / "fee_overrides.json")

    assert store.get_rate("eBay") is None
    assert store.get_rate(None) is None


@pytest.mark.parametrize("percentage", [-1, 100.01, "abc"])
def test_out_of_range_percentage_is_rejected(tmp_path, percentage):
    store = FeeOverrideStore(tmp_path / "fee_overrides.json")

    with pytest.raises(ValueError):
        store.set("Amazon", percentage)

    assert store.all() == {}


def test_empty_source_is_rejected(tmp_path):
    store = FeeOverrideStore(tmp_path / "fee_overrides.json")

    with pytest.raises(ValueError):
        store.set(" -- ", 10)


def test_boundaries_are_accepted(tmp_path):
    store = FeeOverrideStore(tmp_path / "fee_overrides.json")
    store.set("OnBuy", 0)
    store.set("Shein", "100")

    assert store.get_rate("onbuy") == Decimal("0")
    assert store.get_rate("SHEIN") == Decimal("1")


def test_remove_override(tmp_path):
    path = tmp_path / "fee_overrides.json"
    store = FeeOverrideStore(path)
    store.set("B&Q", 8)

    assert store.remove("b and q") is True
    assert store.remove("b and q") is False
    assert FeeOverrideStore(path).all() == {}


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "fee_overrides.json"
    path.write_text("{not json")

    assert FeeOverrideStore(path).all() == {}
