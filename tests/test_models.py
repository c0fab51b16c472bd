"""Tests for parsing deal and product records at the boundary."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.exceptions import DataShapeError
from models.deal import Deal, DealFieldKeys, DealRecord, parse_flag
from models.product import Variant

NOW = datetime(2024, 11, 29, 12, 0, tzinfo=timezone.utc)


def _record(**fields):
    return DealRecord(id="d1", fields=[{"key": k, "value": v} for k, v in fields.items()])


@pytest.mark.parametrize("raw, expected", [("true", True), ("TRUE ", True), ("false", False), ("", False), (None, False), ("yes", False)])
def test_parse_flag(raw, expected):
    assert parse_flag(raw) is expected


def test_deal_from_record_types_every_field():
    deal = Deal.from_record(_record(wtf_pricing="true", start_time="2024-11-29T08:00:00Z",
                                    product="gid://shopify/Product/1", started="true"))

    assert deal.pricing_enabled is True
    assert deal.start_time == datetime(2024, 11, 29, 8, 0, tzinfo=timezone.utc)
    assert deal.product_id == "gid://shopify/Product/1"
    assert deal.started is True
    assert deal.is_eligible(NOW) is True


def test_naive_start_time_is_utc():
    deal = Deal.from_record(_record(wtf_pricing="true", start_time="2024-11-29T12:00:00", product="p"))
    assert deal.start_time.tzinfo is not None
    assert deal.is_eligible(NOW) is True


def test_duplicate_field_keys_last_one_wins():
    record = DealRecord(id="d1", fields=[{"key": "wtf_pricing", "value": "false"}, {"key": "wtf_pricing", "value": "true"}])
    assert record.field_map() == {"wtf_pricing": "true"}


def test_missing_fields_make_deal_ineligible():
    assert Deal.from_record(_record(wtf_pricing="true", product="p")).is_eligible(NOW) is False
    assert Deal.from_record(_record(wtf_pricing="true", start_time="2024-11-29T08:00:00Z")).is_eligible(NOW) is False
    assert Deal.from_record(_record()).is_eligible(NOW) is False


def test_invalid_start_time_raises_data_shape_error():
    with pytest.raises(DataShapeError):
        Deal.from_record(_record(wtf_pricing="true", start_time="soon", product="p"))


def test_custom_field_keys():
    keys = DealFieldKeys(pricing="recover", start_time="starts_at", product="item")
    deal = Deal.from_record(_record(recover="true", starts_at="2024-11-01T00:00:00Z", item="p"), keys)
    assert deal.is_eligible(NOW) is True


def test_variant_prices_are_decimals_with_two_places():
    variant = Variant.model_validate({"id": "v1", "price": "19.9", "compareAtPrice": "25"})
    assert variant.price == Decimal("19.90")
    assert str(variant.compare_at_price) == "25.00"


def test_variant_without_compare_at_price():
    variant = Variant.model_validate({"id": "v1", "price": "19.90", "compareAtPrice": None})
    assert variant.compare_at_price is None


@pytest.mark.parametrize("raw", ["1700000000", " 1700000000 ", "1700000000.5", "-5"])
def test_numeric_start_time_is_not_read_as_epoch(raw):
    with pytest.raises(DataShapeError):
        Deal.from_record(_record(wtf_pricing="true", start_time=raw, product="p"))
