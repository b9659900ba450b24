"""Tests for mapping receipts into the fixed flat schema."""
import json

import pytest

from receiptflow.core.errors import MissingInputData
from receiptflow.core.models import ITEM_TYPE_CODES, MAPPED_ITEM_FIELDS, MAPPED_RECORD_FIELDS, MappedRecord
from receiptflow.enrichment.rules import rule_based_enrichment
from receiptflow.ingestion.parser import parse_response
from receiptflow.mapping.field_mapper import (
    FieldMapper,
    extract_street_name,
    format_date,
    format_time,
    item_type_code,
    map_receipt,
    normalize_brand_name,
)
from receiptflow.mapping.templates import TEMPLATE_HEADERS, record_to_rows, records_to_rows


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Trader Joe's", "Trader Joes"),
        ("TRADER JOES #519", "Trader Joes"),
        ("traderjoes.com", "Trader Joes"),
        ('"Corner Market"', "Corner Market"),
        (None, ""),
    ],
)
def test_normalize_brand_name(raw, expected):
    assert normalize_brand_name(raw) == expected


@pytest.mark.parametrize("raw", ["Trader Joe's", "'Safeway'", "Bob's Burgers", "TRADERJOES"])
def test_normalize_brand_name_is_idempotent(raw):
    once = normalize_brand_name(raw)

    assert normalize_brand_name(once) == once


@pytest.mark.parametrize(
    ("name", "code"),
    [
        ("Organic Bananas", "PROD"),
        ("Whole Milk", "DAIRY"),
        ("Milk Bread", "DAIRY"),
        ("Sourdough Bread", "BAKERY"),
        ("Chicken Thighs", "MEAT"),
        ("Olive Oil", "PANTRY"),
        ("Bottle Deposit", "FEE"),
        ("Gift Card", "MISC"),
        ("", "MISC"),
    ],
)
def test_item_type_code_first_match(name, code):
    assert item_type_code(name) == code


def test_item_type_code_stays_in_vocabulary():
    names = ["BERRIES", "Greek Yogurt", "Bakery Roll", "Beef Jerky", "Rice", "Service Fee", "???", None]

    assert {item_type_code(name) for name in names} <= set(ITEM_TYPE_CODES)


def test_address_helpers():
    assert extract_street_name("123 Main St, Springfield, IL 62701") == "Main St"
    assert extract_street_name("Trader Joe'S Portland (519), Marginal Way, Portland, ME 04101") is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-08-21T14:23:00", "2025-08-21"),
        ("08/30/2025", "2025-08-30"),
        ("2025/01/05", "2025-01-05"),
        (None, None),
    ],
)
def test_format_date(raw, expected):
    assert format_date(raw) == expected


def test_format_time():
    assert format_time("2025-08-21T14:23:00") == "14:23:00"
    assert format_time("9:05") == "09:05:00"
    assert format_time("08/30/2025") is None


def test_map_sample_receipt_without_enrichment(trader_joes_payload):
    record = map_receipt(trader_joes_payload)

    assert record.brand_name == "Trader Joes"
    assert record.original_merchant == "Trader Joe's"
    assert record.street_number == "519"
    assert record.street_name is None
    assert (record.city, record.state, record.zipcode) == ("Portland", "ME", "04101")
    assert record.date_field == "2025-08-21"
    assert record.time_field == "14:23:00"
    assert record.total_price_field == pytest.approx(96.49)
    assert record.confidence_score == pytest.approx(0.9)
    assert [item.item_type_code for item in record.items] == ["PANTRY", "DAIRY", "FEE"]
    assert [item.category for item in record.items] == ["pantry", "dairy", "other"]
    assert record.warnings == ("street_name could not be determined",)


def test_tax_slots_keep_first_two_values(trader_joes_payload):
    record = map_receipt(trader_joes_payload)

    # The third tax value (0.05) has no slot and is dropped.
    assert (record.tax_field_1, record.tax_field_2) == (0.22, 0.22)


def test_tax_slots_fall_back_to_summary_lines(corner_market_payload):
    record = map_receipt(corner_market_payload)

    assert (record.tax_field_1, record.tax_field_2) == (0.35, 0.12)


def test_tax_slots_fill_each_slot_independently():
    payload = {
        "result": {
            "taxes": [0.5],
            "summaryItems": [
                {"desc": "Sales Tax", "lineTotal": "$0.30"},
                {"desc": "Environmental tax", "lineTotal": "$0.20"},
                {"desc": "Bag fee", "lineTotal": "$0.10"},
            ],
        }
    }

    record = map_receipt(payload)

    assert (record.tax_field_1, record.tax_field_2) == (0.5, 0.2)
    assert (map_receipt({"result": {}}).tax_field_1, map_receipt({"result": {}}).tax_field_2) == (0.0, 0.0)


def test_map_sparse_receipt(corner_market_payload):
    record = map_receipt(corner_market_payload)

    assert record.brand_name == "Corner Market"
    assert record.street_number == "123"
    assert record.street_name == "Main St"
    assert record.zipcode == "62701"
    assert record.date_field == "2025-08-30"
    assert record.time_field is None
    assert record.confidence_score == 0.85
    assert "city could not be determined" in record.warnings
    bananas = record.items[0]
    assert bananas.quantity == 2.0
    assert bananas.unit_price == pytest.approx(0.6)
    assert bananas.item_type_code == "PROD"


def test_mapping_uses_enriched_items(trader_joes_payload):
    enriched = rule_based_enrichment(parse_response(trader_joes_payload))

    record = FieldMapper().map(trader_joes_payload, enriched)

    assert [item.item_name for item in record.items] == ["OL VE OIL", "COCONUT MILK"]
    assert [item.category for item in record.items] == ["pantry", "dairy"]
    assert [item.item_type_code for item in record.items] == ["PANTRY", "DAIRY"]
    assert record.items[1].unit_price == pytest.approx(1.89)


def test_missing_result_raises():
    with pytest.raises(MissingInputData):
        map_receipt({"status": "failed"})
    with pytest.raises(MissingInputData):
        map_receipt({"result": "not an object"})


def test_empty_result_maps_with_warnings(caplog):
    caplog.set_level("INFO")

    record = map_receipt({"result": {}})

    assert record.brand_name == ""
    assert record.total_price_field == 0.0
    assert record.confidence_score == 0.85
    assert record.items == ()
    for warning in ("brand name missing", "date missing", "total missing", "zipcode could not be determined"):
        assert warning in record.warnings
    assert any("Mapped receipt with ambiguities" in message for message in caplog.messages)


def test_to_dict_exposes_only_schema_columns(trader_joes_payload):
    data = map_receipt(trader_joes_payload).to_dict()

    assert set(data) == {*MAPPED_RECORD_FIELDS, "items"}
    assert all(tuple(item) == MAPPED_ITEM_FIELDS for item in data["items"])


def test_record_to_rows_repeats_header_per_item(trader_joes_payload):
    rows = record_to_rows(map_receipt(trader_joes_payload))

    assert len(rows) == 3
    assert all(list(row) == TEMPLATE_HEADERS for row in rows)
    assert {row["brand_name"] for row in rows} == {"Trader Joes"}
    assert rows[0]["tax_field_1"] == "0.22"
    assert rows[0]["item_price"] == "9.99"
    assert rows[0]["quantity"] == "1"
    assert rows[0]["street_name"] == ""


def test_records_to_rows_keeps_item_less_records():
    rows = records_to_rows([MappedRecord(brand_name="Corner Market")])

    assert len(rows) == 1
    assert rows[0]["brand_name"] == "Corner Market"
    assert rows[0]["item_name"] == ""
    assert rows[0]["total_price_field"] == "0.00"


def test_mapping_skips_non_finite_confidences():
    payload = json.loads(
        '{"result": {"establishment": "Kroger", "establishmentConfidence": NaN, '
        '"lineItems": [{"descClean": "Whole Milk", "lineTotal": 3.49, "confidence": NaN}]}}'
    )

    record = map_receipt(payload)

    assert record.confidence_score == 0.85
    assert record.items[0].confidence == 1.0


def test_mapping_clamps_out_of_range_confidences():
    payload = {
        "result": {
            "establishment": "Kroger",
            "establishmentConfidence": 95,
            "totalConfidence": 0.9,
            "lineItems": [{"descClean": "Whole Milk", "lineTotal": 3.49, "confidence": 93}],
        }
    }

    record = map_receipt(payload)

    assert record.confidence_score == 1.0
    assert record.items[0].confidence == 1.0


def test_raw_and_enriched_paths_agree_on_non_positive_quantity():
    payload = {
        "result": {
            "establishment": "Corner Market",
            "total": 3.0,
            "lineItems": [{"descClean": "Apples", "qty": "-2", "lineTotal": "3.00"}],
        }
    }

    raw_item = map_receipt(payload).items[0]
    enriched_item = map_receipt(payload, rule_based_enrichment(parse_response(payload))).items[0]

    assert raw_item.quantity == 1.0
    assert raw_item.unit_price == 3.0
    assert (enriched_item.quantity, enriched_item.unit_price) == (raw_item.quantity, raw_item.unit_price)
