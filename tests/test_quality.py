"""Tests for the lenient receipt validator."""
from receiptflow.core.models import LineItem, ParsedReceipt
from receiptflow.ingestion.parser import parse_response
from receiptflow.quality import (
    LOW_CONFIDENCE_WARNING,
    MISSING_ITEMS_WARNING,
    MISSING_MERCHANT_WARNING,
    MISSING_TOTAL_WARNING,
    NO_USEFUL_DATA_ERROR,
    PARSE_FAILED_ERROR,
    validate_receipt,
)


def test_single_item_is_enough_to_accept_a_receipt():
    receipt = ParsedReceipt(items=(LineItem(name="Milk", line_total=3.49),), confidence=0.9)

    result = validate_receipt(receipt)

    assert result.is_valid is True
    assert result.errors == ()
    assert MISSING_TOTAL_WARNING in result.warnings
    assert MISSING_MERCHANT_WARNING in result.warnings
    assert MISSING_ITEMS_WARNING not in result.warnings


def test_receipt_without_any_signal_is_rejected():
    result = validate_receipt(ParsedReceipt(confidence=0.9))

    assert result.is_valid is False
    assert result.errors == (NO_USEFUL_DATA_ERROR,)


def test_empty_provider_result_renders_too_little_text_to_pass():
    result = validate_receipt(parse_response({"result": {}}))

    assert result.is_valid is False
    assert result.errors == (NO_USEFUL_DATA_ERROR,)


def test_raw_text_alone_keeps_receipt_flowing():
    receipt = ParsedReceipt(raw_text="GROCERY OUTLET THANK YOU", confidence=0.9)

    result = validate_receipt(receipt)

    assert result.is_valid is True
    assert result.warnings == (MISSING_TOTAL_WARNING, MISSING_MERCHANT_WARNING, MISSING_ITEMS_WARNING)


def test_low_confidence_is_only_a_warning():
    receipt = ParsedReceipt(
        merchant="Corner Market",
        total=12.4,
        items=(LineItem(name="Bananas", line_total=1.2),),
        confidence=0.3,
    )

    result = validate_receipt(receipt)

    assert result.is_valid is True
    assert result.warnings == (LOW_CONFIDENCE_WARNING,)


def test_zero_total_counts_as_missing():
    receipt = ParsedReceipt(merchant="Corner Market", total=0.0, confidence=0.9)

    result = validate_receipt(receipt)

    assert result.is_valid is True
    assert MISSING_TOTAL_WARNING in result.warnings


def test_failed_parse_is_rejected(caplog):
    caplog.set_level("WARNING")

    result = validate_receipt(parse_response({"status": "failed"}))

    assert result.is_valid is False
    assert result.errors == (PARSE_FAILED_ERROR,)
    assert any("Validation failed" in message for message in caplog.messages)


def test_sample_receipts_validate(trader_joes_payload, corner_market_payload):
    full = validate_receipt(parse_response(trader_joes_payload))
    sparse = validate_receipt(parse_response(corner_market_payload))

    assert full.is_valid and full.warnings == ()
    assert sparse.is_valid and sparse.warnings == ()
