"""Parsing of OCR provider payloads into canonical receipts."""
from receiptflow.ingestion.common import parse_amount
from receiptflow.ingestion.parser import parse_response, provider_result_from_receipt, render_summary

__all__ = [
    "parse_amount",
    "parse_response",
    "provider_result_from_receipt",
    "render_summary",
]
