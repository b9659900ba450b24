"""Flatten mapped records into spreadsheet-friendly rows."""
from typing import Any, Dict, Iterable, List

from receiptflow.core.models import MAPPED_ITEM_FIELDS, MAPPED_RECORD_FIELDS, MappedRecord

TEMPLATE_HEADERS = [*MAPPED_RECORD_FIELDS, *MAPPED_ITEM_FIELDS]


def _format_amount(value: float | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def _header_row(record: MappedRecord) -> Dict[str, Any]:
    row: Dict[str, Any] = {name: getattr(record, name) for name in MAPPED_RECORD_FIELDS}
    for name in ("tax_field_1", "tax_field_2", "total_price_field"):
        row[name] = _format_amount(row[name])
    row["confidence_score"] = f"{record.confidence_score:.2f}"
    return {key: "" if value is None else value for key, value in row.items()}


def record_to_rows(record: MappedRecord) -> List[Dict[str, Any]]:
    """Return one row per item, repeating the receipt header columns.

    Receipts without items still produce a single header-only row.
    """

    header = _header_row(record)
    if not record.items:
        return [{**header, **{name: "" for name in MAPPED_ITEM_FIELDS}}]

    rows = []
    for item in record.items:
        rows.append(
            {
                **header,
                "item_name": item.item_name,
                "item_type_code": item.item_type_code,
                "item_price": _format_amount(item.item_price),
                "quantity": f"{item.quantity:g}",
                "unit_price": _format_amount(item.unit_price),
                "category": item.category,
            }
        )
    return rows


def records_to_rows(records: Iterable[MappedRecord]) -> List[Dict[str, Any]]:
    """Flatten an iterable of mapped records into template-aligned rows."""

    return [row for record in records for row in record_to_rows(record)]
