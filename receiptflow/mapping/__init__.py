"""Mapping of receipts into the fixed downstream schema."""
from receiptflow.mapping.field_mapper import FieldMapper, item_type_code, map_receipt, normalize_brand_name
from receiptflow.mapping.templates import TEMPLATE_HEADERS, record_to_rows, records_to_rows

__all__ = [
    "FieldMapper",
    "item_type_code",
    "map_receipt",
    "normalize_brand_name",
    "TEMPLATE_HEADERS",
    "record_to_rows",
    "records_to_rows",
]
