"""Deterministic mapping of receipts into the fixed downstream schema."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from receiptflow.core.config import MappingRules
from receiptflow.core.errors import MissingInputData
from receiptflow.core.models import EnrichedReceipt, MappedItem, MappedRecord
from receiptflow.core.utils import clamp_confidence, mean_confidence
from receiptflow.ingestion.common import clean_text, parse_amount
from receiptflow.ingestion.parser import CONFIDENCE_FIELDS

logger = logging.getLogger(__name__)

DEFAULT_RULES = MappingRules()

_QUOTES = re.compile(r"['\"]")
_STREET_NUMBER = re.compile(r"\b(\d+)\b")
_ZIP_CODE = re.compile(r"\b(\d{5}(?:-\d{4})?)\b")
_LEADING_NUMBER = re.compile(r"^\d+\s*")
_STORE_LABEL = re.compile(r"^[^,]*\s\(\d+\)\s*,?\s*")
_TIME = re.compile(r"(\d{1,2}:\d{2}(?::\d{2})?)")

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
)


def normalize_brand_name(raw: Optional[str], rules: MappingRules = DEFAULT_RULES) -> str:
    """Collapse known spelling variants of a brand to one canonical form.

    Matching runs on the quote-stripped name, so applying the function to its
    own output returns the same value.
    """

    cleaned = _QUOTES.sub("", raw or "").strip()
    lowered = cleaned.lower()
    for pattern, canonical in rules.brand_aliases:
        if _QUOTES.sub("", pattern) in lowered:
            return canonical
    return cleaned


def extract_street_number(address: str) -> Optional[str]:
    match = _STREET_NUMBER.search(address)
    return match.group(1) if match else None


def extract_street_name(address: str) -> Optional[str]:
    """Street name from the first comma segment of a free-form address.

    A leading house number is dropped, as is a store label such as
    ``"Portland (519)"``.
    """

    street_part = address.split(",")[0].strip()
    street_part = _LEADING_NUMBER.sub("", street_part)
    street_part = _STORE_LABEL.sub("", street_part).strip()
    return street_part or None


def extract_zip_code(address: str) -> Optional[str]:
    match = _ZIP_CODE.search(address)
    return match.group(1) if match else None


def item_type_code(name: Optional[str], rules: MappingRules = DEFAULT_RULES) -> str:
    """Assign a type code from the closed vocabulary; first matching rule wins."""

    lowered = (name or "").lower()
    for code, keywords in rules.type_codes:
        if any(keyword in lowered for keyword in keywords):
            return code
    return rules.default_type_code


def categorize_item(name: Optional[str], rules: MappingRules = DEFAULT_RULES) -> str:
    lowered = (name or "").lower()
    for category, keywords in rules.categories:
        if any(keyword in lowered for keyword in keywords):
            return category
    return rules.default_category


def format_date(raw: Optional[str]) -> Optional[str]:
    """Normalize a provider date to ``YYYY-MM-DD`` when it can be parsed."""

    text = clean_text(raw)
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).strftime("%Y-%m-%d")
    except ValueError:
        return text.split("T")[0].split(" ")[0] or text


def format_time(raw: Optional[str]) -> Optional[str]:
    """Pull an ``HH:MM:SS`` time out of a provider datetime string."""

    text = clean_text(raw)
    if not text:
        return None
    if "T" in text or " " in text:
        try:
            return datetime.fromisoformat(text.replace(" ", "T", 1)).strftime("%H:%M:%S")
        except ValueError:
            pass
    match = _TIME.search(text)
    if not match:
        return None
    parts = match.group(1).split(":")
    if len(parts) == 2:
        parts.append("00")
    return ":".join(part.zfill(2) for part in parts)


class FieldMapper:
    """Map provider results, optionally enriched, into ``MappedRecord`` rows."""

    def __init__(self, rules: MappingRules | None = None) -> None:
        self.rules = rules or DEFAULT_RULES

    def map(self, payload: Mapping[str, Any], enriched: EnrichedReceipt | None = None) -> MappedRecord:
        """Build the flat record for one receipt.

        Raises:
            MissingInputData: If the payload carries no ``result`` object.
        """

        result = payload.get("result") if isinstance(payload, Mapping) else None
        if not isinstance(result, Mapping):
            raise MissingInputData("No result data found in OCR response")

        warnings: List[str] = []
        address = self._parse_address(result, warnings)
        tax_1, tax_2 = self._parse_taxes(result)
        items = self._map_enriched_items(enriched) if enriched else self._map_raw_items(result)

        merchant = clean_text(result.get("establishment"))
        if merchant is None and enriched is not None:
            merchant = enriched.store.name
        brand = normalize_brand_name(merchant, self.rules)
        if not brand:
            warnings.append("brand name missing")

        raw_datetime = clean_text(result.get("dateISO")) or clean_text(result.get("date"))
        date_field = format_date(raw_datetime)
        if date_field is None:
            warnings.append("date missing")

        total = parse_amount(result.get("total"))
        if total is None:
            warnings.append("total missing")

        record = MappedRecord(
            brand_name=brand,
            street_number=address["street_number"],
            street_name=address["street_name"],
            city=address["city"],
            state=address["state"],
            zipcode=address["zipcode"],
            date_field=date_field,
            time_field=format_time(raw_datetime),
            tax_field_1=tax_1,
            tax_field_2=tax_2,
            total_price_field=total or 0.0,
            confidence_score=mean_confidence(
                (result.get(key) for key in CONFIDENCE_FIELDS), self.rules.default_confidence
            ),
            items=tuple(items),
            original_merchant=merchant,
            phone=clean_text(result.get("phoneNumber")),
            raw_address=clean_text(result.get("address")),
            warnings=tuple(warnings),
        )
        if warnings:
            logger.info("Mapped %s with ambiguities: %s", brand or "receipt", "; ".join(warnings))
        return record

    def _parse_address(self, result: Mapping[str, Any], warnings: List[str]) -> Dict[str, Optional[str]]:
        norm = result.get("addressNorm")
        if not isinstance(norm, Mapping):
            norm = {}
        raw_address = clean_text(result.get("address")) or ""

        parts = {
            "street_number": clean_text(norm.get("number")) or extract_street_number(raw_address),
            "street_name": clean_text(norm.get("street")) or extract_street_name(raw_address),
            "city": clean_text(norm.get("city")),
            "state": clean_text(norm.get("state")),
            "zipcode": clean_text(norm.get("postcode")) or extract_zip_code(raw_address),
        }
        for name, value in parts.items():
            if value is None:
                warnings.append(f"{name} could not be determined")
        return parts

    def _parse_taxes(self, result: Mapping[str, Any]) -> tuple[float, float]:
        """Fill the two tax slots in source order; later values are dropped."""

        taxes = result.get("taxes")
        if not isinstance(taxes, list):
            taxes = []
        summary_items = result.get("summaryItems")
        if not isinstance(summary_items, list):
            summary_items = []

        tax_lines = [
            entry
            for entry in summary_items
            if isinstance(entry, Mapping)
            and (entry.get("lineType") == "Tax" or "tax" in str(entry.get("desc") or "").lower())
        ]

        slots: List[float] = []
        for index in range(self.rules.tax_slots):
            value = parse_amount(taxes[index]) if index < len(taxes) else None
            if not value and index < len(tax_lines):
                value = parse_amount(tax_lines[index].get("lineTotal"))
            slots.append(value or 0.0)
        return slots[0], slots[1]

    def _map_raw_items(self, result: Mapping[str, Any]) -> List[MappedItem]:
        line_items = result.get("lineItems")
        if not isinstance(line_items, list):
            return []

        mapped: List[MappedItem] = []
        for entry in line_items:
            if not isinstance(entry, Mapping):
                continue
            name = clean_text(entry.get("descClean")) or clean_text(entry.get("desc"))
            if not name:
                continue
            price = parse_amount(entry.get("lineTotal")) or 0.0
            quantity = parse_amount(entry.get("qty"))
            if quantity is None or quantity <= 0:
                quantity = 1.0
            unit_price = parse_amount(entry.get("price"))
            if unit_price is None:
                unit_price = price / quantity
            confidence = parse_amount(entry.get("confidence"))
            mapped.append(
                MappedItem(
                    item_name=name,
                    item_type_code=item_type_code(name, self.rules),
                    item_price=price,
                    quantity=quantity,
                    unit_price=unit_price,
                    category=categorize_item(name, self.rules),
                    unit=clean_text(entry.get("unit")) or "each",
                    confidence=clamp_confidence(confidence) if confidence is not None else 1.0,
                )
            )
        return mapped

    def _map_enriched_items(self, enriched: EnrichedReceipt) -> List[MappedItem]:
        mapped: List[MappedItem] = []
        for item in enriched.items:
            quantity = item.quantity or 1.0
            unit_price = item.unit_price if item.unit_price is not None else item.line_total / quantity
            mapped.append(
                MappedItem(
                    item_name=item.name,
                    item_type_code=item_type_code(item.name, self.rules),
                    item_price=item.line_total,
                    quantity=quantity,
                    unit_price=unit_price,
                    category=item.category,
                    unit=item.unit or "each",
                    confidence=item.confidence,
                )
            )
        return mapped


def map_receipt(payload: Mapping[str, Any], enriched: EnrichedReceipt | None = None) -> MappedRecord:
    """Map a single payload with the default rule tables."""

    return FieldMapper().map(payload, enriched)
