"""Parser for OCR provider receipt payloads."""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Dict, List, Mapping

from receiptflow.core.config import DEFAULT_PARSE_CONFIDENCE
from receiptflow.core.models import LineItem, Location, ParsedReceipt
from receiptflow.core.utils import clamp_confidence, mean_confidence
from receiptflow.ingestion.common import clean_text, parse_amount, split_datetime

logger = logging.getLogger(__name__)

MISSING_RESULT_ERROR = "No result data found in OCR response"

CONFIDENCE_FIELDS = ("establishmentConfidence", "totalConfidence", "dateConfidence")


def field_confidences(result: Mapping[str, Any]) -> tuple[float, ...]:
    """Return the per-field confidences present in a provider result.

    Non-finite values are skipped and the rest are clamped to ``[0, 1]``.
    """

    scores: List[float] = []
    for key in CONFIDENCE_FIELDS:
        value = result.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            score = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(score):
            scores.append(clamp_confidence(score))
    return tuple(scores)


def _parse_items(raw_items: Any) -> tuple[LineItem, ...]:
    if not isinstance(raw_items, list):
        return ()

    items: List[LineItem] = []
    for entry in raw_items:
        if not isinstance(entry, Mapping):
            continue
        name = clean_text(entry.get("descClean"))
        line_total = parse_amount(entry.get("lineTotal"))
        if not name or line_total is None:
            continue

        quantity = parse_amount(entry.get("qty"))
        if quantity is None or quantity <= 0:
            quantity = 1.0

        confidence = parse_amount(entry.get("confidence"))
        items.append(
            LineItem(
                name=name,
                line_total=line_total,
                quantity=quantity,
                unit_price=parse_amount(entry.get("price")),
                confidence=clamp_confidence(confidence) if confidence is not None else 1.0,
                original_name=clean_text(entry.get("desc")),
                unit=clean_text(entry.get("unit")),
            )
        )
    return tuple(items)


def parse_response(payload: Mapping[str, Any] | None) -> ParsedReceipt:
    """Turn a raw provider payload into a canonical ``ParsedReceipt``.

    A payload without a ``result`` object is the only failure case and is
    reported with ``success=False``. Malformed fields inside a present result
    degrade to ``None`` instead of raising.
    """

    result = payload.get("result") if isinstance(payload, Mapping) else None
    if result is None:
        logger.warning("OCR payload has no result object")
        return ParsedReceipt(success=False, error=MISSING_RESULT_ERROR)
    if not isinstance(result, Mapping):
        result = {}

    custom_fields = result.get("customFields")
    if not isinstance(custom_fields, Mapping):
        custom_fields = {}
    address_norm = result.get("addressNorm")
    if not isinstance(address_norm, Mapping):
        address_norm = {}

    date, time = split_datetime(result.get("dateISO"), result.get("date"), result.get("time"))
    confidences = field_confidences(result)

    receipt = ParsedReceipt(
        success=True,
        merchant=clean_text(result.get("establishment")),
        address=clean_text(result.get("address")),
        phone=clean_text(result.get("phoneNumber")),
        date=date,
        time=time,
        datetime_iso=clean_text(result.get("dateISO")),
        total=parse_amount(result.get("total")),
        tax=parse_amount(result.get("tax")),
        subtotal=parse_amount(result.get("subTotal")),
        currency=clean_text(result.get("currency")),
        payment_method=clean_text(result.get("paymentMethod")),
        store_id=clean_text(custom_fields.get("StoreID")),
        website=clean_text(custom_fields.get("URL")),
        location=Location(
            city=clean_text(address_norm.get("city")),
            state=clean_text(address_norm.get("state")),
            postcode=clean_text(address_norm.get("postcode")),
        ),
        items=_parse_items(result.get("lineItems")),
        confidence=clamp_confidence(mean_confidence(confidences, DEFAULT_PARSE_CONFIDENCE)),
        field_confidences=confidences,
    )
    receipt = _with_summary(receipt)

    logger.info(
        "Parsed receipt from %s: total=%s items=%d confidence=%.2f",
        receipt.merchant or "unknown merchant",
        receipt.total,
        len(receipt.items),
        receipt.confidence,
    )
    return receipt


def _with_summary(receipt: ParsedReceipt) -> ParsedReceipt:
    return replace(receipt, raw_text=render_summary(receipt))


def _money(value: float) -> str:
    return f"${value:.2f}"


def _format_quantity(quantity: float) -> str:
    return f"{quantity:g}"


def render_summary(receipt: ParsedReceipt) -> str:
    """Render the parsed fields as receipt-like text for fallback display.

    The rendering is derived data only; nothing reads fields back from it.
    """

    lines: List[str] = []
    if receipt.merchant:
        lines.append(receipt.merchant)
    if receipt.address:
        lines.append(receipt.address)
    if receipt.phone:
        lines.append(f"Phone: {receipt.phone}")
    lines.append("")
    if receipt.date:
        lines.append(f"Date: {receipt.date}")
    lines.append("")
    for item in receipt.items:
        quantity = f"{_format_quantity(item.quantity)}x " if item.quantity > 1 else ""
        price = f" {_money(item.line_total)}" if item.line_total else ""
        lines.append(f"{quantity}{item.name}{price}")
    lines.append("")
    if receipt.subtotal:
        lines.append(f"Subtotal: {_money(receipt.subtotal)}")
    if receipt.tax:
        lines.append(f"Tax: {_money(receipt.tax)}")
    if receipt.total:
        lines.append(f"Total: {_money(receipt.total)}")
    return "\n".join(lines) + "\n"


def provider_result_from_receipt(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Rebuild a provider-shaped payload from a previously parsed receipt dict.

    Stored receipts carry ``merchant``/``total``/``items`` keys rather than the
    provider's names; converting them lets old records run through the same
    pipeline again.
    """

    receipt = data.get("receipt") if isinstance(data.get("receipt"), Mapping) else data
    confidence = data.get("confidence") or DEFAULT_PARSE_CONFIDENCE
    date = receipt.get("date")
    line_items = []
    for index, item in enumerate(receipt.get("items") or [], start=1):
        if not isinstance(item, Mapping):
            continue
        name = item.get("name") or f"Item {index}"
        quantity = item.get("quantity") or 1
        unit_price = item.get("unitPrice") or item.get("unit_price") or item.get("price")
        line_total = item.get("totalPrice") or item.get("total") or item.get("line_total")
        if line_total is None and unit_price is not None:
            line_total = (parse_amount(unit_price) or 0) * (parse_amount(quantity) or 1)
        line_items.append(
            {
                "desc": name,
                "descClean": name,
                "qty": quantity,
                "price": unit_price or 0,
                "lineTotal": line_total or 0,
                "unit": item.get("unit") or "each",
                "confidence": item.get("confidence") or confidence,
            }
        )

    return {
        "result": {
            "establishment": receipt.get("merchant") or "Unknown Store",
            "address": receipt.get("address"),
            "phoneNumber": receipt.get("phone"),
            "date": date,
            "dateISO": f"{date}T{receipt.get('time') or '00:00:00'}" if date else None,
            "total": receipt.get("total") or 0,
            "subTotal": receipt.get("subtotal") or 0,
            "tax": receipt.get("tax") or 0,
            "currency": "USD",
            "establishmentConfidence": confidence,
            "totalConfidence": confidence,
            "dateConfidence": confidence,
            "lineItems": line_items,
        }
    }
