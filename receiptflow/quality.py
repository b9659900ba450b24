"""Lenient quality checks that decide whether a parsed receipt is usable."""
import logging
from typing import List

from receiptflow.core.config import LOW_CONFIDENCE_THRESHOLD
from receiptflow.core.models import ParsedReceipt, ValidationResult

logger = logging.getLogger(__name__)

PARSE_FAILED_ERROR = "OCR processing failed"
NO_USEFUL_DATA_ERROR = "No useful receipt data could be extracted"
LOW_CONFIDENCE_WARNING = "Low OCR confidence score"
MISSING_TOTAL_WARNING = "No monetary amounts detected"
MISSING_MERCHANT_WARNING = "Merchant name not found"
MISSING_ITEMS_WARNING = "No line items extracted"

MIN_RAW_TEXT_LENGTH = 10


def validate_receipt(receipt: ParsedReceipt) -> ValidationResult:
    """Return a verdict for a parsed receipt.

    A receipt only fails when total, merchant, rendered text, and items are all
    empty at once; any single signal keeps sparse data flowing with warnings.
    """

    if not receipt.success:
        logger.warning("Validation failed: %s", receipt.error or PARSE_FAILED_ERROR)
        return ValidationResult(is_valid=False, errors=(PARSE_FAILED_ERROR,))

    errors: List[str] = []
    warnings: List[str] = []

    if receipt.confidence < LOW_CONFIDENCE_THRESHOLD:
        warnings.append(LOW_CONFIDENCE_WARNING)

    has_total = receipt.total is not None and receipt.total > 0
    has_merchant = bool(receipt.merchant and receipt.merchant.strip())
    has_raw_text = len(receipt.raw_text or "") > MIN_RAW_TEXT_LENGTH
    has_items = len(receipt.items) > 0

    if not (has_total or has_merchant or has_raw_text or has_items):
        errors.append(NO_USEFUL_DATA_ERROR)
    else:
        if not has_total:
            warnings.append(MISSING_TOTAL_WARNING)
        if not has_merchant:
            warnings.append(MISSING_MERCHANT_WARNING)
        if not has_items:
            warnings.append(MISSING_ITEMS_WARNING)

    result = ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
    if errors:
        logger.warning("Receipt rejected: %s", "; ".join(errors))
    elif warnings:
        logger.info("Receipt accepted with %d warnings: %s", len(warnings), "; ".join(warnings))
    return result
