"""Core building blocks for the receiptflow package."""
from receiptflow.core.config import AIConfig, EnrichmentRules, MappingRules
from receiptflow.core.errors import EnrichmentUnavailable, MissingInputData
from receiptflow.core.logging import configure_logging
from receiptflow.core.models import (
    EnrichedReceipt,
    LineItem,
    MappedRecord,
    ParsedReceipt,
    ValidationResult,
)

__all__ = [
    "AIConfig",
    "EnrichmentRules",
    "MappingRules",
    "EnrichmentUnavailable",
    "MissingInputData",
    "configure_logging",
    "EnrichedReceipt",
    "LineItem",
    "MappedRecord",
    "ParsedReceipt",
    "ValidationResult",
]
