"""Normalization, enrichment, and field mapping for OCR receipt payloads."""
from receiptflow.core import (
    AIConfig,
    EnrichmentRules,
    MappingRules,
    MissingInputData,
    configure_logging,
)
from receiptflow.enrichment import LLMEnricher, RuleBasedEnricher, create_enricher
from receiptflow.ingestion import parse_amount, parse_response
from receiptflow.mapping import FieldMapper, normalize_brand_name, records_to_rows
from receiptflow.pipeline import process_receipt, process_receipts, run_pipeline
from receiptflow.quality import validate_receipt

__all__ = [
    "AIConfig",
    "EnrichmentRules",
    "MappingRules",
    "MissingInputData",
    "configure_logging",
    "LLMEnricher",
    "RuleBasedEnricher",
    "create_enricher",
    "parse_amount",
    "parse_response",
    "FieldMapper",
    "normalize_brand_name",
    "records_to_rows",
    "process_receipt",
    "process_receipts",
    "run_pipeline",
    "validate_receipt",
]
