"""AI and rule-based enrichment utilities."""
from receiptflow.enrichment.client import ChatCompletionClient
from receiptflow.enrichment.engine import (
    Enricher,
    LLMEnricher,
    RuleBasedEnricher,
    create_enricher,
    enrich_receipts,
)
from receiptflow.enrichment.rules import categorize_item, normalize_store, overall_confidence

__all__ = [
    "ChatCompletionClient",
    "Enricher",
    "LLMEnricher",
    "RuleBasedEnricher",
    "create_enricher",
    "enrich_receipts",
    "categorize_item",
    "normalize_store",
    "overall_confidence",
]
