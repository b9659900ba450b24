"""Deterministic enrichment rules shared by every enrichment strategy."""
from __future__ import annotations

from typing import Optional

from receiptflow.core.config import COMPLETENESS_BONUS, MAX_OVERALL_BASE, EnrichmentRules
from receiptflow.core.models import (
    EnrichedItem,
    EnrichedReceipt,
    Insights,
    LineItem,
    ParsedReceipt,
    QualityMetrics,
    StoreProfile,
)
from receiptflow.core.utils import js_round, mean_confidence

DEFAULT_RULES = EnrichmentRules()


def normalize_store(name: Optional[str], rules: EnrichmentRules = DEFAULT_RULES) -> StoreProfile:
    """Match a store name against the chain table.

    Every input yields a non-empty ``normalized_name``: matched names collapse
    to the chain name, others pass through, and blanks become the unknown
    store placeholder.
    """

    cleaned = (name or "").strip()
    lowered = cleaned.lower()
    for profile in rules.chains:
        if profile.pattern in lowered:
            return StoreProfile(
                name=name,
                normalized_name=profile.chain,
                chain=profile.chain,
                store_type=profile.store_type,
                price_range=profile.price_range,
            )

    return StoreProfile(
        name=name,
        normalized_name=cleaned or rules.unknown_store_name,
        chain=cleaned or None,
        store_type=rules.default_store_type,
        price_range=None,
    )


def categorize_item(name: Optional[str], rules: EnrichmentRules = DEFAULT_RULES) -> str:
    """Return the first category whose keywords appear in the item name."""

    lowered = (name or "").lower()
    for category, keywords in rules.categories:
        if any(keyword in lowered for keyword in keywords):
            return category
    return rules.default_category


def nutrition_for(category: str, rules: EnrichmentRules = DEFAULT_RULES) -> str:
    return "healthy" if category in rules.healthy_categories else "neutral"


def enrich_item(item: LineItem, rules: EnrichmentRules = DEFAULT_RULES) -> EnrichedItem:
    category = categorize_item(item.name, rules)
    return EnrichedItem(
        name=item.name,
        line_total=item.line_total,
        quantity=item.quantity,
        unit_price=item.unit_price,
        confidence=item.confidence,
        unit=item.unit,
        category=category,
        nutrition_category=nutrition_for(category, rules),
    )


def derive_insights(total: Optional[float], item_count: int, rules: EnrichmentRules = DEFAULT_RULES) -> Insights:
    """Rule-based insights from the grand total and the number of items."""

    amount = total or 0
    if amount < rules.budget_total_limit:
        budget = "budget"
    elif amount < rules.moderate_total_limit:
        budget = "moderate"
    else:
        budget = "premium"

    return Insights(
        shopping_category="grocery" if amount > rules.grocery_total_threshold else "convenience",
        estimated_people=max(1, item_count // rules.items_per_person),
        budget_category=budget,
    )


def data_completeness(receipt: ParsedReceipt, store: StoreProfile, item_count: int) -> int:
    """Percentage of the six key signals present on an enriched receipt."""

    checks = [
        bool(store.name),
        bool(store.normalized_name),
        bool(receipt.date),
        (receipt.total or 0) > 0,
        item_count > 0,
        bool(store.store_type),
    ]
    return js_round(sum(checks) / len(checks) * 100)


def overall_confidence(completeness: int, ocr_confidence: float) -> int:
    """Blend completeness with OCR confidence into a single percentage.

    The completeness-derived base is capped at 95 before being averaged with
    the OCR confidence expressed as a percentage.
    """

    base = min(MAX_OVERALL_BASE, completeness + COMPLETENESS_BONUS)
    return js_round((base + ocr_confidence * 100) / 2)


def quality_metrics(
    receipt: ParsedReceipt,
    store: StoreProfile,
    item_count: int,
    rules: EnrichmentRules = DEFAULT_RULES,
    source: str = "rules",
) -> QualityMetrics:
    ocr = mean_confidence(receipt.field_confidences, rules.default_confidence)
    completeness = data_completeness(receipt, store, item_count)
    return QualityMetrics(
        data_completeness=completeness,
        overall_confidence=overall_confidence(completeness, ocr),
        ocr_confidence=ocr,
        source=source,
    )


def rule_based_enrichment(receipt: ParsedReceipt, rules: EnrichmentRules = DEFAULT_RULES) -> EnrichedReceipt:
    """Run every deterministic rule over a parsed receipt."""

    store = normalize_store(receipt.merchant, rules)
    items = tuple(enrich_item(item, rules) for item in receipt.items)
    return EnrichedReceipt(
        receipt=receipt,
        store=store,
        items=items,
        insights=derive_insights(receipt.total, len(items), rules),
        quality=quality_metrics(receipt, store, len(items), rules),
    )
