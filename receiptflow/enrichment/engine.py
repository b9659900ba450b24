"""AI and rule-based enrichment strategies for parsed receipts."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from receiptflow.core.config import AIConfig, EnrichmentRules
from receiptflow.core.errors import EnrichmentUnavailable
from receiptflow.core.models import (
    EnrichedItem,
    EnrichedReceipt,
    Insights,
    LineItem,
    ParsedReceipt,
    StoreProfile,
)
from receiptflow.enrichment.client import ChatCompletionClient
from receiptflow.enrichment.rules import (
    derive_insights,
    enrich_item,
    normalize_store,
    quality_metrics,
    rule_based_enrichment,
)

logger = logging.getLogger(__name__)

NUTRITION_CATEGORIES = ("healthy", "neutral", "unhealthy")

STORE_PROMPT = """\
Analyze this store information and provide enhanced details in JSON format:

Store Name: {name}
Address: {address}
Phone: {phone}
Website: {website}

Return JSON with:
{{
  "normalized_name": "Clean, standardized store name",
  "chain": "Parent company/chain name",
  "store_type": "grocery|pharmacy|restaurant|convenience|department|specialty",
  "price_range": "budget|mid-range|premium"
}}
"""

ITEMS_PROMPT = """\
Analyze these grocery/retail items and enhance each with categories and tags:

Items:
{items}

Return a JSON array with one object per item, in the same order:
{{
  "name": "original item name",
  "category": "produce|dairy|meat|bakery|pantry|frozen|beverages|snacks|health|household|other",
  "subcategory": "specific subcategory",
  "brand": "brand name if identifiable",
  "dietary_tags": ["organic", "gluten-free", "vegan", "vegetarian", "keto", "low-fat"],
  "nutrition_category": "healthy|neutral|unhealthy"
}}
"""

INSIGHTS_PROMPT = """\
Analyze this shopping receipt and provide insights:

Store: {store}
Total: ${total}
Items: {items}
Date: {date}
Time: {time}

Return JSON with insights:
{{
  "meal_type": "breakfast|lunch|dinner|snack|mixed|grocery-shopping",
  "cuisine_type": "american|italian|mexican|asian|mediterranean|mixed|other",
  "dietary_flags": ["vegetarian", "vegan", "organic", "gluten-free", "keto", "healthy", "processed"],
  "shopping_category": "grocery|quick-meal|dining|convenience|bulk-shopping",
  "estimated_people": 1,
  "health_score": 5,
  "sustainability_score": 5,
  "budget_category": "budget|moderate|premium",
  "shopping_pattern": "planned|impulse|routine|special-occasion"
}}
"""


class Enricher(ABC):
    """Elevates a parsed receipt into an enriched receipt."""

    @abstractmethod
    async def enrich(self, receipt: ParsedReceipt) -> EnrichedReceipt:
        ...


class RuleBasedEnricher(Enricher):
    """Deterministic enrichment from the static rule tables."""

    def __init__(self, rules: EnrichmentRules | None = None) -> None:
        self.rules = rules or EnrichmentRules()

    async def enrich(self, receipt: ParsedReceipt) -> EnrichedReceipt:
        return rule_based_enrichment(receipt, self.rules)


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _tags(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(tag).strip() for tag in value if str(tag).strip())


def _score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class LLMEnricher(Enricher):
    """AI-backed enrichment that falls back to rules per unit of work.

    Store enhancement, each item batch, and insight generation are separate
    units. A failed unit is replaced by its rule-based counterpart while the
    units that succeeded keep their AI values.
    """

    def __init__(
        self,
        client: ChatCompletionClient,
        rules: EnrichmentRules | None = None,
    ) -> None:
        self.client = client
        self.rules = rules or EnrichmentRules()

    async def enrich(self, receipt: ParsedReceipt) -> EnrichedReceipt:
        store, store_from_ai = await self._enhance_store(receipt)
        items, items_from_ai = await self._categorize_items(receipt.items)
        insights, insights_from_ai = await self._generate_insights(receipt, store, items)

        outcomes = [store_from_ai, insights_from_ai, *items_from_ai]
        if all(outcomes):
            source = "ai"
        elif any(outcomes):
            source = "mixed"
        else:
            source = "rules"

        return EnrichedReceipt(
            receipt=receipt,
            store=store,
            items=items,
            insights=insights,
            quality=quality_metrics(receipt, store, len(items), self.rules, source=source),
        )

    async def _enhance_store(self, receipt: ParsedReceipt) -> tuple[StoreProfile, bool]:
        fallback = normalize_store(receipt.merchant, self.rules)
        prompt = STORE_PROMPT.format(
            name=receipt.merchant,
            address=receipt.address,
            phone=receipt.phone,
            website=receipt.website,
        )
        try:
            data = await self.client.complete_json(prompt)
            if not isinstance(data, Mapping):
                raise EnrichmentUnavailable("store answer is not a JSON object")
        except Exception as exc:
            logger.warning("AI store enhancement failed, using rules: %s", exc)
            return fallback, False

        normalized = _text(data.get("normalized_name")) or fallback.normalized_name
        return (
            StoreProfile(
                name=receipt.merchant,
                normalized_name=normalized,
                chain=_text(data.get("chain")) or fallback.chain,
                store_type=_text(data.get("store_type")) or fallback.store_type,
                price_range=_text(data.get("price_range")) or fallback.price_range,
            ),
            True,
        )

    async def _categorize_items(
        self, items: Sequence[LineItem]
    ) -> tuple[tuple[EnrichedItem, ...], List[bool]]:
        if not items:
            return (), []

        size = self.rules.batch_size
        batches = [items[start : start + size] for start in range(0, len(items), size)]
        results = await asyncio.gather(*(self._categorize_batch(batch) for batch in batches))

        enriched: List[EnrichedItem] = []
        outcomes: List[bool] = []
        for batch_items, from_ai in results:
            enriched.extend(batch_items)
            outcomes.append(from_ai)
        return tuple(enriched), outcomes

    async def _categorize_batch(self, batch: Sequence[LineItem]) -> tuple[List[EnrichedItem], bool]:
        fallback = [enrich_item(item, self.rules) for item in batch]
        listing = "\n".join(f"{item.name} - ${item.line_total}" for item in batch)
        try:
            data = await self.client.complete_json(ITEMS_PROMPT.format(items=listing))
            if not isinstance(data, list):
                raise EnrichmentUnavailable("item answer is not a JSON array")
        except Exception as exc:
            logger.warning("AI item categorization failed for batch of %d, using rules: %s", len(batch), exc)
            return fallback, False

        merged: List[EnrichedItem] = []
        for index, rule_item in enumerate(fallback):
            answer = data[index] if index < len(data) else None
            merged.append(self._merge_item(rule_item, answer))
        return merged, True

    def _merge_item(self, rule_item: EnrichedItem, answer: Any) -> EnrichedItem:
        if not isinstance(answer, Mapping):
            return rule_item

        nutrition = _text(answer.get("nutrition_category"))
        if nutrition not in NUTRITION_CATEGORIES:
            nutrition = rule_item.nutrition_category

        return replace(
            rule_item,
            category=(_text(answer.get("category")) or rule_item.category).lower(),
            subcategory=_text(answer.get("subcategory")),
            brand=_text(answer.get("brand")),
            dietary_tags=_tags(answer.get("dietary_tags")),
            nutrition_category=nutrition,
        )

    async def _generate_insights(
        self,
        receipt: ParsedReceipt,
        store: StoreProfile,
        items: Sequence[EnrichedItem],
    ) -> tuple[Insights, bool]:
        fallback = derive_insights(receipt.total, len(items), self.rules)
        summary = ", ".join(f"{item.name} ({item.quantity:g}x ${item.line_total})" for item in items[:20])
        prompt = INSIGHTS_PROMPT.format(
            store=store.name,
            total=receipt.total or 0,
            items=summary,
            date=receipt.date,
            time=receipt.time,
        )
        try:
            data = await self.client.complete_json(prompt)
            if not isinstance(data, Mapping):
                raise EnrichmentUnavailable("insights answer is not a JSON object")
        except Exception as exc:
            logger.warning("AI insights generation failed, using rules: %s", exc)
            return fallback, False

        people = _score(data.get("estimated_people"))
        return (
            Insights(
                shopping_category=_text(data.get("shopping_category")) or fallback.shopping_category,
                estimated_people=max(1, people) if people is not None else fallback.estimated_people,
                budget_category=_text(data.get("budget_category")) or fallback.budget_category,
                meal_type=_text(data.get("meal_type")),
                cuisine_type=_text(data.get("cuisine_type")),
                dietary_flags=_tags(data.get("dietary_flags")),
                health_score=_score(data.get("health_score")),
                sustainability_score=_score(data.get("sustainability_score")),
                shopping_pattern=_text(data.get("shopping_pattern")),
            ),
            True,
        )


def create_enricher(
    config: AIConfig | None = None,
    rules: EnrichmentRules | None = None,
    client: ChatCompletionClient | None = None,
) -> Enricher:
    """Pick the enrichment strategy once, based on the AI settings."""

    config = config or AIConfig.from_env()
    if client is None and not config.enabled:
        logger.info("AI enrichment disabled, using rule-based enrichment")
        return RuleBasedEnricher(rules)
    logger.info("AI enrichment enabled with model %s", config.model)
    return LLMEnricher(client or ChatCompletionClient(config), rules)


async def enrich_receipts(
    receipts: Iterable[ParsedReceipt], enricher: Enricher | None = None
) -> List[EnrichedReceipt]:
    """Enrich many receipts concurrently with a single strategy."""

    enricher = enricher or create_enricher()
    return list(await asyncio.gather(*(enricher.enrich(receipt) for receipt in receipts)))
