"""Static rule tables and AI settings injected into the pipeline stages.

Every table is an ordered tuple. Keyword classifiers scan their rules in
order and stop at the first match, so reordering a table changes behavior.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from receiptflow.core.utils import get_config_value, load_env_file

DEFAULT_SECRET_FILE = Path("secrets") / "openai.env"

# Fallback confidences for payloads carrying no per-field confidence at all.
# They differ per stage and are intentionally not unified.
DEFAULT_PARSE_CONFIDENCE = 0.9
DEFAULT_ENRICH_CONFIDENCE = 0.8
DEFAULT_MAPPING_CONFIDENCE = 0.85

LOW_CONFIDENCE_THRESHOLD = 0.5

GROCERY_TOTAL_THRESHOLD = 50
BUDGET_TOTAL_LIMIT = 25
MODERATE_TOTAL_LIMIT = 100
ITEMS_PER_PERSON = 15
MAX_OVERALL_BASE = 95
COMPLETENESS_BONUS = 10

ITEM_BATCH_SIZE = 10


@dataclass(frozen=True)
class ChainProfile:
    """Known retail chain matched by a lower-case name fragment."""

    pattern: str
    chain: str
    store_type: str
    price_range: str


CHAIN_TABLE: Tuple[ChainProfile, ...] = (
    ChainProfile("trader joe", "Trader Joe's", "grocery", "mid-range"),
    ChainProfile("whole foods", "Whole Foods Market", "grocery", "premium"),
    ChainProfile("walmart", "Walmart", "department", "budget"),
    ChainProfile("target", "Target", "department", "mid-range"),
    ChainProfile("kroger", "Kroger", "grocery", "mid-range"),
    ChainProfile("safeway", "Safeway", "grocery", "mid-range"),
)

CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("produce", ("banana", "apple", "orange", "lettuce", "tomato", "onion", "potato", "carrot", "broccoli", "spinach")),
    ("dairy", ("milk", "cheese", "yogurt", "butter", "cream", "eggs")),
    ("meat", ("chicken", "beef", "pork", "fish", "salmon", "turkey", "bacon")),
    ("bakery", ("bread", "bagel", "muffin", "croissant", "cake", "cookie")),
    ("beverages", ("water", "soda", "juice", "coffee", "tea", "beer", "wine")),
    ("pantry", ("rice", "pasta", "cereal", "beans", "oil", "sauce", "spice")),
    ("frozen", ("frozen", "ice cream", "pizza")),
    ("snacks", ("chips", "crackers", "nuts", "candy", "chocolate")),
)

HEALTHY_CATEGORIES = ("produce", "dairy")

BRAND_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("trader joes", "Trader Joes"),
    ("trader joe's", "Trader Joes"),
    ("traderjoes", "Trader Joes"),
)

TYPE_CODE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("PROD", ("produce", "fruit", "vegetable", "apple", "banana", "berries", "broccoli", "spinach", "onion")),
    ("DAIRY", ("milk", "yogurt", "cheese", "dairy")),
    ("BAKERY", ("bread", "bakery")),
    ("MEAT", ("meat", "beef", "chicken", "fish")),
    ("PANTRY", ("beans", "oil", "pasta", "rice")),
    ("FEE", ("bottle", "deposit", "fee")),
)

MAPPING_CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("produce", ("apple", "berries", "broccoli", "spinach", "onion", "potato", "lime", "avocado", "cauliflower")),
    ("dairy", ("milk",)),
    ("pantry", ("beans", "oil")),
    ("prepared_food", ("sushi", "wrap", "curry")),
)


@dataclass(frozen=True)
class EnrichmentRules:
    """Tables and thresholds used by the rule-based enrichment path."""

    chains: Tuple[ChainProfile, ...] = CHAIN_TABLE
    categories: Tuple[Tuple[str, Tuple[str, ...]], ...] = CATEGORY_RULES
    healthy_categories: Tuple[str, ...] = HEALTHY_CATEGORIES
    default_category: str = "other"
    default_store_type: str = "grocery"
    unknown_store_name: str = "Unknown Store"
    grocery_total_threshold: float = GROCERY_TOTAL_THRESHOLD
    budget_total_limit: float = BUDGET_TOTAL_LIMIT
    moderate_total_limit: float = MODERATE_TOTAL_LIMIT
    items_per_person: int = ITEMS_PER_PERSON
    default_confidence: float = DEFAULT_ENRICH_CONFIDENCE
    batch_size: int = ITEM_BATCH_SIZE


@dataclass(frozen=True)
class MappingRules:
    """Tables used by the deterministic field mapper."""

    brand_aliases: Tuple[Tuple[str, str], ...] = BRAND_ALIASES
    type_codes: Tuple[Tuple[str, Tuple[str, ...]], ...] = TYPE_CODE_RULES
    default_type_code: str = "MISC"
    categories: Tuple[Tuple[str, Tuple[str, ...]], ...] = MAPPING_CATEGORY_RULES
    default_category: str = "other"
    default_confidence: float = DEFAULT_MAPPING_CONFIDENCE
    tax_slots: int = 2


@dataclass(frozen=True)
class AIConfig:
    """Settings for the OpenAI-compatible chat completions endpoint."""

    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com/v1"
    timeout: float = 30.0
    disabled: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) and not self.disabled

    @classmethod
    def from_env(cls, secret_file: Path | None = None) -> "AIConfig":
        """Build settings from the environment and an optional secrets file.

        ``AI_SECRET_FILE`` points at a dotenv-style file whose values only fill
        variables not already set in the process environment.
        """

        secret_location = os.getenv("AI_SECRET_FILE")
        if secret_file is None:
            secret_file = Path(secret_location).expanduser() if secret_location else DEFAULT_SECRET_FILE
        load_env_file(secret_file)

        try:
            timeout = float(get_config_value("AI_TIMEOUT", "30"))
        except ValueError:
            timeout = 30.0

        return cls(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("OPENAI_MODEL", cls.model),
            base_url=os.getenv("OPENAI_BASE_URL", cls.base_url),
            timeout=timeout,
            disabled=get_config_value("AI_ENRICHMENT_DISABLED", "0") == "1",
        )
