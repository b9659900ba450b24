"""Data models for receipts as they move through the pipeline stages."""
from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any, Tuple

ITEM_TYPE_CODES = ("PROD", "DAIRY", "BAKERY", "MEAT", "PANTRY", "FEE", "MISC")


@dataclass(frozen=True)
class LineItem:
    """One purchased entry as reported by the OCR provider."""

    name: str
    line_total: float
    quantity: float = 1.0
    unit_price: Optional[float] = None
    confidence: float = 1.0
    original_name: Optional[str] = None
    unit: Optional[str] = None


@dataclass(frozen=True)
class Location:
    """Normalized address parts supplied by the provider."""

    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None


@dataclass(frozen=True)
class ParsedReceipt:
    """Canonical receipt produced by the response parser."""

    success: bool = True
    error: Optional[str] = None
    merchant: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    datetime_iso: Optional[str] = None
    total: Optional[float] = None
    tax: Optional[float] = None
    subtotal: Optional[float] = None
    currency: Optional[str] = None
    payment_method: Optional[str] = None
    store_id: Optional[str] = None
    website: Optional[str] = None
    location: Location = field(default_factory=Location)
    items: Tuple[LineItem, ...] = ()
    confidence: float = 0.0
    field_confidences: Tuple[float, ...] = ()
    raw_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain dictionary representation for persistence."""

        return asdict(self)


@dataclass(frozen=True)
class ValidationResult:
    """Verdict of the validator; failures are data, not exceptions."""

    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StoreProfile:
    """Store identity after normalization."""

    name: Optional[str]
    normalized_name: str
    chain: Optional[str] = None
    store_type: Optional[str] = None
    price_range: Optional[str] = None


@dataclass(frozen=True)
class EnrichedItem:
    """A line item with categorization attached."""

    name: str
    line_total: float
    quantity: float = 1.0
    unit_price: Optional[float] = None
    confidence: float = 1.0
    unit: Optional[str] = None
    category: str = "other"
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    dietary_tags: Tuple[str, ...] = ()
    nutrition_category: str = "neutral"


@dataclass(frozen=True)
class Insights:
    """Shopping insights derived from the whole receipt."""

    shopping_category: Optional[str] = None
    estimated_people: int = 1
    budget_category: Optional[str] = None
    meal_type: Optional[str] = None
    cuisine_type: Optional[str] = None
    dietary_flags: Tuple[str, ...] = ()
    health_score: Optional[int] = None
    sustainability_score: Optional[int] = None
    shopping_pattern: Optional[str] = None


@dataclass(frozen=True)
class QualityMetrics:
    """Completeness and confidence scores, both as integer percentages."""

    data_completeness: int
    overall_confidence: int
    ocr_confidence: float
    source: str = "rules"


@dataclass(frozen=True)
class EnrichedReceipt:
    """Parsed receipt elevated with store, item, and insight enrichment."""

    receipt: ParsedReceipt
    store: StoreProfile
    items: Tuple[EnrichedItem, ...]
    insights: Insights
    quality: QualityMetrics

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain dictionary representation for persistence."""

        return asdict(self)


@dataclass(frozen=True)
class MappedItem:
    """One item row in the fixed downstream schema."""

    item_name: str
    item_type_code: str
    item_price: float
    quantity: float
    unit_price: Optional[float]
    category: str
    unit: str = "each"
    confidence: float = 1.0


MAPPED_RECORD_FIELDS = (
    "brand_name",
    "street_number",
    "street_name",
    "city",
    "state",
    "zipcode",
    "date_field",
    "time_field",
    "tax_field_1",
    "tax_field_2",
    "total_price_field",
    "confidence_score",
)

MAPPED_ITEM_FIELDS = (
    "item_name",
    "item_type_code",
    "item_price",
    "quantity",
    "unit_price",
    "category",
)


@dataclass(frozen=True)
class MappedRecord:
    """Receipt header and items in the fixed flat schema."""

    brand_name: str
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    date_field: Optional[str] = None
    time_field: Optional[str] = None
    tax_field_1: float = 0.0
    tax_field_2: float = 0.0
    total_price_field: float = 0.0
    confidence_score: float = 0.0
    items: Tuple[MappedItem, ...] = ()
    original_merchant: Optional[str] = None
    phone: Optional[str] = None
    raw_address: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Return only the fixed schema columns, items included."""

        row: Dict[str, Any] = {name: getattr(self, name) for name in MAPPED_RECORD_FIELDS}
        row["items"] = [
            {name: getattr(item, name) for name in MAPPED_ITEM_FIELDS} for item in self.items
        ]
        return row
