from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class ProductCandidate:
    """Product as produced by one ingestion path, before deduplication."""

    name: str
    allergens: Tuple[str, ...] = ()
    additives: Tuple[str, ...] = ()


def new_product_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class CanonicalProduct:
    id: str
    name: str
    allergens: Tuple[str, ...]
    additives: Tuple[str, ...]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "allergens": list(self.allergens),
            "additives": list(self.additives),
        }

    def as_candidate(self) -> ProductCandidate:
        return ProductCandidate(name=self.name, allergens=self.allergens, additives=self.additives)


@dataclass(frozen=True)
class ImportWarning:
    message: str
    source: str = "import"
    source_row: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "source": self.source, "source_row": self.source_row}


@dataclass
class ImportResult:
    """Response envelope ``{products, warnings}`` shared by every import path."""

    products: List[CanonicalProduct] = field(default_factory=list)
    warnings: List[ImportWarning] = field(default_factory=list)

    def warning_messages(self) -> List[str]:
        return [w.message for w in self.warnings]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "products": [p.as_dict() for p in self.products],
            "warnings": self.warning_messages(),
        }


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float  # milliseconds on the limiter's clock


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_ms: int = 0


@dataclass(frozen=True)
class ExtractionContract:
    """Validated output of the menu extraction call."""

    products: Tuple[ProductCandidate, ...]
    warnings: Tuple[str, ...]


@dataclass(frozen=True)
class AllergenSuggestion:
    allergens: Tuple[str, ...]
    additives: Tuple[str, ...]
    reasoning: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "allergens": list(self.allergens),
            "additives": list(self.additives),
            "reasoning": self.reasoning,
        }
