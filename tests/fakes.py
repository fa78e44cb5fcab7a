from __future__ import annotations

from typing import Any, List, Optional

from menu_allergens.domain.models import AllergenSuggestion, ExtractionContract
from menu_allergens.errors import ExtractionFailure, ValidationError
from menu_allergens.extraction.client import MIN_PRODUCT_NAME_LENGTH


class FakeExtractor:
    """Stands in for MenuExtractor; records the text it was given."""

    def __init__(self, contract: Optional[ExtractionContract] = None, error: Optional[Exception] = None) -> None:
        self.contract = contract or ExtractionContract(products=(), warnings=())
        self.error = error
        self.texts: List[str] = []

    def extract(self, text: str) -> ExtractionContract:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return self.contract


class FakeSuggester:
    def __init__(self, suggestion: Optional[AllergenSuggestion] = None) -> None:
        self.suggestion = suggestion or AllergenSuggestion(allergens=("a",), additives=(), reasoning="Mehl.")
        self.names: List[str] = []

    def suggest(self, product_name: str) -> AllergenSuggestion:
        self.names.append(product_name)
        if len(product_name.strip()) < MIN_PRODUCT_NAME_LENGTH:
            raise ValidationError("Bitte einen gültigen Produktnamen senden.")
        return self.suggestion


def failing_extractor() -> Any:
    return FakeExtractor(error=ExtractionFailure("menu extraction: contract violation: products[0].allergens[0]"))
