"""Schema-constrained extraction of products and allergen suggestions."""

from .client import AllergenSuggester, MenuExtractor, build_openai_client
from .validator import ContractCheck, Violation, validate_menu_payload, validate_suggestion_payload

__all__ = [
    "AllergenSuggester",
    "MenuExtractor",
    "build_openai_client",
    "ContractCheck",
    "Violation",
    "validate_menu_payload",
    "validate_suggestion_payload",
]
