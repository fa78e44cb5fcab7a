from __future__ import annotations

from typing import Any, Dict

from ..domain.codes import ADDITIVE_KEYS, ALLERGEN_KEYS

MAX_PRODUCTS = 300
MAX_WARNINGS = 50
NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 180
REASONING_MIN_LENGTH = 1
REASONING_MAX_LENGTH = 800


def _code_array(keys) -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string", "enum": list(keys)}}


def menu_parse_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "required": ["products", "warnings"],
        "properties": {
            "products": {
                "type": "array",
                "maxItems": MAX_PRODUCTS,
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "required": ["name", "allergens", "additives"],
                    "properties": {
                        "name": {"type": "string", "minLength": NAME_MIN_LENGTH, "maxLength": NAME_MAX_LENGTH},
                        "allergens": _code_array(ALLERGEN_KEYS),
                        "additives": _code_array(ADDITIVE_KEYS),
                    },
                },
            },
            "warnings": {
                "type": "array",
                "maxItems": MAX_WARNINGS,
                "items": {"type": "string"},
            },
        },
    }


def allergen_suggestion_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "required": ["allergens", "additives", "reasoning"],
        "properties": {
            "allergens": _code_array(ALLERGEN_KEYS),
            "additives": _code_array(ADDITIVE_KEYS),
            "reasoning": {"type": "string", "minLength": REASONING_MIN_LENGTH, "maxLength": REASONING_MAX_LENGTH},
        },
    }


def response_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Chat Completions ``response_format`` for strict structured output."""
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": schema},
    }


MENU_PARSE_RESPONSE_FORMAT = response_format("menu_parse_result", menu_parse_schema())
ALLERGEN_SUGGESTION_RESPONSE_FORMAT = response_format("allergen_suggestion", allergen_suggestion_schema())
