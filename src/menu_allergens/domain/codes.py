"""Closed vocabulary of allergen and additive codes (LMIV labelling)."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

# Canonical keys in display order. Allergen keys are lower-case letters,
# additive keys are decimal strings without leading zeros.
ALLERGEN_KEYS: Tuple[str, ...] = ("a", "b", "c", "d", "e", "f", "g", "h", "i", "j", "k", "l", "m", "n")
ADDITIVE_KEYS: Tuple[str, ...] = ("1", "2", "3", "4", "5", "6", "7", "8", "9", "10")

ALLERGENS: Dict[str, str] = {
    "a": "Glutenhaltiges Getreide",
    "b": "Krebstiere",
    "c": "Eier",
    "d": "Fisch",
    "e": "Erdnüsse",
    "f": "Soja",
    "g": "Milch/Laktose",
    "h": "Schalenfrüchte",
    "i": "Sellerie",
    "j": "Senf",
    "k": "Sesamsamen",
    "l": "Schwefeldioxid/Sulfite",
    "m": "Lupinen",
    "n": "Weichtiere",
}

ADDITIVES: Dict[str, str] = {
    "1": "Farbstoff",
    "2": "Konservierungsstoff",
    "3": "Antioxidationsmittel",
    "4": "Geschmacksverstärker",
    "5": "Geschwefelt",
    "6": "Geschwärzt",
    "7": "Gewachst",
    "8": "Phosphat",
    "9": "Süßungsmittel",
    "10": "Phenylalaninquelle",
}

EXPORT_MODES: Tuple[str, ...] = ("codes", "cleartext")

_ALLERGEN_ORDER = {key: idx for idx, key in enumerate(ALLERGEN_KEYS)}
_ADDITIVE_ORDER = {key: idx for idx, key in enumerate(ADDITIVE_KEYS)}
_ALLERGEN_BY_LABEL = {label.strip().lower(): key for key, label in ALLERGENS.items()}
_ADDITIVE_BY_LABEL = {label.strip().lower(): key for key, label in ADDITIVES.items()}


def is_allergen_key(value: object) -> bool:
    return isinstance(value, str) and value in _ALLERGEN_ORDER


def is_additive_key(value: object) -> bool:
    return isinstance(value, str) and value in _ADDITIVE_ORDER


def allergen_key_for_label(label: str) -> Optional[str]:
    return _ALLERGEN_BY_LABEL.get((label or "").strip().lower())


def additive_key_for_label(label: str) -> Optional[str]:
    return _ADDITIVE_BY_LABEL.get((label or "").strip().lower())


def allergen_label(key: str) -> str:
    return ALLERGENS.get(key, key)


def additive_label(key: str) -> str:
    return ADDITIVES.get(key, key)


def to_allergen_code(key: str) -> str:
    """Printed code for an allergen key (``"a"`` -> ``"A"``)."""
    return key.upper()


def to_additive_code(key: str) -> str:
    return key


def sort_allergen_keys(keys: Iterable[str]) -> Tuple[str, ...]:
    """Unique valid keys in registry order; unknown values are discarded."""
    return tuple(sorted({k for k in keys if k in _ALLERGEN_ORDER}, key=_ALLERGEN_ORDER.__getitem__))


def sort_additive_keys(keys: Iterable[str]) -> Tuple[str, ...]:
    return tuple(sorted({k for k in keys if k in _ADDITIVE_ORDER}, key=_ADDITIVE_ORDER.__getitem__))


def _check_mode(mode: str) -> str:
    if mode not in EXPORT_MODES:
        raise ValueError(f"mode must be one of {EXPORT_MODES}, got {mode!r}")
    return mode


def format_allergen_values(keys: Iterable[str], mode: str = "codes") -> str:
    """Join allergen keys for display, either as codes (``A, G``) or labels."""
    _check_mode(mode)
    if mode == "codes":
        return ", ".join(to_allergen_code(k) for k in keys)
    return ", ".join(allergen_label(k) for k in keys)


def format_additive_values(keys: Iterable[str], mode: str = "codes") -> str:
    _check_mode(mode)
    if mode == "codes":
        return ", ".join(to_additive_code(k) for k in keys)
    return ", ".join(additive_label(k) for k in keys)


def has_missing_declarations(allergens: Iterable[str], additives: Iterable[str]) -> bool:
    """True when a product declares neither allergens nor additives."""
    return not list(allergens) and not list(additives)


def all_allergen_codes_label() -> str:
    return ", ".join(to_allergen_code(k) for k in ALLERGEN_KEYS)


def all_additive_codes_label() -> str:
    return ", ".join(ADDITIVE_KEYS)


def allergen_prompt_list() -> str:
    """``"A: Glutenhaltiges Getreide"`` lines as embedded in extraction prompts."""
    return "\n".join(f"{to_allergen_code(k)}: {ALLERGENS[k]}" for k in ALLERGEN_KEYS)


def additive_prompt_list() -> str:
    return "\n".join(f"{k}: {ADDITIVES[k]}" for k in ADDITIVE_KEYS)


def vocabulary() -> Dict[str, List[Dict[str, str]]]:
    """Serializable view of both vocabularies."""
    return {
        "allergens": [{"key": k, "code": to_allergen_code(k), "label": ALLERGENS[k]} for k in ALLERGEN_KEYS],
        "additives": [{"key": k, "code": to_additive_code(k), "label": ADDITIVES[k]} for k in ADDITIVE_KEYS],
    }
