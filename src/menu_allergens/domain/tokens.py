"""Resolution of free-form allergen/additive tokens against the code registry.

Every place that turns user-entered text into a code goes through
:func:`resolve_allergen_token` / :func:`resolve_additive_token`, which apply
the same two steps in order:

1. direct code match: the token reduces to a single letter (allergens) or to
   a number (additives) that is a known key;
2. label match: the trimmed, lower-cased token equals a registry label.

Anything else is unresolved and reported back as an invalid token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .codes import (
    additive_key_for_label,
    allergen_key_for_label,
    is_additive_key,
    is_allergen_key,
)

_SPLIT_RE = re.compile(r"[;,|]")
_NON_LETTER_RE = re.compile(r"[^a-z]")
_NON_DIGIT_RE = re.compile(r"[^0-9]")


@dataclass(frozen=True)
class TokenParseResult:
    keys: Tuple[str, ...]
    invalid_tokens: Tuple[str, ...]


def _normalize(token: str) -> str:
    return (token or "").strip().lower()


def resolve_allergen_token(token: str) -> Optional[str]:
    normalized = _normalize(token)
    if not normalized:
        return None
    letters = _NON_LETTER_RE.sub("", normalized)
    if len(letters) == 1 and is_allergen_key(letters):
        return letters
    return allergen_key_for_label(normalized)


def resolve_additive_token(token: str) -> Optional[str]:
    normalized = _normalize(token)
    if not normalized:
        return None
    digits = _NON_DIGIT_RE.sub("", normalized)
    if digits:
        numeric = digits.lstrip("0") or "0"
        if is_additive_key(numeric):
            return numeric
    return additive_key_for_label(normalized)


def split_token_list(value: str) -> List[str]:
    """Split a cell like ``"A, C|G"`` into trimmed, non-empty tokens."""
    return [t.strip() for t in _SPLIT_RE.split(value or "") if t.strip()]


def _unique(values: List[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _parse(value: str, resolver: Callable[[str], Optional[str]]) -> TokenParseResult:
    keys: List[str] = []
    invalid: List[str] = []
    for token in split_token_list(value):
        resolved = resolver(token)
        if resolved:
            keys.append(resolved)
        else:
            invalid.append(token)
    return TokenParseResult(keys=_unique(keys), invalid_tokens=_unique(invalid))


def parse_allergen_input(value: str) -> TokenParseResult:
    return _parse(value, resolve_allergen_token)


def parse_additive_input(value: str) -> TokenParseResult:
    return _parse(value, resolve_additive_token)
