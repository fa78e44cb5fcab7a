"""Checks structured extraction output against the closed-vocabulary contract.

The validators never raise: they return a :class:`ContractCheck` holding
either the typed value or the list of violations found. Any violation means
the whole response is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from ..domain.codes import is_additive_key, is_allergen_key
from ..domain.models import AllergenSuggestion, ExtractionContract, ProductCandidate
from .schemas import (
    MAX_PRODUCTS,
    MAX_WARNINGS,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    REASONING_MAX_LENGTH,
    REASONING_MIN_LENGTH,
)

T = TypeVar("T")

MISSING_FIELD = "missing_field"
UNEXPECTED_FIELD = "unexpected_field"
WRONG_TYPE = "wrong_type"
UNKNOWN_CODE = "unknown_code"
TOO_MANY_ITEMS = "too_many_items"
BAD_LENGTH = "bad_length"


@dataclass(frozen=True)
class Violation:
    kind: str
    path: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.path}: {self.kind}" + (f" ({self.detail})" if self.detail else "")


@dataclass
class ContractCheck(Generic[T]):
    value: Optional[T] = None
    violations: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations and self.value is not None

    def summary(self, limit: int = 5) -> str:
        shown = "; ".join(str(v) for v in self.violations[:limit])
        more = len(self.violations) - limit
        return shown + (f"; +{more} more" if more > 0 else "")


def _is_str(v: Any) -> bool:
    return isinstance(v, str)


def _check_keys(obj: dict, required: Iterable[str], path: str, out: List[Violation]) -> None:
    required = tuple(required)
    for key in required:
        if key not in obj:
            out.append(Violation(MISSING_FIELD, f"{path}.{key}" if path else key))
    for key in obj:
        if key not in required:
            out.append(Violation(UNEXPECTED_FIELD, f"{path}.{key}" if path else str(key)))


def _check_codes(
    value: Any,
    path: str,
    is_valid: Callable[[Any], bool],
    out: List[Violation],
) -> Tuple[str, ...]:
    if not isinstance(value, list):
        out.append(Violation(WRONG_TYPE, path, "expected array"))
        return ()
    codes: List[str] = []
    for idx, code in enumerate(value):
        if not is_valid(code):
            out.append(Violation(UNKNOWN_CODE, f"{path}[{idx}]", repr(code)))
            continue
        codes.append(code)
    return tuple(dict.fromkeys(codes))


def _check_string(value: Any, path: str, min_len: int, max_len: int, out: List[Violation]) -> Optional[str]:
    if not _is_str(value):
        out.append(Violation(WRONG_TYPE, path, "expected string"))
        return None
    if not (min_len <= len(value) <= max_len):
        out.append(Violation(BAD_LENGTH, path, f"length {len(value)} not in {min_len}..{max_len}"))
        return None
    return value


def validate_menu_payload(payload: Any) -> ContractCheck[ExtractionContract]:
    out: List[Violation] = []
    if not isinstance(payload, dict):
        return ContractCheck(violations=[Violation(WRONG_TYPE, "$", "expected object")])
    _check_keys(payload, ("products", "warnings"), "", out)

    products: List[ProductCandidate] = []
    raw_products = payload.get("products")
    if "products" in payload:
        if not isinstance(raw_products, list):
            out.append(Violation(WRONG_TYPE, "products", "expected array"))
        else:
            if len(raw_products) > MAX_PRODUCTS:
                out.append(Violation(TOO_MANY_ITEMS, "products", f"{len(raw_products)} > {MAX_PRODUCTS}"))
            for idx, item in enumerate(raw_products):
                path = f"products[{idx}]"
                if not isinstance(item, dict):
                    out.append(Violation(WRONG_TYPE, path, "expected object"))
                    continue
                _check_keys(item, ("name", "allergens", "additives"), path, out)
                name = _check_string(item.get("name"), f"{path}.name", NAME_MIN_LENGTH, NAME_MAX_LENGTH, out) if "name" in item else None
                allergens = _check_codes(item.get("allergens"), f"{path}.allergens", is_allergen_key, out) if "allergens" in item else ()
                additives = _check_codes(item.get("additives"), f"{path}.additives", is_additive_key, out) if "additives" in item else ()
                if name is not None:
                    products.append(ProductCandidate(name=name, allergens=allergens, additives=additives))

    warnings: List[str] = []
    raw_warnings = payload.get("warnings")
    if "warnings" in payload:
        if not isinstance(raw_warnings, list):
            out.append(Violation(WRONG_TYPE, "warnings", "expected array"))
        else:
            if len(raw_warnings) > MAX_WARNINGS:
                out.append(Violation(TOO_MANY_ITEMS, "warnings", f"{len(raw_warnings)} > {MAX_WARNINGS}"))
            for idx, w in enumerate(raw_warnings):
                if not _is_str(w):
                    out.append(Violation(WRONG_TYPE, f"warnings[{idx}]", "expected string"))
                    continue
                warnings.append(w)

    if out:
        return ContractCheck(violations=out)
    return ContractCheck(value=ExtractionContract(products=tuple(products), warnings=tuple(warnings)))


def validate_suggestion_payload(payload: Any) -> ContractCheck[AllergenSuggestion]:
    out: List[Violation] = []
    if not isinstance(payload, dict):
        return ContractCheck(violations=[Violation(WRONG_TYPE, "$", "expected object")])
    _check_keys(payload, ("allergens", "additives", "reasoning"), "", out)
    allergens = _check_codes(payload.get("allergens"), "allergens", is_allergen_key, out) if "allergens" in payload else ()
    additives = _check_codes(payload.get("additives"), "additives", is_additive_key, out) if "additives" in payload else ()
    reasoning = (
        _check_string(payload.get("reasoning"), "reasoning", REASONING_MIN_LENGTH, REASONING_MAX_LENGTH, out)
        if "reasoning" in payload
        else None
    )
    if out or reasoning is None:
        return ContractCheck(violations=out)
    return ContractCheck(value=AllergenSuggestion(allergens=allergens, additives=additives, reasoning=reasoning))
