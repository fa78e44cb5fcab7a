from __future__ import annotations

import pytest

from menu_allergens.domain.codes import (
    ADDITIVE_KEYS,
    ALLERGEN_KEYS,
    all_allergen_codes_label,
    allergen_prompt_list,
    format_additive_values,
    format_allergen_values,
    has_missing_declarations,
    sort_additive_keys,
    sort_allergen_keys,
    vocabulary,
)
from menu_allergens.domain.tokens import (
    parse_additive_input,
    parse_allergen_input,
    resolve_additive_token,
    resolve_allergen_token,
    split_token_list,
)


def test_registry_sizes() -> None:
    assert len(ALLERGEN_KEYS) == 14
    assert len(ADDITIVE_KEYS) == 10
    assert ALLERGEN_KEYS[0] == "a" and ALLERGEN_KEYS[-1] == "n"
    assert ADDITIVE_KEYS[-1] == "10"


@pytest.mark.parametrize(
    "token, expected",
    [
        ("A", "a"),
        (" g ", "g"),
        ("(c)", "c"),
        ("Eier", "c"),
        ("milch/laktose", "g"),
        ("Sesam", None),
        ("X", None),
        ("", None),
    ],
)
def test_resolve_allergen_token(token, expected) -> None:
    assert resolve_allergen_token(token) == expected


@pytest.mark.parametrize(
    "token, expected",
    [
        ("2", "2"),
        ("02", "2"),
        ("10", "10"),
        ("(4)", "4"),
        ("Farbstoff", "1"),
        ("phosphat", "8"),
        ("11", None),
        ("0", None),
        ("E150", None),
        ("\u0662", None),
        ("0" * 20 + "3", "3"),
        ("9" * 5000, None),
    ],
)
def test_resolve_additive_token(token, expected) -> None:
    assert resolve_additive_token(token) == expected


def test_split_token_list_accepts_all_separators() -> None:
    assert split_token_list(" A, C|G ;; ") == ["A", "C", "G"]
    assert split_token_list("") == []


def test_parse_input_dedupes_in_first_seen_order_and_reports_invalid() -> None:
    res = parse_allergen_input("G, a, g, X, Eier, X")
    assert res.keys == ("g", "a", "c")
    assert res.invalid_tokens == ("X",)

    res = parse_additive_input("4;1;04;zz")
    assert res.keys == ("4", "1")
    assert res.invalid_tokens == ("zz",)


def test_sort_helpers_use_registry_order_and_drop_unknown() -> None:
    assert sort_allergen_keys(["g", "a", "x", "a"]) == ("a", "g")
    assert sort_additive_keys(["10", "2", "1"]) == ("1", "2", "10")


def test_formatting_modes() -> None:
    assert format_allergen_values(["a", "g"]) == "A, G"
    assert format_allergen_values(["a", "g"], "cleartext") == "Glutenhaltiges Getreide, Milch/Laktose"
    assert format_additive_values(["1", "10"], "codes") == "1, 10"
    assert format_additive_values(["9"], "cleartext") == "Süßungsmittel"
    with pytest.raises(ValueError):
        format_allergen_values(["a"], "html")


def test_prompt_helpers_and_vocabulary() -> None:
    assert all_allergen_codes_label().startswith("A, B, C")
    assert allergen_prompt_list().splitlines()[0] == "A: Glutenhaltiges Getreide"
    vocab = vocabulary()
    assert vocab["allergens"][6] == {"key": "g", "code": "G", "label": "Milch/Laktose"}
    assert [a["key"] for a in vocab["additives"]] == list(ADDITIVE_KEYS)


def test_has_missing_declarations() -> None:
    assert has_missing_declarations([], [])
    assert not has_missing_declarations(["a"], [])
