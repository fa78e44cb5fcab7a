from __future__ import annotations

import itertools

from menu_allergens.domain.models import ProductCandidate
from menu_allergens.domain.normalize import name_key, normalize_products


def _ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


def test_first_candidate_wins_without_merging_codes() -> None:
    candidates = [
        ProductCandidate("Pizza Margherita", ("g", "a"), ("1",)),
        ProductCandidate("  pizza margherita ", ("c",), ("2",)),
        ProductCandidate("Salat", (), ()),
    ]
    products = normalize_products(candidates, id_factory=_ids())

    assert [(p.id, p.name) for p in products] == [("id-1", "Pizza Margherita"), ("id-2", "Salat")]
    assert products[0].allergens == ("a", "g")
    assert products[0].additives == ("1",)


def test_blank_names_are_dropped_and_codes_deduped() -> None:
    products = normalize_products(
        [ProductCandidate("   ", ("a",)), ProductCandidate(" Suppe ", ("i", "i", "a"), ("2", "2"))]
    )
    assert len(products) == 1
    assert products[0].name == "Suppe"
    assert products[0].allergens == ("a", "i")
    assert products[0].additives == ("2",)
    assert products[0].id


def test_normalization_is_idempotent() -> None:
    once = normalize_products(
        [ProductCandidate("Käsespätzle", ("g", "c", "a")), ProductCandidate("KÄSESPÄTZLE", ("g",)), ProductCandidate("Tee")]
    )
    twice = normalize_products([p.as_candidate() for p in once])
    assert [(p.name, p.allergens, p.additives) for p in twice] == [(p.name, p.allergens, p.additives) for p in once]


def test_name_key_lowercases_without_case_folding() -> None:
    assert name_key(" Käsespätzle ") == name_key("KÄSESPÄTZLE")
    assert name_key("Straße") != name_key("STRASSE")


def test_sharp_s_and_ss_spellings_stay_distinct_products() -> None:
    products = normalize_products([ProductCandidate("Straße"), ProductCandidate("STRASSE"), ProductCandidate("straße")])
    assert [p.name for p in products] == ["Straße", "STRASSE"]
