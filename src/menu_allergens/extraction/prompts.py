"""German instructions for the structured extraction calls."""

from __future__ import annotations

from ..domain.codes import (
    additive_prompt_list,
    all_additive_codes_label,
    all_allergen_codes_label,
    allergen_prompt_list,
)

EMPTY_INPUT_PLACEHOLDER = "Kein zusätzlicher Text übergeben."


def menu_system_prompt() -> str:
    return f"""
Analysiere die Speisekarte und gib eine strukturierte Produktliste zurück.
Regeln:
- Extrahiere nur tatsächliche Speisen/Getränke als Produkte.
- Ignoriere Überschriften, Preise, dekorative Texte, Kategorienamen.
- Verwende nur diese Allergen-Keys: {all_allergen_codes_label()} (im JSON als Kleinbuchstaben a-n).
- Verwende nur diese Zusatzstoff-Keys: {all_additive_codes_label()}
- Wenn unsicher: lieber konservative, plausible Vorschläge.

Allergene (A-N):
{allergen_prompt_list()}

Zusatzstoffe (1-10):
{additive_prompt_list()}
"""


def menu_user_prompt(text: str) -> str:
    return f"""
Eingabetext:
{text.strip() or EMPTY_INPUT_PLACEHOLDER}
"""


def suggestion_system_prompt() -> str:
    return f"""
Du bist ein Assistent für Gastronomie-Allergenkennzeichnung nach EU LMIV.
Antworte AUSSCHLIESSLICH als JSON im vorgegebenen Schema.
Nutze nur diese Allergen-Keys: {all_allergen_codes_label()} (im JSON als Kleinbuchstaben a-n).
Nutze nur diese Zusatzstoff-Keys: {all_additive_codes_label()}.
Wenn unsicher, gib lieber einen vorsichtigen Hinweis in reasoning und schlage wahrscheinliche Treffer vor.
"""


def suggestion_user_prompt(product_name: str) -> str:
    return f"""
Produktname: {product_name}

Allergene (A-N):
{allergen_prompt_list()}

Zusatzstoffe (1-10):
{additive_prompt_list()}

Gib wahrscheinliche Allergene und Zusatzstoffe für das Produkt zurück.
"""
