from __future__ import annotations

import pytest

from menu_allergens.config import Settings
from menu_allergens.domain.models import ExtractionContract, ProductCandidate


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="sk-test", openai_model="gpt-test", parse_rate_limit=2, suggest_rate_limit=2)


@pytest.fixture
def menu_contract() -> ExtractionContract:
    return ExtractionContract(
        products=(
            ProductCandidate("Bratwurst", ("j",), ("2", "8")),
            ProductCandidate("bratwurst ", ("a",), ()),
            ProductCandidate("Apfelstrudel", ("g", "a", "c"), ()),
        ),
        warnings=("Preise wurden ignoriert.",),
    )
