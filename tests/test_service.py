from __future__ import annotations

import pytest

from fakes import FakeExtractor, FakeSuggester, failing_extractor
from menu_allergens.acquisition.acquire import WARN_IMAGE_RECOGNIZED, WARN_TRUNCATED
from menu_allergens.acquisition.artifacts import ImageArtifact
from menu_allergens.acquisition.readers import ImageReader
from menu_allergens.config import Settings
from menu_allergens.errors import ConfigurationError, ExtractionFailure, ValidationError
from menu_allergens.service import MenuImportService


class OcrStub(ImageReader):
    def read_image(self, artifact: ImageArtifact) -> str:
        return "Bratwurst mit Senf"


def test_parse_menu_normalizes_and_orders_warnings(settings, menu_contract) -> None:
    extractor = FakeExtractor(menu_contract)
    service = MenuImportService(settings, extractor=extractor, image_reader=OcrStub())
    image = ImageArtifact(data=b"img", media_type="image/png")

    result = service.parse_menu("Speisekarte", image)

    assert extractor.texts == ["Speisekarte\n\nBratwurst mit Senf"]
    assert [(p.name, p.allergens, p.additives) for p in result.products] == [
        ("Bratwurst", ("j",), ("2", "8")),
        ("Apfelstrudel", ("a", "c", "g"), ()),
    ]
    assert result.warning_messages() == [WARN_IMAGE_RECOGNIZED, "Preise wurden ignoriert."]
    assert [w.source for w in result.warnings] == ["acquisition", "extraction"]


def test_parse_menu_truncates_once_before_extraction(menu_contract) -> None:
    settings = Settings(openai_api_key="sk", max_text_length=10)
    extractor = FakeExtractor(menu_contract)
    result = MenuImportService(settings, extractor=extractor).parse_menu("a" * 25)

    assert extractor.texts == ["a" * 10]
    assert result.warning_messages().count(WARN_TRUNCATED) == 1
    assert result.warning_messages()[0] == WARN_TRUNCATED


def test_parse_menu_propagates_extraction_failure(settings) -> None:
    service = MenuImportService(settings, extractor=failing_extractor())
    with pytest.raises(ExtractionFailure):
        service.parse_menu("Suppe")


def test_parse_menu_rejects_empty_input_before_extraction(settings) -> None:
    extractor = FakeExtractor()
    with pytest.raises(ValidationError):
        MenuImportService(settings, extractor=extractor).parse_menu("  ")
    assert extractor.texts == []


def test_ai_operations_require_api_key() -> None:
    service = MenuImportService(Settings())
    with pytest.raises(ConfigurationError):
        service.parse_menu("Suppe")
    with pytest.raises(ConfigurationError):
        service.suggest_allergens("Suppe")


def test_deterministic_imports_work_without_api_key() -> None:
    service = MenuImportService(Settings())
    result = service.import_paste("Pommes\tA\t\npommes\tC\t")
    assert [p.name for p in result.products] == ["Pommes"]
    assert result.products[0].allergens == ("a",)

    result = service.import_csv("Name,Allergene,Zusatzstoffe\nLimo,,9\n")
    assert result.as_dict()["products"][0]["additives"] == ["9"]
    assert result.as_dict()["warnings"] == []


def test_suggest_allergens_delegates(settings) -> None:
    suggester = FakeSuggester()
    service = MenuImportService(settings, suggester=suggester)
    assert service.suggest_allergens("Brot").allergens == ("a",)
    assert suggester.names == ["Brot"]
