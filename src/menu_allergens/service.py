from __future__ import annotations

from typing import Any, Optional

from .acquisition.acquire import acquire_text
from .acquisition.artifacts import UploadedArtifact
from .acquisition.readers import DocumentReader, ImageReader, PdfTextReader, build_image_reader
from .config import Settings, load_settings
from .domain.models import AllergenSuggestion, ImportResult
from .domain.normalize import normalize_products
from .domain.warnings import SOURCE_EXTRACTION, WarningLog
from .extraction.client import AllergenSuggester, MenuExtractor, build_openai_client
from .imports.table_parser import TableParseResult, parse_csv_text, parse_pasted_text
from .logging import get_logger

LOG = get_logger("service")


class MenuImportService:
    """Entry point tying the import paths together.

    Collaborators can be injected; anything missing is built on first use
    from ``settings``. The OpenAI client is only created when an AI-backed
    operation runs, so the deterministic imports work without a key.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[Any] = None,
        extractor: Optional[MenuExtractor] = None,
        suggester: Optional[AllergenSuggester] = None,
        image_reader: Optional[ImageReader] = None,
        document_reader: Optional[DocumentReader] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self._client = client
        self._extractor = extractor
        self._suggester = suggester
        self._image_reader = image_reader
        self._document_reader = document_reader

    # ---- lazily built collaborators
    def _openai_client(self) -> Any:
        if self._client is None:
            self._client = build_openai_client(self.settings)
        return self._client

    @property
    def extractor(self) -> MenuExtractor:
        if self._extractor is None:
            self._extractor = MenuExtractor(self._openai_client(), self.settings.openai_model)
        return self._extractor

    @property
    def suggester(self) -> AllergenSuggester:
        if self._suggester is None:
            self._suggester = AllergenSuggester(self._openai_client(), self.settings.openai_model)
        return self._suggester

    @property
    def image_reader(self) -> ImageReader:
        if self._image_reader is None:
            kind = self.settings.image_reader
            client = self._openai_client() if kind == "vision" else None
            self._image_reader = build_image_reader(
                kind,
                lang=self.settings.tesseract_lang,
                client=client,
                model=self.settings.openai_model,
            )
        return self._image_reader

    @property
    def document_reader(self) -> DocumentReader:
        if self._document_reader is None:
            self._document_reader = PdfTextReader(lang=self.settings.tesseract_lang)
        return self._document_reader

    # ---- operations
    def parse_menu(self, text: Optional[str] = None, artifact: Optional[UploadedArtifact] = None) -> ImportResult:
        """Free text and/or an upload -> unique products plus warnings."""
        # Fail on a missing key before any OCR work is spent.
        extractor = self.extractor
        acquired = acquire_text(
            text,
            artifact,
            image_reader=self.image_reader if artifact is not None else None,
            document_reader=self.document_reader if artifact is not None else None,
            max_length=self.settings.max_text_length,
        )
        contract = extractor.extract(acquired.text)

        warnings = WarningLog(acquired.warnings)
        warnings.extend_messages(contract.warnings, source=SOURCE_EXTRACTION)
        products = normalize_products(contract.products)
        LOG.info(
            "parse-menu: %d candidate(s) -> %d product(s), %d warning(s)",
            len(contract.products),
            len(products),
            len(warnings),
        )
        return ImportResult(products=products, warnings=warnings.entries)

    def suggest_allergens(self, product_name: str) -> AllergenSuggestion:
        return self.suggester.suggest(product_name)

    def import_csv(self, text: str) -> ImportResult:
        return self._finish(parse_csv_text(text), "csv")

    def import_paste(self, text: str) -> ImportResult:
        return self._finish(parse_pasted_text(text), "paste")

    def _finish(self, parsed: TableParseResult, label: str) -> ImportResult:
        products = normalize_products(parsed.candidates)
        LOG.info("%s import: %d product(s), %d warning(s)", label, len(products), len(parsed.warnings))
        return ImportResult(products=products, warnings=list(parsed.warnings))
