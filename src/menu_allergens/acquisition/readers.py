"""Text recognition for uploaded menus (images via OCR or vision, PDFs via PyMuPDF)."""

from __future__ import annotations

import io
import time
from typing import Any, List, Optional

import fitz  # PyMuPDF
import pytesseract
from openai import APIConnectionError, APIStatusError, APITimeoutError
from PIL import Image, UnidentifiedImageError

from ..errors import ExtractionFailure, ValidationError
from ..logging import get_logger
from .artifacts import DocumentArtifact, ImageArtifact

LOG = get_logger("acquisition-readers")

DEFAULT_RENDER_DPI = 150
DEFAULT_MAX_PDF_PAGES = 20

VISION_INSTRUCTION = (
    "Transkribiere den Text dieser Speisekarte möglichst exakt und in Lesereihenfolge. "
    "Behalte Gerichtsnamen, Beschreibungen und vorhandene Allergen- oder Zusatzstoffkennzeichnungen bei. "
    "Gib ausschließlich den reinen Text ohne Kommentare zurück."
)


class ImageReader:
    """Turns an image upload into plain text."""

    def read_image(self, artifact: ImageArtifact) -> str:
        raise NotImplementedError


class DocumentReader:
    """Turns a document upload into plain text."""

    def read_document(self, artifact: DocumentArtifact) -> str:
        raise NotImplementedError


def _ocr_image(img: Image.Image, lang: str) -> str:
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    return pytesseract.image_to_string(img, lang=lang) or ""


class TesseractImageReader(ImageReader):
    def __init__(self, lang: str = "deu+eng") -> None:
        self.lang = lang

    def read_image(self, artifact: ImageArtifact) -> str:
        t0 = time.perf_counter()
        try:
            with Image.open(io.BytesIO(artifact.data)) as img:
                img.load()
                text = _ocr_image(img, self.lang)
        except UnidentifiedImageError as exc:
            raise ValidationError("Das Bild konnte nicht gelesen werden.") from exc
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as exc:
            LOG.error("Tesseract OCR failed for %r: %s", artifact.filename, exc)
            raise ExtractionFailure(f"OCR failed: {exc}") from exc
        LOG.info("OCR finished in %.2fs: %d characters from %r", time.perf_counter() - t0, len(text.strip()), artifact.filename)
        return text.strip()


class VisionImageReader(ImageReader):
    """Transcribes an image with one vision-capable chat completion."""

    def __init__(self, client: Any, model: str, *, max_tokens: int = 4000) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def read_image(self, artifact: ImageArtifact) -> str:
        approx_mb = round(len(artifact.data) / (1024 * 1024), 2)
        LOG.info("Calling vision transcription model='%s' (~%.2f MiB)", self.model, approx_mb)
        t0 = time.perf_counter()
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                temperature=0,
                max_tokens=self.max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": VISION_INSTRUCTION},
                            {"type": "image_url", "image_url": {"url": artifact.data_url()}},
                        ],
                    }
                ],
            )
        except (APIConnectionError, APITimeoutError) as exc:
            LOG.error("Network/timeout during vision transcription: %s", exc)
            raise ExtractionFailure(f"vision transcription transport error: {exc}") from exc
        except APIStatusError as exc:
            LOG.error("Vision transcription returned HTTP %s", getattr(exc, "status_code", "?"))
            raise ExtractionFailure(f"vision transcription HTTP error: {exc}") from exc
        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = (getattr(message, "content", None) or "").strip()
        LOG.info("Vision transcription finished in %.2fs (%d characters)", time.perf_counter() - t0, len(text))
        return text


class PdfTextReader(DocumentReader):
    """Reads the text layer of each page; scanned pages can fall back to OCR."""

    def __init__(
        self,
        *,
        ocr_fallback: bool = True,
        lang: str = "deu+eng",
        max_pages: int = DEFAULT_MAX_PDF_PAGES,
        dpi: int = DEFAULT_RENDER_DPI,
    ) -> None:
        self.ocr_fallback = ocr_fallback
        self.lang = lang
        self.max_pages = max_pages
        self.dpi = dpi

    def _ocr_page(self, page: fitz.Page) -> str:
        mat = fitz.Matrix(self.dpi / 72, self.dpi / 72)
        pix = page.get_pixmap(matrix=mat)
        with Image.open(io.BytesIO(pix.tobytes("png"))) as img:
            return _ocr_image(img, self.lang)

    def read_document(self, artifact: DocumentArtifact) -> str:
        try:
            doc = fitz.open(stream=artifact.data, filetype="pdf")
        except (RuntimeError, ValueError) as exc:
            raise ValidationError("Die PDF-Datei konnte nicht geöffnet werden.") from exc
        try:
            if doc.needs_pass:
                raise ValidationError("Passwortgeschützte PDF-Dateien werden nicht unterstützt.")
            total = doc.page_count
            if total > self.max_pages:
                LOG.warning("PDF has %d pages; reading only the first %d", total, self.max_pages)
            pages: List[str] = []
            ocr_pages = 0
            for i in range(min(total, self.max_pages)):
                page = doc.load_page(i)
                text = (page.get_text("text") or "").strip()
                if not text and self.ocr_fallback:
                    LOG.debug("Page %d has no text layer; running OCR", i + 1)
                    try:
                        text = self._ocr_page(page).strip()
                    except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as exc:
                        LOG.error("OCR fallback failed on page %d: %s", i + 1, exc)
                        raise ExtractionFailure(f"OCR failed on page {i + 1}: {exc}") from exc
                    ocr_pages += 1
                if text:
                    pages.append(text)
        finally:
            doc.close()
        joined = "\n\n".join(pages)
        LOG.info("PDF text extracted: pages=%d ocr_pages=%d characters=%d", total, ocr_pages, len(joined))
        return joined


def build_image_reader(kind: str, *, lang: str = "deu+eng", client: Optional[Any] = None, model: Optional[str] = None) -> ImageReader:
    if kind == "vision":
        if client is None or not model:
            raise ValueError("vision image reader requires an OpenAI client and a model")
        return VisionImageReader(client, model)
    return TesseractImageReader(lang=lang)
