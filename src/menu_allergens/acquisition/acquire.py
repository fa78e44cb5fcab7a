from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import DEFAULT_MAX_TEXT_LENGTH
from ..domain.models import ImportWarning
from ..domain.warnings import SOURCE_ACQUISITION, WarningLog
from ..errors import ValidationError
from ..logging import get_logger
from .artifacts import DocumentArtifact, ImageArtifact, UploadedArtifact
from .readers import DocumentReader, ImageReader

LOG = get_logger("acquisition")

WARN_IMAGE_RECOGNIZED = "Datei wurde per automatischer Texterkennung verarbeitet."
WARN_DOCUMENT_RECOGNIZED = "PDF wurde per automatischer Textextraktion verarbeitet."
WARN_EMPTY_RECOGNITION = (
    "Aus der Datei konnte kein Text gelesen werden; es wird nur der eingegebene Text verwendet."
)
WARN_TRUNCATED = "Sehr lange Eingabe wurde für die Analyse gekürzt."


@dataclass
class AcquiredText:
    text: str
    warnings: List[ImportWarning] = field(default_factory=list)
    truncated: bool = False


def truncate_text(text: str, max_length: int) -> Tuple[str, bool]:
    if len(text) <= max_length:
        return text, False
    return text[:max_length], True


def acquire_text(
    raw_text: Optional[str],
    artifact: Optional[UploadedArtifact],
    *,
    image_reader: Optional[ImageReader] = None,
    document_reader: Optional[DocumentReader] = None,
    max_length: int = DEFAULT_MAX_TEXT_LENGTH,
) -> AcquiredText:
    """Combine typed text with text recognized from an optional upload.

    Recognized text follows the typed text after a blank line. The result is
    cut to ``max_length`` here, before anything is sent for extraction.
    """
    typed = (raw_text or "").strip()
    if not typed and artifact is None:
        raise ValidationError("Bitte senden Sie Text, ein Bild oder eine PDF-Datei.")

    warnings = WarningLog()
    parts: List[str] = [typed] if typed else []

    if artifact is not None:
        LOG.info(
            "Reading upload %r (%s, %d bytes, sha256=%s)",
            artifact.filename,
            artifact.media_type,
            artifact.byte_size,
            artifact.sha256(),
        )
        if isinstance(artifact, ImageArtifact):
            if image_reader is None:
                raise ValueError("image_reader is required for image uploads")
            extracted = image_reader.read_image(artifact)
            success_warning = WARN_IMAGE_RECOGNIZED
        elif isinstance(artifact, DocumentArtifact):
            if document_reader is None:
                raise ValueError("document_reader is required for document uploads")
            extracted = document_reader.read_document(artifact)
            success_warning = WARN_DOCUMENT_RECOGNIZED
        else:
            raise TypeError(f"unsupported artifact type: {type(artifact).__name__}")

        extracted = (extracted or "").strip()
        if extracted:
            parts.append(extracted)
            warnings.add(success_warning, source=SOURCE_ACQUISITION)
        elif not typed:
            LOG.info("Recognition of %r yielded no text and no typed text was supplied", artifact.filename)
            raise ValidationError(
                "In der Datei wurde kein lesbarer Text gefunden. Bitte ein schärferes Foto verwenden oder den Text einfügen."
            )
        else:
            LOG.info("Recognition of %r yielded no text; continuing with typed text", artifact.filename)
            warnings.add(WARN_EMPTY_RECOGNITION, source=SOURCE_ACQUISITION)

    combined = "\n\n".join(parts)
    text, truncated = truncate_text(combined, max_length)
    if truncated:
        LOG.info("Input truncated from %d to %d characters", len(combined), max_length)
        warnings.add(WARN_TRUNCATED, source=SOURCE_ACQUISITION)
    return AcquiredText(text=text, warnings=warnings.entries, truncated=truncated)
