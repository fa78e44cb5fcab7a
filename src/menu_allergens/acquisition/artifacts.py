"""Upload variants, decided once at the request boundary."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..errors import ValidationError
from ..logging import get_logger

LOG = get_logger("acquisition-artifacts")

MAX_UPLOAD_BYTES = 12 * 1024 * 1024
IMAGE_MEDIA_TYPES: Tuple[str, ...] = ("image/png", "image/jpeg", "image/webp")
DOCUMENT_MEDIA_TYPES: Tuple[str, ...] = ("application/pdf",)

KIND_IMAGE = "image"
KIND_DOCUMENT = "document"

# Aliases some clients send for the supported types.
_MEDIA_TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "application/x-pdf": "application/pdf",
}


@dataclass(frozen=True)
class ImageArtifact:
    data: bytes
    media_type: str
    filename: Optional[str] = None

    @property
    def byte_size(self) -> int:
        return len(self.data)

    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()

    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{base64.b64encode(self.data).decode('ascii')}"


@dataclass(frozen=True)
class DocumentArtifact:
    data: bytes
    media_type: str
    filename: Optional[str] = None

    @property
    def byte_size(self) -> int:
        return len(self.data)

    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()


UploadedArtifact = Union[ImageArtifact, DocumentArtifact]


def normalize_media_type(media_type: Optional[str]) -> str:
    mt = (media_type or "").split(";", 1)[0].strip().lower()
    return _MEDIA_TYPE_ALIASES.get(mt, mt)


def classify_upload(
    data: bytes,
    media_type: Optional[str],
    *,
    filename: Optional[str] = None,
    expected_kind: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> UploadedArtifact:
    """Validate an upload and wrap it in the matching artifact variant.

    ``expected_kind`` pins the variant when the caller already knows which
    form field the upload came from (``image`` vs ``pdf``).
    """
    mt = normalize_media_type(media_type)
    if mt in IMAGE_MEDIA_TYPES:
        kind = KIND_IMAGE
    elif mt in DOCUMENT_MEDIA_TYPES:
        kind = KIND_DOCUMENT
    else:
        LOG.info("Rejected upload %r with media type %r", filename, media_type)
        raise ValidationError(
            "Nicht unterstützter Dateityp. Erlaubt sind PNG, JPEG, WEBP oder PDF."
        )
    if expected_kind is not None and kind != expected_kind:
        raise ValidationError(
            "Der Dateityp passt nicht zum Upload-Feld (Bild: PNG/JPEG/WEBP, Dokument: PDF)."
        )
    size = len(data or b"")
    if size == 0:
        raise ValidationError("Die hochgeladene Datei ist leer.")
    if size > max_bytes:
        LOG.info("Rejected upload %r: %d bytes exceeds %d", filename, size, max_bytes)
        raise ValidationError(
            f"Die Datei ist zu groß (maximal {max_bytes // (1024 * 1024)} MB)."
        )
    LOG.debug("Accepted %s upload %r (%s, %d bytes)", kind, filename, mt, size)
    if kind == KIND_IMAGE:
        return ImageArtifact(data=data, media_type=mt, filename=filename)
    return DocumentArtifact(data=data, media_type=mt, filename=filename)
