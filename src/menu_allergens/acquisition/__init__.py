"""Turning text and uploads into one text stream for extraction."""

from .acquire import AcquiredText, acquire_text, truncate_text
from .artifacts import DocumentArtifact, ImageArtifact, UploadedArtifact, classify_upload
from .readers import DocumentReader, ImageReader, PdfTextReader, TesseractImageReader, VisionImageReader, build_image_reader

__all__ = [
    "AcquiredText",
    "acquire_text",
    "truncate_text",
    "DocumentArtifact",
    "ImageArtifact",
    "UploadedArtifact",
    "classify_upload",
    "DocumentReader",
    "ImageReader",
    "PdfTextReader",
    "TesseractImageReader",
    "VisionImageReader",
    "build_image_reader",
]
