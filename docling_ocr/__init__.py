"""Docling OCR client: upload a document, poll long jobs, return normalized text."""

from docling_ocr.core.exceptions import OCRError
from docling_ocr.models.dto import (
    DoclingOCRConfig,
    OCRContext,
    OutputFormat,
    SourceFile,
    UploadResult,
)
from docling_ocr.orchestrator import upload_docling_ocr, upload_ocr

__all__ = [
    "DoclingOCRConfig",
    "OCRContext",
    "OCRError",
    "OutputFormat",
    "SourceFile",
    "UploadResult",
    "upload_docling_ocr",
    "upload_ocr",
]
