"""
Typed contracts exchanged with the Docling service and the calling pipeline.

Wire shapes (submission, status, result) are pydantic models so that
malformed service responses fail validation instead of surfacing later as
attribute errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Optional, Protocol

from pydantic import BaseModel, ConfigDict, field_validator

from docling_ocr.config.constants import (
    DEFAULT_DO_OCR,
    DEFAULT_FORCE_OCR,
    DEFAULT_OCR_ENGINE,
    DEFAULT_OCR_LANG,
    FILE_SOURCE,
)


class OutputFormat(str, Enum):
    """Closed set of result formats. Only these four are legal."""

    MARKDOWN = "markdown"
    HTML = "html"
    TEXT = "text"
    JSON = "json"

    @classmethod
    def _missing_(cls, value: object) -> Optional["OutputFormat"]:
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "md":
                return cls.MARKDOWN
            for member in cls:
                if member.value == normalized:
                    return member
        return None


def parse_output_format(value: Any) -> Any:
    """Map "md" and other case variants onto OutputFormat; pass others through."""
    if isinstance(value, str) and not isinstance(value, OutputFormat):
        return OutputFormat(value)
    return value


class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def _missing_(cls, value: object) -> "JobStatus":
        # Unknown status: treat as pending
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return cls.PENDING


class FileSource(str, Enum):
    DOCLING_OCR = FILE_SOURCE


class DoclingOCRConfig(BaseModel):
    """
    Deployment-level OCR block as configured by the caller.

    Every field is optional; `load_docling_ocr_config` fills the gaps from
    the environment and hard defaults.
    """

    model_config = ConfigDict(extra="ignore")

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    sync_threshold_mb: Optional[float] = None
    do_ocr: Optional[bool] = None
    force_ocr: Optional[bool] = None
    ocr_engine: Optional[str] = None
    ocr_lang: Optional[str] = None
    output_format: Optional[OutputFormat] = None

    @field_validator("output_format", mode="before")
    @classmethod
    def _parse_output_format(cls, value: Any) -> Any:
        return parse_output_format(value)


class OCROptions(BaseModel):
    """OCR switches sent with every conversion request."""

    model_config = ConfigDict(frozen=True)

    do_ocr: bool = DEFAULT_DO_OCR
    force_ocr: bool = DEFAULT_FORCE_OCR
    engine: str = DEFAULT_OCR_ENGINE
    lang: str = DEFAULT_OCR_LANG
    output_format: OutputFormat = OutputFormat.MARKDOWN

    @classmethod
    def from_config(cls, config: DoclingOCRConfig) -> "OCROptions":
        return cls(
            do_ocr=DEFAULT_DO_OCR if config.do_ocr is None else config.do_ocr,
            force_ocr=DEFAULT_FORCE_OCR if config.force_ocr is None else config.force_ocr,
            engine=config.ocr_engine or DEFAULT_OCR_ENGINE,
            lang=config.ocr_lang or DEFAULT_OCR_LANG,
            output_format=config.output_format or OutputFormat.MARKDOWN,
        )


@dataclass(frozen=True)
class AuthConfig:
    api_key: str
    base_url: str


class AuthValuesLoader(Protocol):
    """Secret loader provided by the caller; resolves named secrets per user."""

    def __call__(
        self,
        *,
        user_id: str,
        auth_fields: list[str],
        optional: set[str],
    ) -> Awaitable[dict[str, Optional[str]]]: ...


@dataclass(frozen=True)
class SourceFile:
    path: str
    original_name: str
    size: int
    mimetype: str = "application/octet-stream"


@dataclass(frozen=True)
class OCRContext:
    """Everything a single upload needs from its caller. Read-only."""

    file: SourceFile
    load_auth_values: AuthValuesLoader
    user_id: Optional[str] = None
    ocr_config: Optional[DoclingOCRConfig] = None


# =============================================================================
# Docling wire shapes
# =============================================================================


class ConversionDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    filename: Optional[str] = None
    md_content: Optional[str] = None
    html_content: Optional[str] = None
    text_content: Optional[str] = None
    json_content: Optional[Any] = None


class ConversionResponse(BaseModel):
    """Envelope returned by the sync endpoint and embedded in task results."""

    model_config = ConfigDict(extra="ignore")

    document: Optional[ConversionDocument] = None
    status: Optional[str] = None
    errors: list[Any] = []
    processing_time: Optional[float] = None


class AsyncSubmission(BaseModel):
    model_config = ConfigDict(extra="ignore")

    task_id: str
    status: Optional[JobStatus] = None
    message: Optional[str] = None


class ConversionJob(BaseModel):
    """One status snapshot. Each poll yields a fresh instance."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    task_id: str
    status: JobStatus
    progress: Optional[float] = None
    message: Optional[str] = None


class TaskResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    task_id: Optional[str] = None
    status: Optional[str] = None
    result: Optional[ConversionResponse] = None


class UploadResult(BaseModel):
    """Canonical OCR output handed back to the file-processing dispatcher."""

    filename: str
    bytes: int
    filepath: FileSource = FileSource.DOCLING_OCR
    text: str
    images: list[str] = []
