"""
Centralized Docling OCR settings using Pydantic.

Environment variables are read and validated here instead of scattered
os.getenv() calls. Configured values from the caller always win over the
environment, and the environment wins over hard defaults.
"""

from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

from docling_ocr.config.constants import (
    CLIENT_TIMEOUT_SECONDS,
    DEFAULT_DO_OCR,
    DEFAULT_DOCLING_BASE_URL,
    DEFAULT_FORCE_OCR,
    DEFAULT_OCR_ENGINE,
    DEFAULT_OCR_LANG,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_SYNC_THRESHOLD_MB,
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
)
from docling_ocr.models.dto import DoclingOCRConfig, OutputFormat, parse_output_format


class DoclingSettings(BaseSettings):
    """Docling service configuration sourced from the deployment environment."""

    DOCLING_API_KEY: SecretStr = SecretStr("")
    DOCLING_BASE_URL: str = DEFAULT_DOCLING_BASE_URL
    DOCLING_SYNC_THRESHOLD_MB: float = DEFAULT_SYNC_THRESHOLD_MB
    DOCLING_DO_OCR: bool = DEFAULT_DO_OCR
    DOCLING_FORCE_OCR: bool = DEFAULT_FORCE_OCR
    DOCLING_OCR_ENGINE: str = DEFAULT_OCR_ENGINE
    DOCLING_OCR_LANG: str = DEFAULT_OCR_LANG
    DOCLING_OUTPUT_FORMAT: OutputFormat = OutputFormat(DEFAULT_OUTPUT_FORMAT)

    DOCLING_POLL_INTERVAL_SECONDS: float = Field(default=POLL_INTERVAL_SECONDS, ge=0)
    DOCLING_POLL_MAX_ATTEMPTS: int = Field(default=POLL_MAX_ATTEMPTS, ge=1)
    DOCLING_CLIENT_TIMEOUT_SECONDS: float = CLIENT_TIMEOUT_SECONDS

    LOG_LEVEL: str = "INFO"

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}

    @field_validator("DOCLING_OUTPUT_FORMAT", mode="before")
    @classmethod
    def _parse_output_format(cls, value):
        return parse_output_format(value)


def get_docling_settings() -> DoclingSettings:
    """Read settings fresh from the environment."""
    return DoclingSettings()


def load_docling_ocr_config(
    config: Optional[DoclingOCRConfig],
    settings: Optional[DoclingSettings] = None,
) -> DoclingOCRConfig:
    """
    Merge the caller's OCR block with the environment.

    Args:
      config: Configured values; any field left as None falls through.
      settings: Environment snapshot. Read fresh when omitted.

    Returns:
      A DoclingOCRConfig with every field populated.
    """
    config = config or DoclingOCRConfig()
    env = settings or get_docling_settings()

    def pick(configured, from_env):
        return from_env if configured is None else configured

    return DoclingOCRConfig(
        api_key=pick(config.api_key, env.DOCLING_API_KEY.get_secret_value()),
        base_url=pick(config.base_url, env.DOCLING_BASE_URL),
        sync_threshold_mb=pick(config.sync_threshold_mb, env.DOCLING_SYNC_THRESHOLD_MB),
        do_ocr=pick(config.do_ocr, env.DOCLING_DO_OCR),
        force_ocr=pick(config.force_ocr, env.DOCLING_FORCE_OCR),
        ocr_engine=pick(config.ocr_engine, env.DOCLING_OCR_ENGINE),
        ocr_lang=pick(config.ocr_lang, env.DOCLING_OCR_LANG),
        output_format=pick(config.output_format, env.DOCLING_OUTPUT_FORMAT),
    )
