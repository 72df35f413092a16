from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import httpx

from docling_ocr.clients.docling_client import DoclingAsyncClient
from docling_ocr.config.constants import BASE_ERROR_MESSAGE, BYTES_PER_MB, SERVICE_NAME
from docling_ocr.core.auth import load_docling_auth_config
from docling_ocr.core.exceptions import (
    BaseError,
    EmptyResultError,
    MissingCredentialError,
    OCRError,
)
from docling_ocr.core.logging_config import mask_secret
from docling_ocr.core.settings import DoclingSettings, get_docling_settings, load_docling_ocr_config
from docling_ocr.models.dto import FileSource, OCRContext, OCROptions, UploadResult
from docling_ocr.processors.result_normalizer import estimate_bytes, process_docling_result
from docling_ocr.resilience.polling import PollConfig, Sleep

logger = logging.getLogger(__name__)


async def upload_docling_ocr(
    context: OCRContext,
    *,
    settings: Optional[DoclingSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    poll_config: Optional[PollConfig] = None,
    sleep: Sleep = asyncio.sleep,
) -> UploadResult:
    """
    Upload one document to Docling and return its extracted text.

    Resolves credentials, submits the file to the sync or async endpoint
    depending on its size, and normalizes the returned document. Nothing is
    retried here; callers that need resilience retry the whole call.

    Args:
      context: Caller-owned request context (user, file, secret loader).
      settings: Environment snapshot; read fresh when omitted.
      transport: Optional httpx transport, used for testing.
      poll_config: Overrides the polling budget from settings.
      sleep: Delay coroutine used between status checks.

    Returns:
      UploadResult with text, a heuristic byte size and no images.

    Raises:
      OCRError: On any failure, wrapping the original error.
    """
    t0 = time.perf_counter()
    filename = context.file.original_name
    log_extra = {"user_id": context.user_id, "document_name": filename}

    try:
        env = settings or get_docling_settings()
        config = load_docling_ocr_config(context.ocr_config, env)

        auth = await load_docling_auth_config(context, config)
        if not auth.api_key:
            raise MissingCredentialError()
        logger.debug(
            "Docling credentials resolved: key=%s base_url=%s",
            mask_secret(auth.api_key),
            auth.base_url,
            extra=log_extra,
        )

        options = OCROptions.from_config(config)
        threshold = int(config.sync_threshold_mb * BYTES_PER_MB)

        async with DoclingAsyncClient(
            auth.api_key,
            auth.base_url,
            timeout=env.DOCLING_CLIENT_TIMEOUT_SECONDS,
            transport=transport,
            poll_config=poll_config
            or PollConfig(
                max_attempts=env.DOCLING_POLL_MAX_ATTEMPTS,
                interval_seconds=env.DOCLING_POLL_INTERVAL_SECONDS,
            ),
            sleep=sleep,
        ) as client:
            response = await client.convert_file(
                context.file.path,
                filename,
                context.file.size,
                options,
                threshold,
                content_type=context.file.mimetype,
            )

        if response is None or response.document is None:
            raise EmptyResultError()

        text, images = process_docling_result(response, options.output_format)
        result = UploadResult(
            filename=filename,
            bytes=estimate_bytes(text),
            filepath=FileSource.DOCLING_OCR,
            text=text,
            images=images,
        )
    except BaseError as exc:
        logger.error(
            f"Docling OCR failed: {exc.error_code} - {exc.message}",
            extra={
                **log_extra,
                "error_code": exc.error_code,
                "service": SERVICE_NAME,
                "error": exc.to_dict(),
            },
        )
        raise OCRError(
            f"{BASE_ERROR_MESSAGE} {exc.message}",
            cause_code=exc.error_code,
            category=exc.category,
            details=exc.details,
        ) from exc
    except Exception as exc:
        logger.error(f"Unexpected Docling OCR error: {exc}", extra=log_extra, exc_info=True)
        raise OCRError(
            f"{BASE_ERROR_MESSAGE} {exc}",
            details={"detail": str(exc)},
        ) from exc

    logger.info(
        "Docling OCR completed for %s",
        filename,
        extra={**log_extra, "duration_ms": int((time.perf_counter() - t0) * 1000)},
    )
    return result


upload_ocr = upload_docling_ocr
