import asyncio
import logging
from typing import Any, BinaryIO, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from docling_ocr.config.constants import (
    CLIENT_TIMEOUT_SECONDS,
    CONVERT_FILE_ASYNC_PATH,
    CONVERT_FILE_PATH,
    DEFAULT_DOCLING_BASE_URL,
    FILE_SIZE_THRESHOLD,
    RESULT_PATH,
    STATUS_POLL_PATH,
)
from docling_ocr.core.exceptions import (
    ExternalServiceError,
    InvalidResponseError,
    PollingTimeoutError,
    ServiceJobFailedError,
    TransportError,
    UpstreamHTTPError,
)
from docling_ocr.models.dto import (
    AsyncSubmission,
    ConversionJob,
    ConversionResponse,
    JobStatus,
    OCROptions,
    TaskResult,
)
from docling_ocr.resilience.polling import PollConfig, Sleep, poll_until

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def is_async_upload(file_size: int, threshold: int = FILE_SIZE_THRESHOLD) -> bool:
    """Files at or above the threshold go through the async endpoint."""
    return file_size >= threshold


def determine_endpoint(
    file_size: int, base_url: str, threshold: int = FILE_SIZE_THRESHOLD
) -> str:
    path = CONVERT_FILE_ASYNC_PATH if is_async_upload(file_size, threshold) else CONVERT_FILE_PATH
    return f"{base_url.rstrip('/')}{path}"


def _form_bool(value: bool) -> str:
    return "true" if value else "false"


def build_ocr_form_fields(options: OCROptions) -> dict[str, str]:
    """Multipart text fields, in a fixed order. Images are never requested."""
    return {
        "do_ocr": _form_bool(options.do_ocr),
        "force_ocr": _form_bool(options.force_ocr),
        "ocr_engine": options.engine,
        "ocr_lang": options.lang,
        "output_format": options.output_format.value,
        "generate_page_images": "false",
        "generate_table_images": "false",
        "generate_picture_images": "false",
    }


def build_auth_headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


def _parse(model: Type[M], data: Any, url: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidResponseError(
            f"Unexpected Docling response from {url}: "
            f"{e.error_count()} validation error(s)",
            url=url,
        ) from e


def _is_transient(exc: Exception) -> bool:
    return getattr(exc, "retryable", False)


class DoclingAsyncClient:
    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = CLIENT_TIMEOUT_SECONDS,
        verify: bool = True,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        poll_config: Optional[PollConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_DOCLING_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.verify = verify
        self.poll_config = poll_config or PollConfig()
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "DoclingAsyncClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout, verify=self.verify, transport=self._transport
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Client not started")
        return self._client

    def build_conversion_request(
        self,
        endpoint: str,
        file: BinaryIO,
        filename: str,
        options: OCROptions,
        content_type: Optional[str] = None,
    ) -> httpx.Request:
        """Multipart POST with the file under `files` and OCR options as text fields."""
        file_part = (filename, file) if content_type is None else (filename, file, content_type)
        return self._require_client().build_request(
            "POST",
            endpoint,
            headers=build_auth_headers(self.api_key),
            data=build_ocr_form_fields(options),
            files={"files": file_part},
        )

    async def _send(self, request: httpx.Request) -> Any:
        url = str(request.url)
        try:
            resp = await self._require_client().send(request)
        except httpx.TransportError as e:
            raise TransportError(e, url=url) from e

        if resp.is_error:
            raise UpstreamHTTPError.from_response(resp)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Docling returned a non-JSON body from {url}", url=url
            ) from e

    async def _get(self, url: str) -> Any:
        request = self._require_client().build_request(
            "GET", url, headers=build_auth_headers(self.api_key)
        )
        return await self._send(request)

    async def convert_file(
        self,
        file_path: str,
        filename: str,
        file_size: int,
        options: OCROptions,
        threshold: int = FILE_SIZE_THRESHOLD,
        content_type: Optional[str] = None,
    ) -> Optional[ConversionResponse]:
        """
        Submit one file and return its conversion envelope.

        Small files use the sync endpoint and return the envelope directly;
        large files are submitted to the async endpoint and polled.
        """
        endpoint = determine_endpoint(file_size, self.base_url, threshold)
        use_async = is_async_upload(file_size, threshold)
        logger.info(
            "Submitting %s to Docling (%s)",
            filename,
            "async" if use_async else "sync",
            extra={"document_name": filename, "endpoint": endpoint},
        )

        with open(file_path, "rb") as f:
            request = self.build_conversion_request(
                endpoint, f, filename, options, content_type
            )
            data = await self._send(request)

        if not use_async:
            return None if data is None else _parse(ConversionResponse, data, endpoint)

        submission = _parse(AsyncSubmission, data, endpoint)
        return await self.wait_for_document(submission.task_id)

    async def get_status(self, task_id: str) -> ConversionJob:
        url = f"{self.base_url}{STATUS_POLL_PATH.format(task_id=task_id)}"
        return _parse(ConversionJob, await self._get(url), url)

    async def get_result(self, task_id: str) -> TaskResult:
        url = f"{self.base_url}{RESULT_PATH.format(task_id=task_id)}"
        data = await self._get(url)
        return TaskResult() if data is None else _parse(TaskResult, data, url)

    async def wait_for_document(self, task_id: str) -> Optional[ConversionResponse]:
        """
        Poll job status until completed, then fetch the result once.

        Raises:
          ServiceJobFailedError: The service reported the job as failed.
          PollingTimeoutError: The attempt budget ran out while pending.
          TransportError / UpstreamHTTPError: A status check failed on the
            final attempt, or a non-transient error occurred.
        """

        async def check() -> ConversionJob:
            job = await self.get_status(task_id)
            logger.debug(
                "Docling task %s status=%s progress=%s",
                task_id,
                job.status.value,
                job.progress,
                extra={"task_id": task_id},
            )
            if job.status is JobStatus.FAILED:
                logger.warning(
                    "Docling task %s failed: %s",
                    task_id,
                    job.message,
                    extra={"task_id": task_id},
                )
                raise ServiceJobFailedError(task_id, job.message)
            return job

        job = await poll_until(
            check,
            lambda j: j.status is JobStatus.COMPLETED,
            self.poll_config,
            retryable_exceptions=(ExternalServiceError,),
            should_retry=_is_transient,
            sleep=self._sleep,
        )
        if job is None:
            logger.warning(
                "Docling task %s still pending after %d checks",
                task_id,
                self.poll_config.max_attempts,
                extra={"task_id": task_id, "max_attempts": self.poll_config.max_attempts},
            )
            raise PollingTimeoutError(task_id, self.poll_config.max_attempts)

        logger.info("Docling task %s completed", task_id, extra={"task_id": task_id})
        result = await self.get_result(task_id)
        return result.result
