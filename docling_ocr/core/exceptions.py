"""Exception hierarchy for the Docling OCR client.

Every failure raised inside an upload derives from BaseError and carries a
stable error code, a category, and a retryable flag. The orchestrator wraps
whatever escapes into a single OCRError for the caller.
"""

from enum import Enum
from typing import Any, Optional

import httpx

from docling_ocr.config.constants import ERROR_BODY_MAX_CHARS, SERVICE_NAME


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    CLIENT_ERROR = "client_error"
    EXTERNAL_SERVICE = "external_service"


class BaseError(Exception):
    """Base exception for all Docling OCR errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        details: Additional context (dict)
        retryable: Whether the failed call may be attempted again
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to a problem-details style mapping for structured logs.

        Returns:
            Dict containing standardized error information
        """
        return {
            "type": f"/errors/{self.error_code}",
            "title": self.message,
            "code": self.error_code,
            "detail": self.details.get("detail"),
            "category": self.category.value,
            "retryable": self.retryable,
        }


class ClientError(BaseError):
    """Base for errors caused by the caller's setup. Never retryable."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.CLIENT_ERROR,
            retryable=False,
            **kwargs,
        )


class MissingCredentialError(ClientError):
    """Resolved API key is empty. Raised before any network call."""

    def __init__(self, message: str = "Docling API key is required"):
        super().__init__(message=message, error_code="MISSING_CREDENTIAL")


class ExternalServiceError(BaseError):
    """Docling service failure.

    Args:
        error_type: Kind of failure ("timeout", "unavailable", "error", ...)
        message: Human-readable message; defaults to "<service> service <error_type>"
        service_name: Name of the external service
        retryable: Whether a repeated call may succeed
        details: Additional error context
    """

    def __init__(
        self,
        error_type: str,
        message: Optional[str] = None,
        *,
        service_name: str = SERVICE_NAME,
        retryable: bool = False,
        **kwargs,
    ):
        additional_details = kwargs.pop("details", {})
        additional_details.update(
            {
                "service": service_name,
                "error_type": error_type,
            }
        )
        super().__init__(
            message=message or f"{service_name} service {error_type}",
            error_code=f"{service_name.upper()}_{error_type.upper()}",
            category=ErrorCategory.EXTERNAL_SERVICE,
            retryable=retryable,
            details=additional_details,
            **kwargs,
        )
        self.service_name = service_name
        self.error_type = error_type


class TransportError(ExternalServiceError):
    """Network-level failure: connection refused, DNS, timeout."""

    def __init__(self, cause: Exception, *, url: Optional[str] = None):
        error_type = "timeout" if isinstance(cause, httpx.TimeoutException) else "unavailable"
        reason = str(cause) or type(cause).__name__
        super().__init__(
            error_type,
            f"Docling service {error_type}: {reason}",
            retryable=True,
            details={"detail": reason, "url": url},
        )


class UpstreamHTTPError(ExternalServiceError):
    """Non-2xx response from the Docling service.

    Retryable for 429 and 5xx only; other statuses are authoritative.
    """

    def __init__(
        self,
        status_code: int,
        *,
        detail: Optional[str] = None,
        upstream_message: Optional[str] = None,
        reason: str = "",
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.detail = detail
        self.upstream_message = upstream_message

        parts = [p for p in (detail, upstream_message) if p]
        text = " - ".join(parts) or reason or "Request failed"
        super().__init__(
            "error",
            f"{text} (HTTP {status_code})",
            retryable=status_code == 429 or status_code >= 500,
            details={"detail": detail, "http_status": status_code, "url": url},
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "UpstreamHTTPError":
        detail, upstream_message = _extract_error_body(response)
        try:
            url: Optional[str] = str(response.request.url)
        except RuntimeError:
            url = None
        return cls(
            response.status_code,
            detail=detail,
            upstream_message=upstream_message,
            reason=response.reason_phrase,
            url=url,
        )


class InvalidResponseError(ExternalServiceError):
    """Response body is not JSON or does not have the expected shape."""

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(
            "invalid_response",
            message,
            details={"url": url},
        )


class ServiceJobFailedError(ExternalServiceError):
    """The service reported the async job as failed. Authoritative."""

    def __init__(self, task_id: str, service_message: Optional[str] = None):
        self.task_id = task_id
        super().__init__(
            "job_failed",
            f"OCR processing failed: {service_message or 'Unknown error'}",
            details={"detail": service_message, "task_id": task_id},
        )


class PollingTimeoutError(ExternalServiceError):
    """Attempt budget exhausted before the job reached a terminal state."""

    def __init__(self, task_id: str, attempts: int):
        self.task_id = task_id
        self.attempts = attempts
        super().__init__(
            "timeout",
            f"OCR processing timed out after {attempts} status checks",
            details={"task_id": task_id, "attempts": attempts},
        )


class EmptyResultError(ExternalServiceError):
    """Service answered but produced no usable document."""

    def __init__(
        self,
        message: str = (
            "No OCR result returned from Docling service, "
            "may be down or the file is not supported."
        ),
    ):
        super().__init__("empty_result", message)


class OCRError(BaseError):
    """Single user-facing error raised by `upload_docling_ocr`.

    Args:
        message: Combined, human-readable message
        cause_code: error_code of the wrapped failure
        details: Additional context copied from the wrapped failure
    """

    def __init__(
        self,
        message: str,
        *,
        cause_code: str = "UNEXPECTED",
        category: ErrorCategory = ErrorCategory.EXTERNAL_SERVICE,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_code="OCR_FAILED",
            category=category,
            details=details,
        )
        self.cause_code = cause_code


def _extract_error_body(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
    """Pull `detail` and `message` from a structured error body."""
    try:
        body = response.json()
    except ValueError:
        text = response.text[:ERROR_BODY_MAX_CHARS].strip()
        return None, text or None

    if not isinstance(body, dict):
        return None, None

    detail = body.get("detail")
    if detail is not None and not isinstance(detail, str):
        detail = str(detail)[:ERROR_BODY_MAX_CHARS]

    message = body.get("message")
    if not message and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
    return detail or None, message or None
