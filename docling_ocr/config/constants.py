# =============================================================================
# Docling Service
# =============================================================================

DEFAULT_DOCLING_BASE_URL = "https://docling.amendllc.com"
SERVICE_NAME = "DOCLING"
FILE_SOURCE = "docling_ocr"

# Secret names used when the configured value is empty or a placeholder
DOCLING_API_KEY_ENV = "DOCLING_API_KEY"
DOCLING_BASE_URL_ENV = "DOCLING_BASE_URL"

# =============================================================================
# Endpoints
# =============================================================================

CONVERT_FILE_PATH = "/v1alpha/convert/file"
CONVERT_FILE_ASYNC_PATH = "/v1alpha/convert/file/async"
STATUS_POLL_PATH = "/v1alpha/status/poll/{task_id}"
RESULT_PATH = "/v1alpha/result/{task_id}"

BYTES_PER_MB = 1024 * 1024
DEFAULT_SYNC_THRESHOLD_MB = 5
FILE_SIZE_THRESHOLD = DEFAULT_SYNC_THRESHOLD_MB * BYTES_PER_MB  # 5 MiB, inclusive on async side

# =============================================================================
# OCR Defaults
# =============================================================================

DEFAULT_DO_OCR = True
DEFAULT_FORCE_OCR = False
DEFAULT_OCR_ENGINE = "easyocr"
DEFAULT_OCR_LANG = "en"
DEFAULT_OUTPUT_FORMAT = "md"

# =============================================================================
# Polling / Timeouts (seconds)
# =============================================================================

POLL_INTERVAL_SECONDS = 5.0
POLL_MAX_ATTEMPTS = 60  # ~5 min at the default interval
CLIENT_TIMEOUT_SECONDS = 60.0

# =============================================================================
# Error Handling
# =============================================================================

ERROR_BODY_MAX_CHARS = 200
BASE_ERROR_MESSAGE = "Error uploading document to Docling OCR API:"
BYTES_PER_CHAR_ESTIMATE = 4
