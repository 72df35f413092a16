"""Command-line entry point: OCR one document through Docling."""

import argparse
import asyncio
import mimetypes
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from docling_ocr.core.exceptions import OCRError
from docling_ocr.core.logging_config import configure_structured_logging
from docling_ocr.core.settings import get_docling_settings
from docling_ocr.models.dto import DoclingOCRConfig, OCRContext, OutputFormat, SourceFile
from docling_ocr.orchestrator import upload_docling_ocr


async def load_env_auth_values(
    *, user_id: str, auth_fields: list[str], optional: set[str]
) -> dict[str, Optional[str]]:
    """Secret loader backed by the process environment."""
    return {name: os.getenv(name) for name in auth_fields}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract text from a document with Docling OCR")
    parser.add_argument("file", type=Path, help="Document to convert")
    parser.add_argument(
        "--format",
        choices=["md", "markdown", "html", "text", "json"],
        default=None,
        help="Output format (default: DOCLING_OUTPUT_FORMAT or md)",
    )
    parser.add_argument("--base-url", default=None, help="Docling base URL override")
    parser.add_argument("--user-id", default=None, help="User on whose behalf secrets are loaded")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL)")
    parser.add_argument(
        "--plain-logs",
        action="store_true",
        help="Human-readable logs instead of JSON",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    settings = get_docling_settings()
    configure_structured_logging(
        level=args.log_level or settings.LOG_LEVEL,
        json_format=not args.plain_logs,
    )

    path: Path = args.file
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 1

    context = OCRContext(
        file=SourceFile(
            path=str(path),
            original_name=path.name,
            size=path.stat().st_size,
            mimetype=mimetypes.guess_type(path.name)[0] or "application/octet-stream",
        ),
        load_auth_values=load_env_auth_values,
        user_id=args.user_id,
        ocr_config=DoclingOCRConfig(
            base_url=args.base_url,
            output_format=OutputFormat(args.format) if args.format else None,
        ),
    )

    try:
        result = asyncio.run(upload_docling_ocr(context, settings=settings))
    except OCRError as e:
        print(e.message, file=sys.stderr)
        return 1

    sys.stdout.write(result.text)
    if not result.text.endswith("\n"):
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
