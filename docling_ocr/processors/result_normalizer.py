import json

from docling_ocr.config.constants import BYTES_PER_CHAR_ESTIMATE
from docling_ocr.models.dto import ConversionDocument, ConversionResponse, OutputFormat


def extract_text(
    document: ConversionDocument,
    output_format: OutputFormat = OutputFormat.MARKDOWN,
) -> str:
    """Select the content field matching the output format.

    An empty selected field yields "" with no substitution from other fields.

    Returns:
        The text payload for the requested format
    """
    if output_format is OutputFormat.MARKDOWN:
        return document.md_content or ""
    if output_format is OutputFormat.HTML:
        return document.html_content or ""
    if output_format is OutputFormat.TEXT:
        return document.text_content or ""
    if output_format is OutputFormat.JSON:
        if document.json_content is None:
            return ""
        return json.dumps(document.json_content, ensure_ascii=False, indent=2)
    raise ValueError(f"Unsupported output format: {output_format!r}")


def process_docling_result(
    response: ConversionResponse,
    output_format: OutputFormat = OutputFormat.MARKDOWN,
) -> tuple[str, list[str]]:
    """Extract text and images from a conversion envelope.

    Images are always empty: this API surface returns none.

    Returns:
        Tuple of (text, images)
    """
    if response.document is None:
        return "", []
    return extract_text(response.document, output_format), []


def estimate_bytes(text: str) -> int:
    """Rough UTF-8 size: four bytes per UTF-16 code unit. Not an exact count.

    Characters outside the BMP count as two units, as surrogate pairs.
    """
    return len(text.encode("utf-16-le")) // 2 * BYTES_PER_CHAR_ESTIMATE
