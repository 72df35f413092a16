"""Resilience utilities for calls to the Docling service."""

from docling_ocr.resilience.polling import PollConfig, poll_until

__all__ = [
    "PollConfig",
    "poll_until",
]
