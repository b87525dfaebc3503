"""Utility functions for the PaperMark backend."""

import base64
import binascii
import math
import mimetypes
from datetime import datetime, timezone
from typing import Tuple
from urllib.parse import urlparse


# Cambridge grade scale, highest first, with inclusive lower bounds
GRADE_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (90, "A*"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
    (40, "E"),
)
GRADE_SCALE: Tuple[str, ...] = ("A*", "A", "B", "C", "D", "E", "U")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def grade_from_percentage(percentage: float) -> str:
    """Map a percentage to a Cambridge letter grade."""
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return "U"


def format_percentage(obtained: int, total: int) -> int:
    """Whole-number percentage, halves rounded up. 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(obtained / total * 100 + 0.5))


def _url_path(url: str) -> str:
    return urlparse(url).path or url


def is_pdf_reference(url: str) -> bool:
    """PDF references are sent to the oracle as documents, the rest as images."""
    return _url_path(url).lower().endswith(".pdf")


def guess_image_mime_type(url: str) -> str:
    """Image mime type from the URL extension, JPEG when unknown."""
    mime_type, _ = mimetypes.guess_type(_url_path(url))
    if mime_type and mime_type.startswith("image/"):
        return mime_type
    return "image/jpeg"


def decode_base64_payload(data: str) -> bytes:
    """
    Decode an uploaded file sent as base64.

    Accepts plain base64 or a data URL ("data:image/png;base64,....").
    Whitespace, including line breaks, is ignored.

    Raises:
        ValueError: If the payload is not valid base64
    """
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    # Line-wrapped (MIME style) payloads
    data = "".join(data.split())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}")
