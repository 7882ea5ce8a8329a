"""
MIME type classifier for staged files.

Classifies files into coarse categories used for preview eligibility,
file-manager filtering and iconography:
- image: any image/* type
- video: any video/* type
- audio: any audio/* type
- pdf: anything mentioning "pdf"
- document: anything mentioning "doc" (Word, OpenXML office documents)
- archive: anything mentioning "zip" or "rar"
- other: everything else
"""

from enum import Enum
from typing import List, Tuple


class FileCategory(str, Enum):
    """Coarse file categories derived from the MIME type."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"
    DOCUMENT = "document"
    ARCHIVE = "archive"
    OTHER = "other"


# Prefix-based classification, checked first
MIME_PREFIX_MAP: Tuple[Tuple[str, FileCategory], ...] = (
    ("image/", FileCategory.IMAGE),
    ("video/", FileCategory.VIDEO),
    ("audio/", FileCategory.AUDIO),
)

# Substring-based classification, checked in order after prefixes
MIME_SUBSTRING_MAP: Tuple[Tuple[str, FileCategory], ...] = (
    ("pdf", FileCategory.PDF),
    ("doc", FileCategory.DOCUMENT),
    ("zip", FileCategory.ARCHIVE),
    ("rar", FileCategory.ARCHIVE),
)

ALL_CATEGORIES = "all"

# Facet values offered by the file manager filter
FILTER_CATEGORIES: List[str] = [ALL_CATEGORIES] + [c.value for c in FileCategory]

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def classify_mime_type(mime_type: str) -> FileCategory:
    """
    Classify a MIME type into a file category.

    Args:
        mime_type: The MIME type string (e.g., "image/png")

    Returns:
        FileCategory enum value, OTHER when nothing matches

    Examples:
        >>> classify_mime_type("image/png")
        <FileCategory.IMAGE: 'image'>
        >>> classify_mime_type("application/pdf")
        <FileCategory.PDF: 'pdf'>
        >>> classify_mime_type("application/x-rar-compressed")
        <FileCategory.ARCHIVE: 'archive'>
        >>> classify_mime_type("text/plain")
        <FileCategory.OTHER: 'other'>
    """
    normalized_mime = (mime_type or "").lower()

    for prefix, category in MIME_PREFIX_MAP:
        if normalized_mime.startswith(prefix):
            return category

    for fragment, category in MIME_SUBSTRING_MAP:
        if fragment in normalized_mime:
            return category

    return FileCategory.OTHER


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count for display.

    Scales by 1024 up to GB and keeps at most two decimals, dropping
    trailing zeros.

    Examples:
        >>> format_file_size(0)
        '0 Bytes'
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(5 * 1024 * 1024)
        '5 MB'
    """
    if size_bytes <= 0:
        return "0 Bytes"

    value = float(size_bytes)
    unit_index = 0
    while value >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    return f"{round(value, 2):g} {SIZE_UNITS[unit_index]}"
