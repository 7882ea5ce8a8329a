"""Inline previews for image files."""

import base64
import logging
from typing import Optional

from filestage.staging.classifier import FileCategory, classify_mime_type
from filestage.staging.exceptions import PreviewGenerationFailed
from filestage.staging.records import RawFile

logger = logging.getLogger(__name__)


def is_previewable(mime_type: str) -> bool:
    """Only image files get previews."""
    return classify_mime_type(mime_type) == FileCategory.IMAGE


async def encode_preview(file: RawFile) -> str:
    """Read a file and encode it as a base64 data URI.

    Args:
        file: File to encode

    Returns:
        A ``data:<mime>;base64,<payload>`` string that can be displayed
        without further I/O

    Raises:
        PreviewGenerationFailed: If the file content cannot be read
    """
    try:
        content = await file.read_bytes()
    except Exception as e:
        raise PreviewGenerationFailed(f"Failed to read {file.name}: {e}") from e

    payload = base64.b64encode(content).decode("ascii")
    return f"data:{file.mime_type};base64,{payload}"


async def generate_preview(file: RawFile) -> Optional[str]:
    """Generate a preview for image files, None for everything else.

    Read failures degrade to no preview; the file still stages.
    """
    if not is_previewable(file.mime_type):
        return None

    try:
        return await encode_preview(file)
    except PreviewGenerationFailed as e:
        logger.warning(
            "Preview generation failed, staging without preview",
            extra={"file_name": file.name, "error": str(e)},
        )
        return None
