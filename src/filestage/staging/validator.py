"""Size-policy validation for files offered for staging.

Only the size limit is enforced. Accepted MIME patterns are advisory and are
handed to the host's file picker, never checked here.
"""

from dataclasses import dataclass
from typing import Union

from filestage.staging.classifier import format_file_size
from filestage.staging.exceptions import OversizeRejected
from filestage.staging.records import RawFile


@dataclass(frozen=True)
class Accepted:
    """The file passed validation."""

    file: RawFile


@dataclass(frozen=True)
class Rejected:
    """The file failed validation."""

    file: RawFile
    reason: str


ValidationResult = Union[Accepted, Rejected]


def validate_file(file: RawFile, max_size_bytes: int) -> ValidationResult:
    """Check a file against the size limit.

    Args:
        file: File offered for staging
        max_size_bytes: Largest accepted size, inclusive

    Returns:
        Accepted, or Rejected with a user-facing reason
    """
    if file.size_bytes > max_size_bytes:
        return Rejected(
            file=file,
            reason=f"{file.name} exceeds {format_file_size(max_size_bytes)} limit",
        )
    return Accepted(file=file)


def ensure_valid(file: RawFile, max_size_bytes: int) -> RawFile:
    """Raising form of validate_file.

    Raises:
        OversizeRejected: If the file exceeds max_size_bytes
    """
    result = validate_file(file, max_size_bytes)
    if isinstance(result, Rejected):
        raise OversizeRejected(file.name, file.size_bytes, max_size_bytes)
    return file
