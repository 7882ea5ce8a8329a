"""Custom exceptions for the staging engine."""

from filestage.staging.classifier import format_file_size


class StagingException(Exception):
    """Base exception for the staging engine."""
    pass


class OversizeRejected(StagingException):
    """Exception raised when a file exceeds the configured size limit."""

    def __init__(self, file_name: str, size_bytes: int, max_size_bytes: int):
        self.file_name = file_name
        self.size_bytes = size_bytes
        self.max_size_bytes = max_size_bytes
        super().__init__(f"{file_name} exceeds {format_file_size(max_size_bytes)} limit")


class PreviewGenerationFailed(StagingException):
    """Exception raised when a preview cannot be read or encoded."""
    pass


class StaleMutation(StagingException):
    """Exception raised when an update targets a record no longer staged."""
    pass


class TransportError(StagingException):
    """Exception raised when a transport fails to transfer a record."""
    pass


class ManagementDisabledError(StagingException):
    """Exception raised when management commands are disabled for a session."""
    pass
