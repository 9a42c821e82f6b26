"""
Upload error taxonomy.

Every failure in the upload pipeline is one of these. Each carries a
caller-facing message; none of them is retried inside the pipeline.
"""

from __future__ import annotations


class UploadError(Exception):
    """Base class for upload pipeline errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnsupportedInputError(UploadError):
    """Raised when the declared filename has an unrecognized extension."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"Unsupported extension: {extension}")


class PayloadTooLargeError(UploadError):
    """Raised when the uploaded payload exceeds the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(f"Upload exceeds maximum of {limit_bytes} bytes")


class MalformedPackageError(UploadError):
    """Raised when archive or provenance content cannot be parsed."""


class ValidationError(UploadError):
    """Raised when a required identity attribute is missing or blank."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Metadata is missing the {field} attribute")


class PermissionDenied(UploadError):
    """Raised when the caller may not write the resolved path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Not authorized for requested path '{path}'")


class IOFailure(UploadError):
    """Raised when temp or backing storage I/O fails. May be transient."""


class CommitError(UploadError):
    """Raised when the store transaction fails to commit."""
