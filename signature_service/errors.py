"""Error taxonomy shared by the store, the compositor and the renderer."""

from __future__ import annotations

from typing import Optional


class SignatureServiceError(Exception):
    """Base class for errors surfaced to the HTTP layer."""

    code = "SIGNATURE_SERVICE_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(SignatureServiceError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self, message: str, field: Optional[str] = None, index: Optional[int] = None
    ) -> None:
        self.field = field
        self.index = index
        if index is not None:
            message = f"Signature {index + 1}: {message}"
        super().__init__(message)


class DecodeError(SignatureServiceError):
    """An overlay's image payload could not be turned into an embeddable image."""

    code = "DECODE_ERROR"
    status_code = 400


class NotFoundError(SignatureServiceError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Document not found: {identity}")


class CorruptDocumentError(SignatureServiceError):
    code = "CORRUPT_DOCUMENT"
    status_code = 422


class ConversionError(SignatureServiceError):
    code = "CONVERSION_ERROR"
    status_code = 502
