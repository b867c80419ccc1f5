"""Shared service error definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ServiceError(Exception):
    code: str
    message: str
    status_code: int = 400

    def __str__(self) -> str:  # noqa: D401 override
        return f"{self.code}: {self.message}"


class EncodingError(ServiceError):
    """A TLV field cannot be encoded (malformed tag or value over 99 chars)."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(code="ERR_ENCODING", message=message or "Field cannot be encoded", status_code=400)


class MissingFieldError(ServiceError):
    """A required merchant field is absent or empty."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(code="ERR_MISSING_FIELD", message=message or "Required field missing", status_code=400)


class InvalidPayloadError(ServiceError):
    """The payload failed validation or its TLV stream is malformed."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(code="ERR_INVALID_PAYLOAD", message=message or "Invalid PIX code", status_code=422)


class RenderError(ServiceError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(code="ERR_RENDER", message=message or "QR code rendering failed", status_code=502)


class StatusProviderError(ServiceError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(code="ERR_STATUS_PROVIDER", message=message or "Payment status unavailable", status_code=502)
