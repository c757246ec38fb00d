"""Error types for crpt-api flows."""

from __future__ import annotations


class CrptAPIError(RuntimeError):
    """Base error for crpt-api operations."""


class ConfigError(CrptAPIError):
    """Raised when client parameters or the runtime config are invalid."""


class DocumentValidationError(CrptAPIError):
    """Raised when a document payload fails schema validation."""

    def __init__(self, issues: list[tuple[str, str]]) -> None:
        self.issues = issues
        detail = "; ".join(f"{field}: {message}" for field, message in issues)
        super().__init__(f"invalid document: {detail}" if detail else "invalid document")


class SerializationError(CrptAPIError):
    """Raised when a document cannot be encoded for the wire."""


class TransportError(CrptAPIError):
    """Raised on HTTP transport failures."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class ClientClosedError(CrptAPIError):
    """Raised when a submission is attempted on a closed client."""
