"""Outcome types for one document submission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

RATE_LIMIT_EXCEEDED = "rate limit exceeded"

FailureKind = Literal["serialization", "timeout", "connection", "transport"]


@dataclass(frozen=True)
class Accepted:
    """The endpoint answered; status and body are kept verbatim."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": "accepted", "status_code": self.status_code, "body": self.body}


@dataclass(frozen=True)
class Rejected:
    """The admission gate denied the submission."""

    reason: str = RATE_LIMIT_EXCEEDED

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": "rejected", "reason": self.reason}


@dataclass(frozen=True)
class Failed:
    """Serialization or transport failed for an admitted submission."""

    kind: FailureKind
    cause: str

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": "failed", "kind": self.kind, "cause": self.cause}


SubmissionResult = Accepted | Rejected | Failed


@dataclass(frozen=True)
class SubmissionRequest:
    """A document paired with the signature that accompanies it on the wire."""

    document: Any
    signature: str
