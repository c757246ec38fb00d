"""Rate-limited client for submitting goods-introduction documents."""

from crpt_api.client import AsyncCrptClient, CrptClient
from crpt_api.document import Document, Product, load_document, parse_document, serialize_document
from crpt_api.errors import (
    ClientClosedError,
    ConfigError,
    CrptAPIError,
    DocumentValidationError,
    SerializationError,
    TransportError,
)
from crpt_api.gate import AdmissionGate, GateState, window_seconds
from crpt_api.results import Accepted, Failed, Rejected, SubmissionRequest, SubmissionResult
from crpt_api.settings import Settings

__all__ = [
    "Accepted",
    "AdmissionGate",
    "AsyncCrptClient",
    "ClientClosedError",
    "ConfigError",
    "CrptAPIError",
    "CrptClient",
    "Document",
    "DocumentValidationError",
    "Failed",
    "GateState",
    "Product",
    "Rejected",
    "SerializationError",
    "Settings",
    "SubmissionRequest",
    "SubmissionResult",
    "TransportError",
    "load_document",
    "parse_document",
    "serialize_document",
    "window_seconds",
]
