"""Goods-introduction document schema and wire encoding."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticSerializationError

from crpt_api.errors import DocumentValidationError, SerializationError

ProductionType = Literal["OWN_PRODUCTION", "CONTRACT_PRODUCTION"]

_INN_LENGTHS = (10, 12)


def _check_inn(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned.isdigit() or len(cleaned) not in _INN_LENGTHS:
        raise ValueError("INN must be 10 or 12 digits")
    return cleaned


def _check_date(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    try:
        parsed = date.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError("date must be formatted as YYYY-MM-DD") from exc
    return parsed.isoformat()


class Product(BaseModel):
    """One marked item listed in a document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    certificate_document: str | None = None
    certificate_document_date: str | None = None
    certificate_document_number: str | None = None
    owner_inn: str | None = None
    producer_inn: str | None = None
    production_date: str | None = None
    tnved_code: str | None = None
    uit_code: str | None = None
    uitu_code: str | None = None

    @field_validator("owner_inn", "producer_inn")
    @classmethod
    def check_inn(cls, value: str | None) -> str | None:
        return _check_inn(value)

    @field_validator("certificate_document_date", "production_date")
    @classmethod
    def check_dates(cls, value: str | None) -> str | None:
        return _check_date(value)


class Document(BaseModel):
    """Introduction-into-circulation document for goods produced domestically."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str | None = None
    participant_inn: str | None = None
    doc_id: str | None = None
    doc_status: str | None = None
    doc_type: str = "LP_INTRODUCE_GOODS"
    import_request: bool = False
    owner_inn: str | None = None
    producer_inn: str | None = None
    production_date: str | None = None
    production_type: ProductionType
    products: tuple[Product, ...] = ()
    reg_date: str | None = None
    reg_number: str | None = None

    @field_validator("participant_inn", "owner_inn", "producer_inn")
    @classmethod
    def check_inn(cls, value: str | None) -> str | None:
        return _check_inn(value)

    @field_validator("production_date", "reg_date")
    @classmethod
    def check_dates(cls, value: str | None) -> str | None:
        return _check_date(value)


def _issues(exc: ValidationError) -> list[tuple[str, str]]:
    issues: list[tuple[str, str]] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        issues.append((field, message))
    return issues


def parse_document(payload: Mapping[str, Any]) -> Document:
    """Build a validated document, collecting every field issue."""
    if not isinstance(payload, Mapping):
        raise DocumentValidationError([("<root>", "document payload must be an object")])
    try:
        return Document.model_validate(dict(payload))
    except ValidationError as exc:
        raise DocumentValidationError(_issues(exc)) from exc


def load_document(path: Path) -> Document:
    """Read and validate a document from a JSON file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DocumentValidationError([("<root>", f"invalid JSON in {path}: {exc.msg}")]) from exc
    return parse_document(payload)


def serialize_document(document: Any) -> str:
    """Encode a document (model or plain mapping) as a JSON request body."""
    try:
        if isinstance(document, BaseModel):
            return document.model_dump_json()
        if isinstance(document, Mapping):
            return json.dumps(dict(document), ensure_ascii=False)
    except (TypeError, ValueError, PydanticSerializationError) as exc:
        raise SerializationError(f"failed to encode document: {exc}") from exc
    raise SerializationError(f"unsupported document type: {type(document).__name__}")
