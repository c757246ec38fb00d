"""Rate-limited document submission clients.

Both clients follow the same pipeline: ask the admission gate, encode the
document, hand the body to the transport without blocking the caller, and
deliver exactly one `SubmissionResult` through a future.

An admission consumed by a call is never returned to the gate, even when
encoding or the POST fails afterwards.
"""

from __future__ import annotations

import asyncio
import math
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import httpx

from crpt_api.document import serialize_document
from crpt_api.errors import (
    ClientClosedError,
    ConfigError,
    SerializationError,
    TransportError,
)
from crpt_api.gate import AdmissionGate
from crpt_api.log import get_logger
from crpt_api.results import (
    RATE_LIMIT_EXCEEDED,
    Accepted,
    Failed,
    Rejected,
    SubmissionRequest,
    SubmissionResult,
)
from crpt_api.settings import Settings
from crpt_api.transport import (
    DEFAULT_TIMEOUT_S,
    AsyncHttpTransport,
    HttpTransport,
    TransportResponse,
)

Serializer = Callable[[Any], str]

logger = get_logger("crpt_api.client")


def _validate_endpoint(endpoint: str) -> str:
    cleaned = str(endpoint or "").strip()
    if not cleaned:
        raise ConfigError("endpoint is required")
    return cleaned


def _validate_timeout(timeout_s: float) -> float:
    if not math.isfinite(timeout_s) or timeout_s <= 0:
        raise ConfigError(f"timeout must be a positive number, got {timeout_s}")
    return float(timeout_s)


def _gate_from_settings(settings: Settings) -> AdmissionGate:
    return AdmissionGate(limit=settings.request_limit, window_s=settings.window_s())


def _accepted(response: TransportResponse, log: Any) -> Accepted:
    log.info(
        "document response received",
        status_code=response.status_code,
        duration_ms=response.duration_ms,
    )
    return Accepted(status_code=response.status_code, body=response.body)


def _failed(kind: Any, cause: str, log: Any) -> Failed:
    log.error("document submission failed", kind=kind, cause=cause)
    return Failed(kind=kind, cause=cause)


class _Pipeline:
    """Admission and encoding steps shared by the sync and async clients."""

    def __init__(
        self,
        *,
        endpoint: str,
        gate: AdmissionGate,
        timeout_s: float,
        serializer: Serializer | None,
    ) -> None:
        self.endpoint = _validate_endpoint(endpoint)
        self.gate = gate
        self.timeout_s = _validate_timeout(timeout_s)
        self._serialize = serializer or serialize_document
        self._closed = False

    def _prepare(self, document: Any, log: Any) -> str | SubmissionResult:
        """Return the encoded body, or the terminal result when no POST should happen."""
        if self._closed:
            raise ClientClosedError("client is closed")
        if not self.gate.try_admit():
            log.warning("rate limit exceeded", limit=self.gate.limit, window_s=self.gate.window_s)
            return Rejected(RATE_LIMIT_EXCEEDED)
        try:
            return self._serialize(document)
        except SerializationError as exc:
            return _failed("serialization", str(exc), log)
        except (TypeError, ValueError) as exc:
            return _failed("serialization", f"failed to encode document: {exc}", log)
        except Exception as exc:
            log.exception("unexpected error while encoding document")
            return Failed(kind="serialization", cause=f"unexpected error: {exc!r}")


class AsyncCrptClient(_Pipeline):
    """Asyncio client; `submit` returns a future resolved on the running loop."""

    def __init__(
        self,
        endpoint: str,
        *,
        gate: AdmissionGate,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        serializer: Serializer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(endpoint=endpoint, gate=gate, timeout_s=timeout_s, serializer=serializer)
        self._transport = AsyncHttpTransport(
            self.endpoint, timeout_s=self.timeout_s, transport=transport
        )
        self._pending: set[asyncio.Task[SubmissionResult]] = set()

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> AsyncCrptClient:
        return cls(
            settings.endpoint,
            gate=_gate_from_settings(settings),
            timeout_s=settings.timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        self._closed = True
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._transport.aclose()

    async def __aenter__(self) -> AsyncCrptClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def submit(
        self, document: Any, signature: str, *, timeout: float | None = None
    ) -> asyncio.Future[SubmissionResult]:
        """Submit one document; must be called while an event loop is running."""
        loop = asyncio.get_running_loop()
        log = logger.bind(submission_id=uuid.uuid4().hex[:12])
        prepared = self._prepare(document, log)
        if isinstance(prepared, (Accepted, Rejected, Failed)):
            done: asyncio.Future[SubmissionResult] = loop.create_future()
            done.set_result(prepared)
            return done
        task = loop.create_task(self._dispatch(prepared, signature, timeout, log))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def submit_request(
        self, request: SubmissionRequest, *, timeout: float | None = None
    ) -> asyncio.Future[SubmissionResult]:
        return self.submit(request.document, request.signature, timeout=timeout)

    async def _dispatch(
        self, body: str, signature: str, timeout: float | None, log: Any
    ) -> SubmissionResult:
        try:
            response = await self._transport.post(body, signature, timeout=timeout)
        except TransportError as exc:
            return _failed(exc.kind, str(exc), log)
        except Exception as exc:
            log.exception("unexpected error while posting document")
            return Failed(kind="transport", cause=f"unexpected error: {exc!r}")
        return _accepted(response, log)


class CrptClient(_Pipeline):
    """Thread-backed client; `submit` returns a `concurrent.futures.Future`."""

    def __init__(
        self,
        endpoint: str,
        *,
        gate: AdmissionGate,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_workers: int = 4,
        serializer: Serializer | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(endpoint=endpoint, gate=gate, timeout_s=timeout_s, serializer=serializer)
        if int(max_workers) <= 0:
            raise ConfigError(f"max_workers must be positive, got {max_workers}")
        self._transport = HttpTransport(
            self.endpoint, timeout_s=self.timeout_s, transport=transport
        )
        self._executor = ThreadPoolExecutor(
            max_workers=int(max_workers), thread_name_prefix="crpt-api"
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.BaseTransport | None = None
    ) -> CrptClient:
        return cls(
            settings.endpoint,
            gate=_gate_from_settings(settings),
            timeout_s=settings.timeout_s,
            max_workers=settings.max_workers,
            transport=transport,
        )

    def close(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=True)
        self._transport.close()

    def __enter__(self) -> CrptClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def submit(
        self, document: Any, signature: str, *, timeout: float | None = None
    ) -> Future[SubmissionResult]:
        """Submit one document; the POST runs on a worker thread."""
        log = logger.bind(submission_id=uuid.uuid4().hex[:12])
        prepared = self._prepare(document, log)
        if isinstance(prepared, (Accepted, Rejected, Failed)):
            done: Future[SubmissionResult] = Future()
            done.set_result(prepared)
            return done
        return self._executor.submit(self._dispatch, prepared, signature, timeout, log)

    def submit_request(
        self, request: SubmissionRequest, *, timeout: float | None = None
    ) -> Future[SubmissionResult]:
        return self.submit(request.document, request.signature, timeout=timeout)

    def _dispatch(
        self, body: str, signature: str, timeout: float | None, log: Any
    ) -> SubmissionResult:
        try:
            response = self._transport.post(body, signature, timeout=timeout)
        except TransportError as exc:
            return _failed(exc.kind, str(exc), log)
        except Exception as exc:
            log.exception("unexpected error while posting document")
            return Failed(kind="transport", cause=f"unexpected error: {exc!r}")
        return _accepted(response, log)
