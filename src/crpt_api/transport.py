"""HTTP transport for posting encoded documents."""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter

import httpx

from crpt_api.errors import TransportError

CONTENT_TYPE = "application/json"
SIGNATURE_HEADER = "Signature"
DEFAULT_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class TransportResponse:
    """Status and raw body returned by the endpoint."""

    status_code: int
    body: str
    duration_ms: int


def build_headers(signature: str) -> dict[str, str]:
    return {"Content-Type": CONTENT_TYPE, SIGNATURE_HEADER: signature}


def _classify(exc: httpx.HTTPError) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportError("timeout", f"request timed out: {exc}")
    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
        return TransportError("connection", f"connection error: {exc}")
    return TransportError("transport", f"transport error: {exc}")


class HttpTransport:
    """Blocking POST transport around a pooled `httpx.Client`."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        limits = httpx.Limits(max_connections=8, max_keepalive_connections=4)
        self._http = httpx.Client(timeout=timeout_s, limits=limits, transport=transport)

    def close(self) -> None:
        self._http.close()

    def post(self, body: str, signature: str, *, timeout: float | None = None) -> TransportResponse:
        started = perf_counter()
        extra = {} if timeout is None else {"timeout": timeout}
        try:
            response = self._http.post(
                self.endpoint, content=body, headers=build_headers(signature), **extra
            )
        except httpx.HTTPError as exc:
            raise _classify(exc) from exc
        return TransportResponse(
            status_code=response.status_code,
            body=response.text,
            duration_ms=int((perf_counter() - started) * 1000),
        )


class AsyncHttpTransport:
    """Non-blocking POST transport around a pooled `httpx.AsyncClient`."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        limits = httpx.Limits(max_connections=8, max_keepalive_connections=4)
        self._http = httpx.AsyncClient(timeout=timeout_s, limits=limits, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def post(
        self, body: str, signature: str, *, timeout: float | None = None
    ) -> TransportResponse:
        started = perf_counter()
        extra = {} if timeout is None else {"timeout": timeout}
        try:
            response = await self._http.post(
                self.endpoint, content=body, headers=build_headers(signature), **extra
            )
        except httpx.HTTPError as exc:
            raise _classify(exc) from exc
        return TransportResponse(
            status_code=response.status_code,
            body=response.text,
            duration_ms=int((perf_counter() - started) * 1000),
        )
