"""HTTP transport used by the dispatcher.

The dispatcher only talks to a :class:`Transport`; the default
:class:`RequestsTransport` runs a blocking :mod:`requests` call in a worker
thread via :func:`asyncio.to_thread` so the event loop is never blocked.
Tests substitute an in-memory transport.
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Dict, Optional, Protocol, runtime_checkable

import requests


@dataclasses.dataclass(frozen=True, slots=True)
class HttpRequest:
    """A fully built request. ``form`` and ``body`` are mutually exclusive."""

    method: str
    url: str
    headers: Dict[str, str] = dataclasses.field(default_factory=dict)
    form: Optional[Dict[str, str]] = None
    body: Optional[bytes] = None
    timeout: Optional[float] = None


@dataclasses.dataclass(frozen=True, slots=True)
class HttpResponse:
    status_code: int
    text: str


@runtime_checkable
class Transport(Protocol):
    """Sends one request and returns the raw response.

    Implementations raise :class:`requests.RequestException` (or any
    :class:`OSError`) on network failure; the dispatcher wraps those.
    """

    async def send(self, request: HttpRequest) -> HttpResponse: ...  # noqa: E704


class RequestsTransport:
    """Default transport. Every call opens a fresh :mod:`requests` session."""

    async def send(self, request: HttpRequest) -> HttpResponse:
        response = await asyncio.to_thread(
            requests.request,
            request.method,
            request.url,
            headers=request.headers,
            data=request.form if request.form is not None else request.body,
            timeout=request.timeout,
        )
        return HttpResponse(status_code=response.status_code, text=response.text)
