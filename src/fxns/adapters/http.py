"""
Outbound HTTP for api_call steps.

Transports are pluggable: anything implementing ``HttpTransport`` or a plain
callable ``(HttpRequest) -> HttpResponse`` (sync or async) can be injected.
Sync callables run in a worker thread so they never block the event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import ipaddress
import json
import logging
import re
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger("fxns.adapters.http")

USER_AGENT = "fxns-tool-engine/1.0"
_BLOCKED_HOSTNAMES = {"localhost", "metadata.google.internal", "metadata"}

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class TransportError(Exception):
    """Network-level failure before an HTTP status was received."""

    def __init__(self, message: str, kind: str = "network") -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: Optional[float] = None


@dataclass
class HttpResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value.lower()
        return ""

    def parsed_body(self) -> Any:
        """JSON body when it parses, else ``{"text": body}``."""
        if self.text.strip():
            looks_json = "json" in self.content_type or self.text.lstrip()[:1] in {"{", "["}
            if looks_json:
                try:
                    return json.loads(self.text)
                except json.JSONDecodeError:
                    pass
        return {"text": self.text}


class HttpTransport(ABC):
    @abstractmethod
    async def send(self, request: HttpRequest) -> HttpResponse:
        """Perform one request; raise ``TransportError`` for network failures."""


class HttpxTransport(HttpTransport):
    """Default transport backed by ``httpx.AsyncClient``."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, *, follow_redirects: bool = False) -> None:
        self._client = client
        self.follow_redirects = follow_redirects

    async def send(self, request: HttpRequest) -> HttpResponse:
        client = self._client
        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(follow_redirects=self.follow_redirects)
        try:
            response = await client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=request.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request to {request.url} timed out.", kind="timeout") from exc
        except httpx.ConnectError as exc:
            kind = "dns" if "name" in str(exc).lower() and "resolution" in str(exc).lower() else "refused"
            raise TransportError(f"Could not connect to {request.url}: {exc}", kind=kind) from exc
        except httpx.RemoteProtocolError as exc:
            raise TransportError(f"Connection to {request.url} was reset: {exc}", kind="reset") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc
        finally:
            if owns_client:
                await client.aclose()
        return HttpResponse(status=response.status_code, headers=dict(response.headers), text=response.text)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


TransportLike = Union[
    HttpTransport,
    Callable[[HttpRequest], HttpResponse],
    Callable[[HttpRequest], Awaitable[HttpResponse]],
]


async def send_request(transport: TransportLike, request: HttpRequest) -> HttpResponse:
    if isinstance(transport, HttpTransport):
        return await transport.send(request)
    if inspect.iscoroutinefunction(transport):
        return await transport(request)
    result = await asyncio.to_thread(transport, request)
    if inspect.isawaitable(result):
        result = await result
    return result


HostResolver = Callable[[str], Awaitable[Sequence[str]]]

_NUMERIC_HOST = re.compile(r"^(0x[0-9a-f]+|[0-9]+)(\.(0x[0-9a-f]+|[0-9]+)){0,3}$")


def _literal_address(hostname: str) -> Optional[IPAddress]:
    """IP literal in any form the system resolver accepts (``127.1``, ``0x7f000001``, ``0177.0.0.1``)."""
    try:
        return ipaddress.ip_address(hostname)
    except ValueError:
        pass
    if not _NUMERIC_HOST.match(hostname):
        return None
    try:
        return ipaddress.IPv4Address(socket.inet_aton(hostname))
    except OSError:
        return None


def is_blocked_address(address: IPAddress) -> bool:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_multicast
        or address.is_unspecified
    )


def check_outbound_url(url: str, *, allow_private_hosts: bool = False) -> str:
    """Validate scheme and host of an outbound URL; returns the hostname.

    Only the URL itself is inspected here. Names are resolved and checked by
    ``ensure_public_host`` right before the request is sent.
    """
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise TransportError(f"The URL '{url}' is not valid.", kind="invalid") from exc
    if parts.scheme not in {"http", "https"}:
        raise TransportError("Only http and https URLs are supported.", kind="invalid")
    hostname = (parts.hostname or "").lower().rstrip(".")
    if not hostname:
        raise TransportError(f"The URL '{url}' has no host.", kind="invalid")
    if allow_private_hosts:
        return hostname
    if hostname in _BLOCKED_HOSTNAMES or hostname.endswith(".localhost") or hostname.endswith(".internal"):
        raise TransportError("Private or internal URLs are not allowed.", kind="blocked")
    address = _literal_address(hostname)
    if address is not None and is_blocked_address(address):
        raise TransportError("Private or internal URLs are not allowed.", kind="blocked")
    return hostname


async def resolve_host(hostname: str) -> List[str]:
    """Every address the system resolver returns for ``hostname``."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise TransportError(f"Unable to resolve '{hostname}': {exc}", kind="dns") from exc
    return [info[4][0] for info in infos]


async def ensure_public_host(hostname: str, resolver: Optional[HostResolver] = None) -> None:
    """Refuse hosts where any resolved address is private, loopback or otherwise internal."""
    if _literal_address(hostname) is not None:
        return
    addresses = await (resolver or resolve_host)(hostname)
    for raw in addresses:
        try:
            address = ipaddress.ip_address(raw.split("%", 1)[0])
        except ValueError:
            continue
        if is_blocked_address(address):
            logger.warning("refusing %s: resolves to internal address %s", hostname, address)
            raise TransportError("Private or internal URLs are not allowed.", kind="blocked")


def status_error_message(status: int, detail: str = "", url: str = "") -> str:
    detail = detail.strip()
    if status == 400:
        return f"The API rejected the request (400). {detail or 'Check the input data and try again.'}"
    if status == 401:
        return "Authentication with the API failed (401). Check the credentials in the tool configuration."
    if status == 403:
        return "Access to the API endpoint was denied (403)."
    if status == 404:
        return f"The API endpoint was not found (404): {url}"
    if status == 429:
        return "The API is rate limiting requests (429). Wait a moment and try again."
    if status == 500:
        return f"The API server encountered an error (500). {detail or 'Try again later.'}"
    if status in {502, 503, 504}:
        return f"The API service is temporarily unavailable ({status})."
    return f"The API request failed ({status}). {detail}".strip()


def error_detail(response: HttpResponse) -> str:
    body = response.text or ""
    try:
        data = json.loads(body) if body else None
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        detail = data.get("message") or data.get("error")
        if isinstance(detail, str):
            return detail[:200]
    return body[:200]
