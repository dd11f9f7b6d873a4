from .http import (
    HttpRequest,
    HttpResponse,
    HttpTransport,
    HttpxTransport,
    TransportError,
    check_outbound_url,
    ensure_public_host,
    resolve_host,
    send_request,
    status_error_message,
)

__all__ = [
    "HttpRequest",
    "HttpResponse",
    "HttpTransport",
    "HttpxTransport",
    "TransportError",
    "check_outbound_url",
    "ensure_public_host",
    "resolve_host",
    "send_request",
    "status_error_message",
]
