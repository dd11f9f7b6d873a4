import asyncio
import json

import httpx
import pytest

from fxns.adapters.http import (
    HttpRequest,
    HttpResponse,
    HttpxTransport,
    TransportError,
    check_outbound_url,
    ensure_public_host,
    status_error_message,
)
from fxns.config import EngineConfig
from fxns.observability.metrics import MetricsRegistry
from fxns.pipeline import StepExecutor
from fxns.tools.codec import steps_from_list

from support import RecordingTransport, StaticResolver, json_response


def _run(config, context=None, transport=None, engine=None, metrics=None, resolver=None):
    steps = steps_from_list([{"id": "lookup", "type": "api_call", "config": config}])
    executor = StepExecutor(
        engine or EngineConfig(),
        http_transport=transport or RecordingTransport(),
        metrics=metrics or MetricsRegistry(),
        host_resolver=resolver,
    )
    return asyncio.run(executor.execute(steps, context or {}))


def test_url_headers_and_body_are_templated():
    transport = RecordingTransport(json_response('{"rate": 1.1}'))
    result = _run(
        {
            "url": "https://api.example.com/rates/{{currency}}?q=${query}",
            "method": "POST",
            "headers": {"X-Api-Key": "{key}"},
            "body": {"amount": "{{amount}}", "note": "for {{currency}}"},
        },
        context={"currency": "EUR", "query": "a b&c", "key": "secret", "amount": 12.5},
        transport=transport,
    )
    assert result.succeeded, result.error
    assert result.context["lookup"] == {"rate": 1.1}
    request = transport.requests[0]
    assert request.url == "https://api.example.com/rates/EUR?q=a%20b%26c"
    assert request.headers["X-Api-Key"] == "secret"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.body) == {"amount": 12.5, "note": "for EUR"}


def test_get_requests_send_no_body():
    transport = RecordingTransport()
    _run({"url": "https://api.example.com/x", "body": {"a": 1}}, transport=transport)
    assert transport.requests[0].body is None


def test_non_json_body_is_wrapped_as_text():
    transport = RecordingTransport(HttpResponse(status=200, headers={"content-type": "text/plain"}, text="pong"))
    result = _run({"url": "https://api.example.com/ping"}, transport=transport)
    assert result.context["lookup"] == {"text": "pong"}


@pytest.mark.parametrize(
    "status, fragment",
    [
        (401, "Authentication with the API failed (401)"),
        (404, "not found (404)"),
        (429, "rate limiting"),
        (503, "temporarily unavailable (503)"),
    ],
)
def test_http_errors_map_to_friendly_messages(status, fragment):
    transport = RecordingTransport(json_response('{"message": "nope"}', status=status))
    result = _run({"url": "https://api.example.com/x"}, transport=transport)
    assert not result.succeeded
    assert fragment in result.error.message
    assert result.error.status == status
    assert result.error.to_payload()["failedStepId"] == "lookup"


def test_continue_on_error_keeps_status_in_marker():
    steps = steps_from_list(
        [
            {"id": "lookup", "type": "api_call", "config": {"url": "https://api.example.com/x"}, "continueOnError": True},
            {"id": "after", "type": "calculation", "config": {"formula": "1"}},
        ]
    )
    transport = RecordingTransport(json_response("{}", status=500))
    executor = StepExecutor(EngineConfig(), http_transport=transport, metrics=MetricsRegistry())
    result = asyncio.run(executor.execute(steps, {}))
    assert result.succeeded
    assert result.context["lookup"]["status"] == 500
    assert result.context["after"] == 1


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost:8000/admin",
        "http://127.0.0.1/",
        "http://10.0.0.5/internal",
        "http://169.254.169.254/latest/meta-data",
        "http://metadata.google.internal/",
        "http://[::1]/",
        "http://127.1/",
        "http://2130706433/",
        "http://0x7f000001/",
        "http://0177.0.0.1/",
        "http://[::ffff:10.0.0.1]/",
    ],
)
def test_private_hosts_are_blocked(url):
    with pytest.raises(TransportError) as excinfo:
        check_outbound_url(url)
    assert excinfo.value.kind == "blocked"


def test_private_hosts_allowed_when_configured():
    assert check_outbound_url("http://127.0.0.1:9000/", allow_private_hosts=True) == "127.0.0.1"
    with pytest.raises(TransportError):
        check_outbound_url("ftp://example.com/file")


def test_blocked_url_fails_the_step_without_sending():
    transport = RecordingTransport()
    metrics = MetricsRegistry()
    result = _run({"url": "http://{{host}}/"}, context={"host": "127.0.0.1"}, transport=transport, metrics=metrics)
    assert not result.succeeded
    assert result.error.cause == "blocked"
    assert transport.requests == []
    assert metrics.snapshot()["httpCalls"] == {"blocked": 1}


def test_transport_errors_name_the_host():
    async def refusing(request):
        raise TransportError("connection refused", kind="refused")

    result = _run({"url": "https://down.example.com/"}, transport=refusing)
    assert result.error.message == "Connection to 'down.example.com' was refused. The service may be down."


def test_sync_callables_are_accepted():
    def sync_transport(request: HttpRequest) -> HttpResponse:
        return json_response('{"ok": true}')

    result = _run({"url": "https://api.example.com/"}, transport=sync_transport)
    assert result.context["lookup"] == {"ok": True}


def test_httpx_transport_maps_responses_and_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/boom":
            raise httpx.ConnectTimeout("slow", request=request)
        return httpx.Response(201, json={"echo": request.headers["x-test"]})

    async def _exercise():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client)
        try:
            ok = await transport.send(HttpRequest("GET", "https://api.example.com/ok", headers={"X-Test": "1"}))
            with pytest.raises(TransportError) as excinfo:
                await transport.send(HttpRequest("GET", "https://api.example.com/boom"))
        finally:
            await transport.aclose()
        return ok, excinfo.value

    ok, error = asyncio.run(_exercise())
    assert ok.status == 201
    assert ok.parsed_body() == {"echo": "1"}
    assert error.kind == "timeout"


def test_status_message_includes_detail():
    assert status_error_message(400, "bad field") == "The API rejected the request (400). bad field"
    assert status_error_message(418) == "The API request failed (418)."


def test_names_resolving_to_internal_addresses_are_blocked():
    transport = RecordingTransport()
    resolver = StaticResolver({"intranet.example.com": ["93.184.216.34", "10.0.0.7"]})
    result = _run({"url": "https://intranet.example.com/admin"}, transport=transport, resolver=resolver)
    assert not result.succeeded
    assert result.error.cause == "blocked"
    assert "private or internal" in result.error.message
    assert resolver.lookups == ["intranet.example.com"]
    assert transport.requests == []


def test_public_names_are_resolved_then_sent():
    transport = RecordingTransport()
    resolver = StaticResolver()
    result = _run({"url": "https://api.example.com/x"}, transport=transport, resolver=resolver)
    assert result.succeeded, result.error
    assert resolver.lookups == ["api.example.com"]
    assert len(transport.requests) == 1


def test_resolution_is_skipped_when_private_hosts_are_allowed():
    resolver = StaticResolver({"intranet.example.com": ["10.0.0.7"]})
    result = _run(
        {"url": "https://intranet.example.com/admin"},
        engine=EngineConfig(allow_private_hosts=True),
        resolver=resolver,
    )
    assert result.succeeded, result.error
    assert resolver.lookups == []


def test_system_resolver_checks_every_address():
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(ensure_public_host("localhost"))
    assert excinfo.value.kind == "blocked"
    # IP literals were already checked against the URL
    asyncio.run(ensure_public_host("93.184.216.34", StaticResolver({"93.184.216.34": ["127.0.0.1"]})))
