import asyncio

import httpx
import pytest

from fxns.ai import DummyProvider, ModelProvider, OpenAIProvider, build_provider
from fxns.config import EngineConfig
from fxns.errors import ConfigurationError, ProviderError
from fxns.observability.metrics import MetricsRegistry
from fxns.pipeline import StepExecutor
from fxns.pipeline.steps.ai_analysis import shape_reply
from fxns.tools.codec import steps_from_list

from support import RecordingTransport


def _run(config, provider, context=None):
    steps = steps_from_list([{"id": "insight", "type": "ai_analysis", "config": config}])
    executor = StepExecutor(
        EngineConfig(), http_transport=RecordingTransport(), ai_provider=provider, metrics=MetricsRegistry()
    )
    return asyncio.run(executor.execute(steps, context or {}))


def test_prompt_is_templated_and_text_reply_wrapped():
    provider = DummyProvider(reply="Looks healthy.")
    result = _run({"prompt": "Review {{company}} revenue of {revenue}"}, provider, {"company": "Acme", "revenue": 10})
    assert result.succeeded, result.error
    assert result.context["insight"] == {"text": "Looks healthy."}
    assert provider.calls[0][-1]["content"] == "Review Acme revenue of 10"


def test_json_reply_is_parsed_even_inside_fences():
    provider = DummyProvider(reply='```json\n{"score": 8, "summary": "ok"}\n```')
    result = _run({"prompt": "Score it", "outputFormat": "json"}, provider)
    assert result.context["insight"] == {"score": 8, "summary": "ok"}


def test_unparseable_json_reply_is_kept_as_text():
    assert shape_reply("not json", "json") == {"text": "not json", "parsed": False}
    assert shape_reply("# Title", "markdown") == {"markdown": "# Title"}


def test_missing_provider_fails_the_step():
    result = _run({"prompt": "hi"}, None)
    assert not result.succeeded
    assert result.error.cause == "configuration"


def test_provider_errors_become_step_failures():
    class Failing(ModelProvider):
        async def invoke(self, messages, **kwargs):
            raise ProviderError("The AI service rejected the API key.", status=401)

    result = _run({"prompt": "hi"}, Failing("failing"))
    assert not result.succeeded
    assert result.error.status == 401
    assert result.failed_step_id == "insight"


def test_slow_provider_times_out():
    class Slow(ModelProvider):
        async def invoke(self, messages, **kwargs):
            await asyncio.sleep(5)
            return {"result": "late"}

    result = _run({"prompt": "hi", "timeoutSeconds": 0.1}, Slow("slow"))
    assert result.error.cause == "timeout"


def test_openai_provider_posts_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["authorization"]
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"model": "gpt-test", "choices": [{"message": {"content": "hello"}}]})

    async def _call():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = OpenAIProvider(
            api_key="sk-test",
            base_url="https://llm.example.com/v1/chat/completions",
            default_model="gpt-test",
            http_client=client,
        )
        try:
            return await provider.invoke([{"role": "user", "content": "hi"}], max_tokens=10)
        finally:
            await client.aclose()

    reply = asyncio.run(_call())
    assert reply["result"] == "hello"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["url"] == "https://llm.example.com/v1/chat/completions"


def test_openai_provider_without_key_raises():
    provider = OpenAIProvider(api_key=None)
    with pytest.raises(ProviderError):
        asyncio.run(provider.invoke([{"role": "user", "content": "hi"}]))


def test_build_provider_from_config():
    assert isinstance(build_provider(EngineConfig(ai_provider="dummy")), DummyProvider)
    assert isinstance(build_provider(EngineConfig(ai_provider="openai", openai_api_key="k")), OpenAIProvider)
    with pytest.raises(ConfigurationError):
        build_provider(EngineConfig(ai_provider="mystery"))
