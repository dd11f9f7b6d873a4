"""
OpenAI Chat Completions provider (messages-based).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ProviderError
from ..observability.logging_utils import redact_metadata
from .providers import ModelProvider

logger = logging.getLogger("fxns.ai")

DEFAULT_BASE_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIProvider(ModelProvider):
    """
    OpenAI Chat Completions provider.
    The http_client parameter allows deterministic mocking in tests (e.g. an
    ``httpx.AsyncClient`` over ``httpx.MockTransport``).
    """

    def __init__(
        self,
        name: str = "openai",
        api_key: Optional[str] = None,
        base_url: str | None = None,
        default_model: str | None = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(name, default_model=default_model)
        self.api_key = api_key
        self.base_url = base_url or DEFAULT_BASE_URL
        self._http_client = http_client

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_body(self, messages: List[Dict[str, str]], **kwargs: Any) -> Dict[str, Any]:
        model = kwargs.get("model") or self.default_model
        if not model:
            raise ProviderError("OpenAI model name is required.")
        body: Dict[str, Any] = {"model": model, "messages": messages}
        for key in ("temperature", "max_tokens", "response_format"):
            if kwargs.get(key) is not None:
                body[key] = kwargs[key]
        return body

    async def invoke(self, messages: List[Dict[str, str]], **kwargs: Any) -> Dict[str, Any]:
        if not self.api_key:
            raise ProviderError("AI analysis is not configured: no OpenAI API key is set.")
        body = self._build_body(messages, **kwargs)
        logger.debug("openai request %s", redact_metadata({"model": body["model"], "authorization": "set"}))
        client = self._http_client or httpx.AsyncClient()
        try:
            response = await client.post(self.base_url, json=body, headers=self._build_headers())
        except httpx.HTTPError as exc:
            raise ProviderError(f"Unable to reach the AI service: {exc}") from exc
        finally:
            if self._http_client is None:
                await client.aclose()
        if response.status_code >= 400:
            raise ProviderError(_status_message(response), status=response.status_code)
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("The AI service returned an unreadable response.") from exc
        content = ""
        choices = data.get("choices") or [] if isinstance(data, dict) else []
        if choices:
            content = (choices[0].get("message") or {}).get("content") or ""
        return {"provider": "openai", "model": body["model"], "result": content, "raw": data}


def _status_message(response: httpx.Response) -> str:
    status = response.status_code
    code = ""
    try:
        payload = response.json()
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            code = str(payload["error"].get("code") or "")
    except ValueError:
        pass
    if status == 429 and code == "insufficient_quota":
        return "The AI service quota has been exceeded."
    if status == 429:
        return "The AI service is currently rate limited. Wait a moment and try again."
    if status == 401:
        return "AI service authentication failed. The API key may be invalid or expired."
    if status == 404:
        return "The requested AI model is not available."
    if code == "context_length_exceeded":
        return "The input is too long for AI analysis. Try with shorter text."
    return f"AI analysis failed (error {status})."
