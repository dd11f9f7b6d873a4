"""Shared doubles and tool definitions for the test suite."""

import asyncio

from fxns.adapters.http import HttpRequest, HttpResponse


class RecordingTransport:
    """Async transport double that replays canned responses and records requests."""

    def __init__(self, *responses: HttpResponse, delay: float = 0.0) -> None:
        self.responses = list(responses) or [json_response("{}")]
        self.delay = delay
        self.requests: list[HttpRequest] = []

    async def __call__(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def json_response(text: str, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, headers={"Content-Type": "application/json"}, text=text)


def tip_draft(draft_id: str = "tip") -> dict:
    return {
        "id": draft_id,
        "name": "Tip calculator",
        "category": "finance",
        "inputConfig": [
            {"id": "subtotal", "type": "number", "label": "Subtotal", "required": True},
            {"id": "tipPercentage", "type": "number", "label": "Tip %", "required": True},
        ],
        "logicConfig": [
            {
                "id": "tip",
                "type": "calculation",
                "config": {
                    "formula": "subtotal * tipPercentage / 100",
                    "variables": [
                        {"name": "subtotal", "fieldId": "subtotal"},
                        {"name": "tipPercentage", "fieldId": "tipPercentage"},
                    ],
                },
            }
        ],
        "outputConfig": {"format": "text"},
    }


def pricing_draft(draft_id: str = "pricing") -> dict:
    return {
        "id": draft_id,
        "name": "Pricing tier",
        "inputConfig": [{"id": "amount", "type": "number", "label": "Amount", "required": True}],
        "logicConfig": [
            {
                "id": "check",
                "type": "condition",
                "config": {"expression": "amount > 100", "thenStepId": "premium", "elseStepId": "standard"},
            },
            {
                "id": "premium",
                "type": "calculation",
                "config": {"formula": "150"},
                "nextStepId": "$end",
            },
            {"id": "standard", "type": "calculation", "config": {"formula": "50"}},
        ],
        "outputConfig": {"format": "text"},
    }


class StaticResolver:
    """Host resolver double: fixed answers per name, a public address otherwise."""

    def __init__(self, answers: dict | None = None, default: str = "93.184.216.34") -> None:
        self.answers = answers or {}
        self.default = default
        self.lookups: list[str] = []

    async def __call__(self, hostname: str) -> list[str]:
        self.lookups.append(hostname)
        return self.answers.get(hostname, [self.default])
