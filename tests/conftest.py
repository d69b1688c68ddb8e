"""Shared fakes for planner tests."""
import json
import typing as t

import pytest

from planner.catalog import ToolCatalog
from planner.oracle import OracleRequest


SIMON_PLAN: dict[str, t.Any] = {
    "goal": "Locate Simon Parrott in CRM and create invoice for family photo session",
    "steps": [
        {
            "id": "step_1",
            "action": "Search for Simon Parrott in CRM database",
            "tool": "global_search",
            "parameters": {"term": "simon parrott"},
            "dependencies": [],
            "reasoning": "Need to find client record before creating invoice",
            "estimated_duration": "15 seconds",
            "risk_level": "low",
            "requires_user_confirmation": False,
        },
        {
            "id": "step_2",
            "action": "Create invoice for family photo session",
            "tool": "create_invoice",
            "parameters": {"client_id": "from_step_1", "sku": "FAMILY-BASIC", "amount": 295},
            "dependencies": ["step_1"],
            "reasoning": "Generate invoice for the requested service",
            "estimated_duration": "30 seconds",
            "risk_level": "medium",
            "requires_user_confirmation": True,
        },
    ],
    "total_estimated_duration": "45 seconds",
    "complexity": "moderate",
    "user_confirmations_required": 1,
}


class FakeOracle:
    """Oracle that replays canned answers and records every request."""

    def __init__(self, *answers: t.Union[str, dict, BaseException]) -> None:
        self.answers = list(answers)
        self.requests: list[OracleRequest] = []

    async def complete(self, request: OracleRequest) -> str:
        self.requests.append(request)
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, dict):
            return json.dumps(answer)
        return answer


class RecordingTools:
    """Tool handlers that record their calls in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, t.Any]]] = []
        self.contexts: list[t.Any] = []

    def global_search(self, parameters: dict[str, t.Any], context: t.Any) -> dict:
        self.calls.append(("global_search", parameters))
        self.contexts.append(context)
        return {"clients": [{"id": "c1", "name": "Simon Parrott"}]}

    def create_invoice(self, parameters: dict[str, t.Any], context: t.Any) -> dict:
        self.calls.append(("create_invoice", parameters))
        self.contexts.append(context)
        return {"id": "inv-1", "status": "draft invoice created", **parameters}

    def catalog(self) -> ToolCatalog:
        return ToolCatalog.from_mapping({
            "global_search": (self.global_search, "Search clients, leads and invoices"),
            "create_invoice": (self.create_invoice, "Create an invoice for a client"),
        })


@pytest.fixture
def tools() -> RecordingTools:
    return RecordingTools()


@pytest.fixture
def simon_plan() -> dict[str, t.Any]:
    return json.loads(json.dumps(SIMON_PLAN))


@pytest.fixture
def make_oracle() -> t.Callable[..., FakeOracle]:
    return FakeOracle
