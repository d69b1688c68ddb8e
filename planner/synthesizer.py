"""Plan synthesis: free-text request -> oracle -> validated plan.

The synthesizer builds a prompt from the user's request and the capability
catalog, asks the plan-generation oracle for a single JSON object, and turns
the answer into a PlanningResult with the confirmation gate applied.
"""
from __future__ import annotations

import asyncio
import json
import logging
import typing as t

from prompts import load_prompt, render_prompt
from planner.catalog import ToolCatalog
from planner.errors import OracleTimeoutError, SynthesisError
from planner.gate import confirmations_needed, planning_status
from planner.models import PlanningResult
from planner.oracle import OracleRequest, PlanOracle
from planner.retry import RetryPolicy
from planner.validator import unknown_tool_warnings, validate_and_enhance

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = load_prompt("planner_system_prompt")
PLANNING_PROMPT_TEMPLATE = load_prompt("planning_prompt")


def build_planning_prompt(user_request: str, tool_catalog: str) -> str:
    """Embed the request and the tool listing in the planning template."""
    return render_prompt(
        PLANNING_PROMPT_TEMPLATE,
        {"TOOL_CATALOG": tool_catalog, "USER_REQUEST": user_request},
    )


def parse_plan_json(content: str) -> dict[str, t.Any]:
    """Decode the oracle's answer, which must be exactly one JSON object.

    Raises:
        SynthesisError: If the content is empty, not JSON, or not an object.
    """
    if not content or not content.strip():
        raise SynthesisError("Empty response from plan oracle")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SynthesisError(f"Invalid JSON response from plan oracle: {e}") from e
    if not isinstance(data, dict):
        raise SynthesisError(
            f"Plan oracle returned a JSON {type(data).__name__}, expected an object"
        )
    return data


class PlanSynthesizer:
    """Generates execution plans for CRM requests."""

    def __init__(
        self,
        catalog: ToolCatalog,
        oracle: PlanOracle,
        *,
        retry_policy: t.Optional[RetryPolicy] = None,
        timeout: t.Optional[float] = 60.0,
        temperature: float = 0.1,
        block_unknown_tools: bool = False,
    ) -> None:
        self._catalog = catalog
        self._oracle = oracle
        self._retry = retry_policy or RetryPolicy.none()
        self._timeout = timeout
        self._temperature = temperature
        self._block_unknown_tools = block_unknown_tools

    async def generate_execution_plan(self, user_request: str) -> PlanningResult:
        """Create an execution plan for ``user_request``.

        Raises:
            SynthesisError: If the oracle fails or its answer cannot be parsed.
        """
        logger.info("Self-planning agent analyzing request: %s", user_request)

        tool_catalog = self._catalog.describe()
        request = OracleRequest(
            system=SYSTEM_PROMPT,
            prompt=build_planning_prompt(user_request, tool_catalog),
            temperature=self._temperature,
            json_object=True,
        )

        content = await self._call_oracle(request)
        raw = parse_plan_json(content)
        plan = validate_and_enhance(raw, self._catalog)
        warnings = unknown_tool_warnings(plan, self._catalog)

        needed = confirmations_needed(plan)
        result = PlanningResult(
            plan=plan,
            status=planning_status(plan, warnings, self._block_unknown_tools),
            confirmations_needed=needed,
            warnings=list(warnings),
        )

        logger.info(
            "Generated execution plan with %d steps (%d require confirmation)",
            len(plan.steps),
            len(needed),
        )
        if needed:
            logger.info("Confirmations needed for: %s", ", ".join(step.id for step in needed))
        return result

    async def _call_oracle(self, request: OracleRequest) -> str:
        async def attempt() -> str:
            try:
                if self._timeout is None:
                    return await self._oracle.complete(request)
                return await asyncio.wait_for(self._oracle.complete(request), self._timeout)
            except asyncio.TimeoutError as e:
                raise OracleTimeoutError(self._timeout) from e

        try:
            async for retry_attempt in self._retry.retrying():
                with retry_attempt:
                    return await attempt()
        except SynthesisError:
            raise
        except Exception as e:
            raise SynthesisError(f"Plan oracle call failed: {e}") from e
