"""Self-planning CRM agent: synthesis and execution behind one object."""
from __future__ import annotations

import asyncio
import typing as t

from planner.catalog import ToolCatalog
from planner.config import PlannerSettings
from planner.executor import PlanExecutor, ProgressCallback
from planner.extractors import ExtractorRegistry
from planner.models import AgentContext, ExecutionPlan, PlanningResult
from planner.oracle import OpenAIPlanOracle, PlanOracle
from planner.retry import RetryPolicy
from planner.synthesizer import PlanSynthesizer


class SelfPlanningAgent:
    """Plans a request with the oracle, then runs the approved plan.

    The catalog is injected and only read; every call to ``execute_plan`` gets
    its own executor and results map, so concurrent runs do not interfere.
    """

    def __init__(
        self,
        context: AgentContext,
        catalog: ToolCatalog,
        oracle: t.Optional[PlanOracle] = None,
        *,
        settings: t.Optional[PlannerSettings] = None,
        extractors: t.Optional[ExtractorRegistry] = None,
    ) -> None:
        self.context = context
        self.catalog = catalog
        self.settings = settings or PlannerSettings.from_env()
        self._extractors = extractors
        self.synthesizer = PlanSynthesizer(
            catalog,
            oracle or OpenAIPlanOracle(model=self.settings.model),
            retry_policy=RetryPolicy(max_attempts=self.settings.max_attempts),
            timeout=self.settings.oracle_timeout,
            temperature=self.settings.temperature,
            block_unknown_tools=self.settings.block_unknown_tools,
        )

    async def generate_execution_plan(self, user_request: str) -> PlanningResult:
        return await self.synthesizer.generate_execution_plan(user_request)

    async def execute_plan(
        self,
        plan: ExecutionPlan,
        user_confirmations: t.Iterable[str] = (),
        *,
        progress_callback: t.Optional[ProgressCallback] = None,
        cancel_event: t.Optional[asyncio.Event] = None,
    ) -> dict[str, t.Any]:
        executor = PlanExecutor(
            self.catalog,
            extractors=self._extractors,
            step_timeout=self.settings.step_timeout,
            progress_callback=progress_callback,
        )
        return await executor.execute_plan(
            plan, user_confirmations, context=self.context, cancel_event=cancel_event
        )
