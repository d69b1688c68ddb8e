"""Execution engine for self-planned CRM plans.

This module handles the execution of execution plans, including confirmation
gating, dependency checks, parameter resolution, and tool invocation.

Steps run strictly one at a time in the order the plan declares them. A step
whose dependency has not produced a result yet fails the run; the executor
does not reorder steps.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import typing as t
from enum import Enum

from planner.catalog import ToolCatalog
from planner.errors import (
    ExecutionCancelledError,
    ExecutionError,
    MissingConfirmationError,
    ParameterResolutionError,
    StepTimeoutError,
    ToolHandlerError,
    ToolNotFoundError,
    UnsatisfiedDependencyError,
)
from planner.extractors import ExtractorRegistry, default_extractors
from planner.models import ExecutionPlan, PlanStep, StepOutputRef

logger = logging.getLogger(__name__)

ProgressCallback = t.Callable[[int, int, PlanStep, t.Optional[t.Any]], None]


class ExecutionState(Enum):
    """State of one executor run."""
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"


class PlanExecutor:
    """Runs a validated plan against a capability catalog."""

    def __init__(
        self,
        catalog: ToolCatalog,
        *,
        extractors: t.Optional[ExtractorRegistry] = None,
        step_timeout: t.Optional[float] = None,
        progress_callback: t.Optional[ProgressCallback] = None,
    ) -> None:
        self._catalog = catalog
        self._extractors = extractors or default_extractors()
        self._step_timeout = step_timeout
        self._progress_callback = progress_callback
        self.state = ExecutionState.NOT_STARTED

    async def execute_plan(
        self,
        plan: ExecutionPlan,
        user_confirmations: t.Iterable[str] = (),
        context: t.Any = None,
        cancel_event: t.Optional[asyncio.Event] = None,
    ) -> dict[str, t.Any]:
        """Execute ``plan`` and return the results keyed by step id.

        Args:
            plan: The plan to execute
            user_confirmations: Ids of gated steps a human has approved
            context: Passed through verbatim to every tool handler
            cancel_event: When set, the run stops before the next step starts

        Returns:
            Dictionary mapping step IDs to their results

        Raises:
            ExecutionError: On the first failing step; the remaining steps
                are not run and completed steps are not rolled back.
        """
        approved = set(user_confirmations)
        results: dict[str, t.Any] = {}
        total = len(plan.steps)

        self.state = ExecutionState.RUNNING
        logger.info("Executing plan: %s", plan.goal)

        try:
            for number, step in enumerate(plan.steps, 1):
                try:
                    if cancel_event is not None and cancel_event.is_set():
                        raise ExecutionCancelledError(step.id)
                    logger.info("Executing step %s: %s", step.id, step.action or step.tool)
                    if self._progress_callback:
                        self._progress_callback(number, total, step, None)

                    result = await self._execute_step(plan, step, approved, results, context)
                except ExecutionError as e:
                    e.results = dict(results)
                    logger.error("Step %s failed: %s", step.id, e)
                    raise

                results[step.id] = result
                logger.info("Step %s completed successfully", step.id)
                if self._progress_callback:
                    self._progress_callback(number, total, step, result)
        except BaseException:
            self.state = ExecutionState.ABORTED
            raise

        self.state = ExecutionState.COMPLETED
        logger.info("Plan execution completed successfully")
        return results

    async def _execute_step(
        self,
        plan: ExecutionPlan,
        step: PlanStep,
        approved: set[str],
        results: dict[str, t.Any],
        context: t.Any,
    ) -> t.Any:
        if step.requires_user_confirmation and step.id not in approved:
            raise MissingConfirmationError(step.id)

        for dep in step.dependencies:
            if dep not in results:
                raise UnsatisfiedDependencyError(step.id, dep)

        parameters = self.resolve_parameters(plan, step, results)

        entry = self._catalog.get(step.tool)
        if entry is None:
            raise ToolNotFoundError(step.id, step.tool, self._catalog.names())

        invocation = _invoke(entry.handler, parameters, context)
        if self._step_timeout is not None:
            # A thread running a sync handler keeps going after the deadline;
            # only the wait is abandoned.
            invocation = _with_deadline(invocation, step, self._step_timeout)
        try:
            return await invocation
        except StepTimeoutError:
            raise
        except Exception as e:
            raise ToolHandlerError(step.id, step.tool, e) from e

    def resolve_parameters(
        self,
        plan: ExecutionPlan,
        step: PlanStep,
        results: dict[str, t.Any],
    ) -> dict[str, t.Any]:
        """Working copy of ``step.parameters`` with step references substituted.

        A reference to a step that has no recorded result is passed through
        as its literal ``from_step_<id>`` string.

        Raises:
            ParameterResolutionError: If an extractor fails on a recorded result
        """
        resolved: dict[str, t.Any] = {}
        for key, value in step.parameters.items():
            if not isinstance(value, StepOutputRef):
                resolved[key] = value
                continue
            ref_id = _referenced_step_id(plan, value.step_id)
            if ref_id not in results:
                logger.warning("Step %s references %s, which has no result", step.id, ref_id)
                resolved[key] = value.to_wire()
                continue
            try:
                resolved[key] = self._extractors.extract(results[ref_id], value, step.tool)
            except Exception as e:
                raise ParameterResolutionError(step.id, key, e) from e
        return resolved


def _referenced_step_id(plan: ExecutionPlan, step_id: str) -> str:
    """Map a ``from_step_<n>`` suffix to a step id.

    Oracles often write ``from_step_1`` for the step whose id is ``step_1``.
    """
    ids = plan.step_ids()
    if step_id not in ids and f"step_{step_id}" in ids:
        return f"step_{step_id}"
    return step_id


async def _with_deadline(invocation: t.Awaitable[t.Any], step: PlanStep, timeout: float) -> t.Any:
    task = asyncio.ensure_future(invocation)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if not done:
        task.cancel()
        raise StepTimeoutError(step.id, step.tool, timeout)
    return task.result()


async def _invoke(handler: t.Callable[..., t.Any], parameters: dict[str, t.Any], context: t.Any) -> t.Any:
    if inspect.iscoroutinefunction(handler):
        return await handler(parameters, context)
    # Synchronous handler - run in thread pool
    result = await asyncio.to_thread(handler, parameters, context)
    if inspect.isawaitable(result):
        return await result
    return result


async def execute_plan(
    plan: ExecutionPlan,
    catalog: ToolCatalog,
    user_confirmations: t.Iterable[str] = (),
    context: t.Any = None,
    progress_callback: t.Optional[ProgressCallback] = None,
) -> dict[str, t.Any]:
    """Execute ``plan`` with a fresh PlanExecutor and default extractors."""
    executor = PlanExecutor(catalog, progress_callback=progress_callback)
    return await executor.execute_plan(plan, user_confirmations, context)
