"""Turn untrusted oracle output into a canonical ExecutionPlan.

Nothing in here raises: the oracle's JSON is free-form, so missing or malformed
fields are replaced with safe defaults and problems are reported as warnings.
"""
from __future__ import annotations

import logging
import typing as t
from collections.abc import Mapping

from planner.catalog import ToolCatalog
from planner.errors import UnknownToolWarning
from planner.models import (
    COMPLEXITIES,
    RISK_LEVELS,
    STEP_REF_PREFIX,
    ExecutionPlan,
    PlanStep,
    RawPlan,
    StepOutputRef,
)

logger = logging.getLogger(__name__)

NO_GOAL = "No goal specified"
UNKNOWN_DURATION = "Unknown"


def validate_and_enhance(raw: t.Any, catalog: ToolCatalog) -> ExecutionPlan:
    """Normalize ``raw`` into an ExecutionPlan, logging steps with unknown tools.

    Steps naming an unknown tool are kept as they are; deciding whether to
    block them is up to the caller, see ``unknown_tool_warnings``.
    """
    data: RawPlan = raw if isinstance(raw, Mapping) else {}

    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list):
        raw_steps = []

    steps: list[PlanStep] = []
    for index, raw_step in enumerate(raw_steps, 1):
        if not isinstance(raw_step, Mapping):
            logger.warning("Skipping step %d: expected an object, got %s", index, type(raw_step).__name__)
            continue
        steps.append(_normalize_step(raw_step, index))

    complexity = data.get("complexity")
    plan = ExecutionPlan(
        goal=_text(data.get("goal")) or NO_GOAL,
        steps=steps,
        total_estimated_duration=_text(data.get("total_estimated_duration")) or UNKNOWN_DURATION,
        complexity=complexity if complexity in COMPLEXITIES else "moderate",
        user_confirmations_required=_count(data.get("user_confirmations_required")),
    )

    for warning in unknown_tool_warnings(plan, catalog):
        logger.warning("Step %d uses unknown tool: %s", warning.position, warning.tool)

    return plan


def unknown_tool_warnings(plan: ExecutionPlan, catalog: ToolCatalog) -> list[UnknownToolWarning]:
    """One warning per step whose tool is not in ``catalog``, by 1-based position."""
    return [
        UnknownToolWarning(position, step.id, step.tool)
        for position, step in enumerate(plan.steps, 1)
        if step.tool not in catalog
    ]


def parse_parameters(parameters: t.Any) -> dict[str, t.Any]:
    """Copy raw parameters, turning ``from_step_<id>`` strings into StepOutputRef."""
    if not isinstance(parameters, Mapping):
        return {}
    parsed: dict[str, t.Any] = {}
    for key, value in parameters.items():
        key = str(key)
        if isinstance(value, str) and value.startswith(STEP_REF_PREFIX) and len(value) > len(STEP_REF_PREFIX):
            parsed[key] = StepOutputRef(step_id=value[len(STEP_REF_PREFIX):], hint=key)
        else:
            parsed[key] = value
    return parsed


def _normalize_step(raw: Mapping, index: int) -> PlanStep:
    dependencies = raw.get("dependencies")
    risk_level = raw.get("risk_level")
    return PlanStep(
        id=_text(raw.get("id")) or f"step_{index}",
        action=_text(raw.get("action")),
        tool=_text(raw.get("tool")),
        parameters=parse_parameters(raw.get("parameters")),
        dependencies=[str(dep) for dep in dependencies] if isinstance(dependencies, list) else [],
        reasoning=_text(raw.get("reasoning")),
        estimated_duration=_text(raw.get("estimated_duration")) or UNKNOWN_DURATION,
        risk_level=risk_level if risk_level in RISK_LEVELS else "medium",
        requires_user_confirmation=raw.get("requires_user_confirmation") is True,
    )


def _text(value: t.Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _count(value: t.Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0
