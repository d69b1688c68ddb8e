"""Confirmation gate: which steps need human sign-off before they may run."""
from __future__ import annotations

import typing as t

from planner.errors import UnknownToolWarning
from planner.models import ExecutionPlan, PlanStatus, PlanStep


def confirmations_needed(plan: ExecutionPlan) -> list[PlanStep]:
    """Steps flagged ``requires_user_confirmation``, in plan order.

    Always derived from the steps themselves; the oracle's
    ``user_confirmations_required`` count is ignored.
    """
    return [step for step in plan.steps if step.requires_user_confirmation is True]


def planning_status(
    plan: ExecutionPlan,
    warnings: t.Sequence[UnknownToolWarning] = (),
    block_unknown_tools: bool = False,
) -> PlanStatus:
    if block_unknown_tools and warnings:
        return PlanStatus.BLOCKED
    if confirmations_needed(plan):
        return PlanStatus.REQUIRES_CONFIRMATION
    return PlanStatus.READY


def missing_confirmations(
    plan: ExecutionPlan, user_confirmations: t.Iterable[str]
) -> list[PlanStep]:
    """Gated steps whose id is not among ``user_confirmations``."""
    approved = set(user_confirmations)
    return [step for step in confirmations_needed(plan) if step.id not in approved]
