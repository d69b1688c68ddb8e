"""
Data models for self-planned CRM execution plans.

This module contains the dataclasses used to represent plans synthesized by the
plan-generation oracle, the steps inside them, and the result handed back to the
caller before execution.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import typing as t


RiskLevel = t.Literal["low", "medium", "high"]
Complexity = t.Literal["simple", "moderate", "complex"]

RISK_LEVELS: tuple[str, ...] = ("low", "medium", "high")
COMPLEXITIES: tuple[str, ...] = ("simple", "moderate", "complex")

# Wire prefix the oracle uses for "substitute output of step <id>"
STEP_REF_PREFIX = "from_step_"

# Untrusted decoded JSON straight from the oracle
RawPlan = t.Mapping[str, t.Any]


class PlanStatus(str, Enum):
    """Outcome of planning, before any step runs."""
    READY = "ready"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class StepOutputRef:
    """A parameter value standing for the output of an earlier step.

    ``hint`` is the name of the parameter being filled; extractors use it to
    pick the relevant field out of the referenced step's result.
    """
    step_id: str
    hint: str = ""

    def to_wire(self) -> str:
        return f"{STEP_REF_PREFIX}{self.step_id}"


@dataclass
class PlanStep:
    """Represents a single tool invocation in an execution plan."""
    id: str
    tool: str
    action: str = ""
    parameters: dict[str, t.Any] = field(default_factory=dict)
    dependencies: list[str] = field(default_factory=list)
    reasoning: str = ""
    estimated_duration: str = "Unknown"
    risk_level: RiskLevel = "medium"
    requires_user_confirmation: bool = False

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "id": self.id,
            "action": self.action,
            "tool": self.tool,
            "parameters": {
                key: value.to_wire() if isinstance(value, StepOutputRef) else value
                for key, value in self.parameters.items()
            },
            "dependencies": list(self.dependencies),
            "reasoning": self.reasoning,
            "estimated_duration": self.estimated_duration,
            "risk_level": self.risk_level,
            "requires_user_confirmation": self.requires_user_confirmation,
        }


@dataclass
class ExecutionPlan:
    """Represents a complete, validated plan. Step order is execution order."""
    goal: str
    steps: list[PlanStep] = field(default_factory=list)
    total_estimated_duration: str = "Unknown"
    complexity: Complexity = "moderate"
    # Advisory only; never used to decide which steps need confirmation
    user_confirmations_required: int = 0

    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "goal": self.goal,
            "steps": [step.to_dict() for step in self.steps],
            "total_estimated_duration": self.total_estimated_duration,
            "complexity": self.complexity,
            "user_confirmations_required": self.user_confirmations_required,
        }


@dataclass
class PlanningResult:
    """Plan plus everything the caller needs to ask a human for sign-off."""
    plan: ExecutionPlan
    status: PlanStatus
    confirmations_needed: list[PlanStep] = field(default_factory=list)
    warnings: list[t.Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "plan": self.plan.to_dict(),
            "status": self.status.value,
            "confirmations_needed": [step.to_dict() for step in self.confirmations_needed],
            "warnings": [str(warning) for warning in self.warnings],
        }


@dataclass
class AgentContext:
    """Execution context handed verbatim to every tool handler."""
    studio_id: str
    user_id: str
    studio_name: str = ""
    mode: str = "auto_safe"
    currency: str = "EUR"
    policy: dict[str, t.Any] = field(default_factory=dict)
