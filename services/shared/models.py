"""
Shared Pydantic models for REST API serialization.

This module contains the wire shapes of the planning service: the plan JSON
schema the oracle produces, plus request/response envelopes for planning and
execution.
"""
from __future__ import annotations

import typing as t
from pydantic import BaseModel, Field


RiskLevel = t.Literal["low", "medium", "high"]
Complexity = t.Literal["simple", "moderate", "complex"]
PlanStatus = t.Literal["ready", "requires_confirmation", "blocked"]


class PlanStep(BaseModel):
    """
    One tool invocation. Parameter values of the form "from_step_<id>"
    stand for the output of step <id>.
    """
    id: str
    action: str = ""
    tool: str
    parameters: dict[str, t.Any] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    reasoning: str = ""
    estimated_duration: str = "Unknown"
    risk_level: RiskLevel = "medium"
    requires_user_confirmation: bool = False


class ExecutionPlan(BaseModel):
    goal: str = "No goal specified"
    steps: list[PlanStep] = Field(default_factory=list)
    total_estimated_duration: str = "Unknown"
    complexity: Complexity = "moderate"
    user_confirmations_required: int = 0


class PlanRequest(BaseModel):
    request: str = Field(min_length=1)


class PlanningResponse(BaseModel):
    plan: ExecutionPlan
    status: PlanStatus
    confirmations_needed: list[PlanStep] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ExecutePlanRequest(BaseModel):
    plan: ExecutionPlan
    user_confirmations: list[str] = Field(default_factory=list)
    studio_id: str = "demo-studio"
    user_id: str = "admin"


class ExecutePlanResponse(BaseModel):
    results: dict[str, t.Any]
    summary: str


class ExecutionErrorResponse(BaseModel):
    error: str
    kind: str
    step_id: str
    results: dict[str, t.Any] = Field(default_factory=dict)


class ToolInfo(BaseModel):
    name: str
    description: str
