"""Self-planning agent for the studio CRM.

Turns a free-text request into a dependency-ordered plan of tool invocations,
gates risky steps behind human confirmation, and executes the approved plan.
"""
from planner.agent import SelfPlanningAgent
from planner.catalog import ToolCatalog, ToolEntry
from planner.errors import (
    ExecutionCancelledError,
    ExecutionError,
    MissingConfirmationError,
    OracleTimeoutError,
    ParameterResolutionError,
    PlannerError,
    StepTimeoutError,
    SynthesisError,
    ToolHandlerError,
    ToolNotFoundError,
    UnknownToolWarning,
    UnsatisfiedDependencyError,
)
from planner.executor import ExecutionState, PlanExecutor, execute_plan
from planner.extractors import ExtractorRegistry, default_extractors
from planner.gate import confirmations_needed, missing_confirmations, planning_status
from planner.models import (
    AgentContext,
    ExecutionPlan,
    PlanningResult,
    PlanStatus,
    PlanStep,
    StepOutputRef,
)
from planner.oracle import OpenAIPlanOracle, OracleRequest, PlanOracle
from planner.retry import RetryPolicy
from planner.synthesizer import PlanSynthesizer
from planner.validator import unknown_tool_warnings, validate_and_enhance

__all__ = [
    "AgentContext",
    "ExecutionCancelledError",
    "ExecutionError",
    "ExecutionPlan",
    "ExecutionState",
    "ExtractorRegistry",
    "MissingConfirmationError",
    "OpenAIPlanOracle",
    "OracleRequest",
    "OracleTimeoutError",
    "ParameterResolutionError",
    "PlanExecutor",
    "PlanOracle",
    "PlanSynthesizer",
    "PlanStatus",
    "PlanStep",
    "PlannerError",
    "PlanningResult",
    "RetryPolicy",
    "SelfPlanningAgent",
    "StepOutputRef",
    "StepTimeoutError",
    "SynthesisError",
    "ToolCatalog",
    "ToolEntry",
    "ToolHandlerError",
    "ToolNotFoundError",
    "UnknownToolWarning",
    "UnsatisfiedDependencyError",
    "confirmations_needed",
    "default_extractors",
    "execute_plan",
    "missing_confirmations",
    "planning_status",
    "unknown_tool_warnings",
    "validate_and_enhance",
]
