"""Typed errors raised while planning and executing CRM plans."""
from __future__ import annotations

import typing as t


class PlannerError(Exception):
    """Base class for every error raised by the planner."""


# ---------------------------------
# SYNTHESIS
# ---------------------------------


class SynthesisError(PlannerError):
    """The oracle call failed or its response was not a single JSON object."""


class OracleTimeoutError(SynthesisError):
    """The oracle did not answer before the deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Plan oracle did not respond within {timeout:g} seconds")
        self.timeout = timeout


class UnknownToolWarning(UserWarning):
    """A synthesized step names a tool that is not in the catalog.

    Non-fatal while planning; the executor raises ToolNotFoundError if the
    step is actually reached.
    """

    def __init__(self, position: int, step_id: str, tool: str) -> None:
        super().__init__(f"Step {position} ({step_id}) uses unknown tool: {tool}")
        self.position = position
        self.step_id = step_id
        self.tool = tool


# ---------------------------------
# EXECUTION
# ---------------------------------


class ExecutionError(PlannerError):
    """A step failed; the rest of the plan was aborted.

    ``results`` holds whatever the run had recorded before the failure.
    """

    def __init__(self, step_id: str, message: str) -> None:
        super().__init__(message)
        self.step_id = step_id
        self.results: dict[str, t.Any] = {}


class MissingConfirmationError(ExecutionError):
    def __init__(self, step_id: str) -> None:
        super().__init__(
            step_id, f"Step {step_id} requires user confirmation but none provided"
        )


class UnsatisfiedDependencyError(ExecutionError):
    def __init__(self, step_id: str, dependency: str) -> None:
        super().__init__(
            step_id, f"Step {step_id} depends on {dependency} which hasn't completed"
        )
        self.dependency = dependency


class ParameterResolutionError(ExecutionError):
    """An extractor failed while filling a step reference; the cause is chained."""

    def __init__(self, step_id: str, parameter: str, cause: BaseException) -> None:
        super().__init__(
            step_id, f"Could not resolve parameter '{parameter}' for step {step_id}: {cause}"
        )
        self.parameter = parameter


class ToolNotFoundError(ExecutionError):
    def __init__(self, step_id: str, tool: str, available: t.Iterable[str] = ()) -> None:
        message = f"Tool '{tool}' not found for step {step_id}"
        available = list(available)
        if available:
            message += f". Available tools: {available}"
        super().__init__(step_id, message)
        self.tool = tool


class ToolHandlerError(ExecutionError):
    """The tool handler raised; the original exception is chained as __cause__."""

    def __init__(self, step_id: str, tool: str, cause: BaseException) -> None:
        super().__init__(step_id, f"Error executing step '{step_id}' ({tool}): {cause}")
        self.tool = tool


class StepTimeoutError(ExecutionError):
    def __init__(self, step_id: str, tool: str, timeout: float) -> None:
        super().__init__(
            step_id, f"Step {step_id} ({tool}) timed out after {timeout:g} seconds"
        )
        self.tool = tool
        self.timeout = timeout


class ExecutionCancelledError(ExecutionError):
    def __init__(self, step_id: str) -> None:
        super().__init__(step_id, f"Execution cancelled before step {step_id}")
