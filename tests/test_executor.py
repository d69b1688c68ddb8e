"""Tests for the plan executor.

This module tests in-order execution, confirmation gating, dependency checks,
parameter resolution, and error handling.
"""
import asyncio
import typing as t
from dataclasses import dataclass

import pytest

from planner.catalog import ToolCatalog
from planner.errors import (
    ExecutionCancelledError,
    MissingConfirmationError,
    ParameterResolutionError,
    StepTimeoutError,
    ToolHandlerError,
    ToolNotFoundError,
    UnsatisfiedDependencyError,
)
from planner.executor import ExecutionState, PlanExecutor, execute_plan
from planner.extractors import ExtractorRegistry
from planner.models import AgentContext, ExecutionPlan, PlanStep, StepOutputRef
from planner.validator import validate_and_enhance


def make_plan(*steps: PlanStep) -> ExecutionPlan:
    return ExecutionPlan(goal="test", steps=list(steps))


def returning(value: t.Any, calls: t.Optional[list[str]] = None, name: str = "") -> t.Callable:
    def handler(parameters: dict, context: t.Any) -> t.Any:
        if calls is not None:
            calls.append(name)
        return value
    return handler


@pytest.mark.asyncio
async def test_steps_run_in_declaration_order_one_at_a_time() -> None:
    """Handlers are invoked in array order and never overlap."""
    order: list[str] = []
    active = 0
    max_active = 0

    def tracked(name: str) -> t.Callable:
        async def handler(parameters: dict, context: t.Any) -> str:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            order.append(name)
            await asyncio.sleep(0.01)
            active -= 1
            return name
        return handler

    catalog = ToolCatalog.from_mapping({"a": tracked("A"), "b": tracked("B"), "c": tracked("C")})
    plan = make_plan(
        PlanStep(id="A", tool="a"),
        PlanStep(id="B", tool="b"),
        PlanStep(id="C", tool="c"),
    )

    results = await PlanExecutor(catalog).execute_plan(plan)

    assert order == ["A", "B", "C"]
    assert max_active == 1
    assert results == {"A": "A", "B": "B", "C": "C"}


@pytest.mark.asyncio
async def test_missing_confirmation_runs_earlier_steps_only(tools, simon_plan) -> None:
    plan = validate_and_enhance(simon_plan, tools.catalog())

    with pytest.raises(MissingConfirmationError) as exc_info:
        await PlanExecutor(tools.catalog()).execute_plan(plan, [])

    assert exc_info.value.step_id == "step_2"
    assert "step_2" in str(exc_info.value)
    assert [name for name, _ in tools.calls] == ["global_search"]
    assert list(exc_info.value.results) == ["step_1"]


@pytest.mark.asyncio
async def test_confirmed_plan_runs_every_step(tools, simon_plan) -> None:
    plan = validate_and_enhance(simon_plan, tools.catalog())

    results = await PlanExecutor(tools.catalog()).execute_plan(plan, ["step_2"])

    assert [name for name, _ in tools.calls] == ["global_search", "create_invoice"]
    assert set(results) == {"step_1", "step_2"}


@pytest.mark.asyncio
async def test_client_id_is_extracted_from_search_result(tools, simon_plan) -> None:
    """``from_step_1`` resolves to step_1 and the client id is pulled out of it."""
    plan = validate_and_enhance(simon_plan, tools.catalog())

    await PlanExecutor(tools.catalog()).execute_plan(plan, ["step_2"])

    _, invoice_params = tools.calls[1]
    assert invoice_params == {"client_id": "c1", "sku": "FAMILY-BASIC", "amount": 295}


@pytest.mark.asyncio
async def test_parameter_substitution_uses_step_id_suffix() -> None:
    received: dict[str, t.Any] = {}

    def invoice(parameters: dict, context: t.Any) -> str:
        received.update(parameters)
        return "ok"

    catalog = ToolCatalog.from_mapping({
        "search": returning({"clients": [{"id": "c1"}]}),
        "invoice": invoice,
    })
    plan = validate_and_enhance(
        {
            "steps": [
                {"id": "A", "tool": "search"},
                {"id": "B", "tool": "invoice", "parameters": {"client_id": "from_step_A"}, "dependencies": ["A"]},
            ]
        },
        catalog,
    )

    await PlanExecutor(catalog).execute_plan(plan)

    assert received == {"client_id": "c1"}


@pytest.mark.asyncio
async def test_client_id_falls_back_to_match_then_raw_result() -> None:
    received: list[dict] = []

    def capture(parameters: dict, context: t.Any) -> str:
        received.append(parameters)
        return "ok"

    catalog = ToolCatalog.from_mapping({
        "lookup": returning({"data": {"match": {"id": "c7"}}}),
        "other": returning({"total": 3}),
        "capture": capture,
    })
    plan = make_plan(
        PlanStep(id="s1", tool="lookup"),
        PlanStep(id="s2", tool="other"),
        PlanStep(
            id="s3",
            tool="capture",
            parameters={
                "client_id": StepOutputRef("s1", "client_id"),
                "stats": StepOutputRef("s2", "stats"),
                "sku": "PORTRAIT",
            },
        ),
    )

    await PlanExecutor(catalog).execute_plan(plan)

    assert received == [{"client_id": "c7", "stats": {"total": 3}, "sku": "PORTRAIT"}]


@pytest.mark.asyncio
async def test_dependency_declared_later_aborts_before_any_handler() -> None:
    calls: list[str] = []
    catalog = ToolCatalog.from_mapping({
        "tool_a": returning("a", calls, "a"),
        "tool_b": returning("b", calls, "b"),
    })
    plan = make_plan(
        PlanStep(id="b", tool="tool_b", dependencies=["a"]),
        PlanStep(id="a", tool="tool_a"),
    )
    executor = PlanExecutor(catalog)

    with pytest.raises(UnsatisfiedDependencyError) as exc_info:
        await executor.execute_plan(plan)

    assert exc_info.value.step_id == "b"
    assert exc_info.value.dependency == "a"
    assert calls == []
    assert executor.state is ExecutionState.ABORTED


@pytest.mark.asyncio
async def test_missing_dependency_stops_later_steps() -> None:
    calls: list[str] = []
    catalog = ToolCatalog.from_mapping({
        "tool_b": returning("b", calls, "b"),
        "tool_c": returning("c", calls, "c"),
    })
    plan = make_plan(
        PlanStep(id="B", tool="tool_b", dependencies=["A"]),
        PlanStep(id="C", tool="tool_c"),
    )

    with pytest.raises(UnsatisfiedDependencyError):
        await PlanExecutor(catalog).execute_plan(plan)

    assert calls == []


@pytest.mark.asyncio
async def test_falsy_results_still_satisfy_dependencies() -> None:
    catalog = ToolCatalog.from_mapping({
        "empty": returning([]),
        "next": returning("done"),
    })
    plan = make_plan(
        PlanStep(id="s1", tool="empty"),
        PlanStep(id="s2", tool="next", dependencies=["s1"]),
    )

    results = await PlanExecutor(catalog).execute_plan(plan)

    assert results == {"s1": [], "s2": "done"}


@pytest.mark.asyncio
async def test_reference_to_step_without_result_passes_placeholder_through() -> None:
    seen: list[dict] = []

    def note(parameters: dict, context: t.Any) -> str:
        seen.append(parameters)
        return "noted"

    catalog = ToolCatalog.from_mapping({"note": note})
    plan = make_plan(
        PlanStep(id="s1", tool="note", parameters={"ref": StepOutputRef("elsewhere", "ref"), "n": 1}),
    )

    results = await PlanExecutor(catalog).execute_plan(plan)

    assert results == {"s1": "noted"}
    assert seen == [{"ref": "from_step_elsewhere", "n": 1}]


@pytest.mark.asyncio
async def test_failing_extractor_is_wrapped_and_aborts() -> None:
    calls: list[str] = []
    extractors = ExtractorRegistry()
    extractors.register("client_id", lambda result: result["clients"][0]["id"])
    catalog = ToolCatalog.from_mapping({
        "search": returning({}, calls, "search"),
        "invoice": returning("x", calls, "invoice"),
    })
    plan = make_plan(
        PlanStep(id="s1", tool="search"),
        PlanStep(id="s2", tool="invoice", parameters={"client_id": StepOutputRef("s1", "client_id")}),
    )
    executor = PlanExecutor(catalog, extractors=extractors)

    with pytest.raises(ParameterResolutionError) as exc_info:
        await executor.execute_plan(plan)

    assert exc_info.value.step_id == "s2"
    assert exc_info.value.parameter == "client_id"
    assert isinstance(exc_info.value.__cause__, KeyError)
    assert exc_info.value.results == {"s1": {}}
    assert calls == ["search"]
    assert executor.state is ExecutionState.ABORTED


@pytest.mark.asyncio
async def test_failing_progress_callback_aborts_the_run() -> None:
    def callback(current: int, total: int, step: PlanStep, result: t.Any) -> None:
        if result is not None:
            raise RuntimeError("display broke")

    catalog = ToolCatalog.from_mapping({"a": returning("A")})
    executor = PlanExecutor(catalog, progress_callback=callback)

    with pytest.raises(RuntimeError):
        await executor.execute_plan(make_plan(PlanStep(id="A", tool="a")))

    assert executor.state is ExecutionState.ABORTED


@pytest.mark.asyncio
async def test_unknown_tool_fails_before_any_handler() -> None:
    calls: list[str] = []
    catalog = ToolCatalog.from_mapping({"global_search": returning({}, calls, "search")})
    plan = make_plan(
        PlanStep(id="step_1", tool="nonexistent_tool"),
        PlanStep(id="step_2", tool="global_search"),
    )

    with pytest.raises(ToolNotFoundError) as exc_info:
        await PlanExecutor(catalog).execute_plan(plan)

    assert exc_info.value.tool == "nonexistent_tool"
    assert calls == []


@pytest.mark.asyncio
async def test_tool_lookup_is_case_sensitive() -> None:
    catalog = ToolCatalog.from_mapping({"global_search": returning({})})
    plan = make_plan(PlanStep(id="s1", tool="Global_Search"))

    with pytest.raises(ToolNotFoundError):
        await PlanExecutor(catalog).execute_plan(plan)


@pytest.mark.asyncio
async def test_handler_failure_is_wrapped_and_aborts() -> None:
    calls: list[str] = []

    def failing(parameters: dict, context: t.Any) -> None:
        raise ValueError("Intentional failure")

    catalog = ToolCatalog.from_mapping({
        "ok": returning("fine", calls, "ok"),
        "fail": failing,
        "after": returning("never", calls, "after"),
    })
    plan = make_plan(
        PlanStep(id="s1", tool="ok"),
        PlanStep(id="s2", tool="fail"),
        PlanStep(id="s3", tool="after"),
    )

    with pytest.raises(ToolHandlerError) as exc_info:
        await PlanExecutor(catalog).execute_plan(plan)

    assert exc_info.value.step_id == "s2"
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert "Intentional failure" in str(exc_info.value)
    assert exc_info.value.results == {"s1": "fine"}
    assert calls == ["ok"]


@pytest.mark.asyncio
async def test_context_is_passed_through_to_handlers(tools, simon_plan) -> None:
    context = AgentContext(studio_id="studio-1", user_id="admin")
    plan = validate_and_enhance(simon_plan, tools.catalog())

    await PlanExecutor(tools.catalog()).execute_plan(plan, ["step_2"], context=context)

    assert tools.contexts == [context, context]


@pytest.mark.asyncio
async def test_step_timeout_aborts_the_run() -> None:
    async def slow(parameters: dict, context: t.Any) -> str:
        await asyncio.sleep(1)
        return "late"

    catalog = ToolCatalog.from_mapping({"slow": slow})
    plan = make_plan(PlanStep(id="s1", tool="slow"))

    with pytest.raises(StepTimeoutError) as exc_info:
        await PlanExecutor(catalog, step_timeout=0.05).execute_plan(plan)

    assert exc_info.value.step_id == "s1"


@pytest.mark.asyncio
async def test_cancellation_is_checked_between_steps() -> None:
    cancel = asyncio.Event()
    calls: list[str] = []

    async def first(parameters: dict, context: t.Any) -> str:
        calls.append("first")
        cancel.set()
        return "one"

    catalog = ToolCatalog.from_mapping({"first": first, "second": returning("two", calls, "second")})
    plan = make_plan(PlanStep(id="s1", tool="first"), PlanStep(id="s2", tool="second"))

    with pytest.raises(ExecutionCancelledError) as exc_info:
        await PlanExecutor(catalog).execute_plan(plan, cancel_event=cancel)

    assert exc_info.value.step_id == "s2"
    assert exc_info.value.results == {"s1": "one"}
    assert calls == ["first"]


@pytest.mark.asyncio
async def test_progress_callback_is_called() -> None:
    callback_calls: list[tuple[int, int, str, bool]] = []

    def callback(current: int, total: int, step: PlanStep, result: t.Optional[t.Any]) -> None:
        callback_calls.append((current, total, step.id, result is not None))

    catalog = ToolCatalog.from_mapping({"task": returning("done")})
    plan = make_plan(PlanStep(id="s1", tool="task"), PlanStep(id="s2", tool="task"))

    await PlanExecutor(catalog, progress_callback=callback).execute_plan(plan)

    assert callback_calls == [
        (1, 2, "s1", False),
        (1, 2, "s1", True),
        (2, 2, "s2", False),
        (2, 2, "s2", True),
    ]


@pytest.mark.asyncio
async def test_custom_extractor_per_tool() -> None:
    @dataclass
    class Booking:
        reference: str

    received: dict[str, t.Any] = {}

    def confirm(parameters: dict, context: t.Any) -> str:
        received.update(parameters)
        return "sent"

    extractors = ExtractorRegistry()
    extractors.register("booking_ref", lambda result: result.reference, tool="send_confirmation")
    catalog = ToolCatalog.from_mapping({
        "book": returning(Booking(reference="BK-9")),
        "send_confirmation": confirm,
    })
    plan = make_plan(
        PlanStep(id="s1", tool="book"),
        PlanStep(id="s2", tool="send_confirmation", parameters={"booking_ref": StepOutputRef("s1", "booking_ref")}),
    )

    await PlanExecutor(catalog, extractors=extractors).execute_plan(plan)

    assert received == {"booking_ref": "BK-9"}


@pytest.mark.asyncio
async def test_module_level_execute_plan_completes() -> None:
    catalog = ToolCatalog.from_mapping({"task": returning(1)})
    results = await execute_plan(make_plan(PlanStep(id="only", tool="task")), catalog)
    assert results == {"only": 1}
