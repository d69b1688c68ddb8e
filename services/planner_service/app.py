"""
FastAPI service for the self-planning CRM agent.

Exposes planning and execution as REST endpoints. Planning returns the plan
and the steps that need human sign-off; execution takes the plan back together
with the ids of the approved steps.
"""
from __future__ import annotations

import logging
import typing as t
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from crm_server.server import mcp as crm_mcp
from planner.agent import SelfPlanningAgent
from planner.catalog import ToolCatalog
from planner.config import PlannerSettings
from planner.errors import ExecutionError, SynthesisError
from planner.formatting import format_plan_outputs, to_jsonable
from planner.models import AgentContext
from planner.oracle import PlanOracle
from planner.validator import validate_and_enhance
from services.shared.models import (
    ExecutePlanRequest,
    ExecutePlanResponse,
    ExecutionErrorResponse,
    PlanningResponse,
    PlanRequest,
    ToolInfo,
)

logger = logging.getLogger(__name__)


def create_app(
    catalog: t.Optional[ToolCatalog] = None,
    oracle: t.Optional[PlanOracle] = None,
    settings: t.Optional[PlannerSettings] = None,
) -> FastAPI:
    """Build the service; tests inject a fake catalog and oracle."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the tool catalog on startup."""
        app.state.catalog = catalog or await ToolCatalog.from_mcp(crm_mcp)
        app.state.oracle = oracle
        app.state.settings = settings or PlannerSettings.from_env()
        yield

    app = FastAPI(
        title="Planner Service",
        description="REST API for self-planned studio CRM operations",
        version="1.0.0",
        lifespan=lifespan,
    )

    def build_agent(studio_id: str = "demo-studio", user_id: str = "admin") -> SelfPlanningAgent:
        return SelfPlanningAgent(
            AgentContext(studio_id=studio_id, user_id=user_id),
            app.state.catalog,
            app.state.oracle,
            settings=app.state.settings,
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "service": "planner-service"}

    @app.get("/tools", response_model=list[ToolInfo])
    async def list_tools() -> list[ToolInfo]:
        return [
            ToolInfo(name=entry.name, description=entry.description)
            for entry in app.state.catalog
        ]

    @app.post("/plan", response_model=PlanningResponse)
    async def create_plan(request: PlanRequest) -> PlanningResponse:
        """Synthesize a plan for a free-text request."""
        try:
            result = await build_agent().generate_execution_plan(request.request)
        except SynthesisError as e:
            logger.error("Planning failed: %s", e)
            raise HTTPException(status_code=502, detail=f"Planning failed: {e}")
        return PlanningResponse.model_validate(result.to_dict())

    @app.post(
        "/execute-plan",
        response_model=ExecutePlanResponse,
        responses={409: {"model": ExecutionErrorResponse}},
    )
    async def execute_plan(request: ExecutePlanRequest):
        """Execute a plan with the confirmations a human has granted."""
        plan = validate_and_enhance(request.plan.model_dump(), app.state.catalog)
        agent = build_agent(request.studio_id, request.user_id)
        try:
            results = await agent.execute_plan(plan, request.user_confirmations)
        except ExecutionError as e:
            body = ExecutionErrorResponse(
                error=str(e),
                kind=type(e).__name__,
                step_id=e.step_id,
                results=to_jsonable(e.results),
            )
            return JSONResponse(status_code=409, content=body.model_dump(mode="json"))
        return ExecutePlanResponse(
            results=to_jsonable(results),
            summary=format_plan_outputs(results),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from planner.config import PLANNER_SERVICE_PORT

    uvicorn.run(app, host="0.0.0.0", port=PLANNER_SERVICE_PORT)
