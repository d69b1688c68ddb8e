"""Command-line front end for the self-planning CRM agent.

Plans a free-text request against the demo CRM tool server, shows the plan and
the steps that need sign-off, and executes it with the confirmations given on
the command line.
"""
import asyncio
import dataclasses
import json
import logging
import typing as t

import click
from rich.console import Console
from rich.json import JSON
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from crm_server.server import mcp as crm_mcp
from planner import config
from planner.agent import SelfPlanningAgent
from planner.catalog import NO_DESCRIPTION, ToolCatalog
from planner.config import PlannerSettings
from planner.errors import ExecutionError, SynthesisError
from planner.formatting import format_plan_outputs
from planner.gate import missing_confirmations
from planner.models import AgentContext, PlanningResult, PlanStatus, PlanStep


console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def create_tools_table(catalog: ToolCatalog) -> Table:
    table = Table(title="🔧 CRM Tools", show_header=True, header_style="bold cyan")
    table.add_column("Tool Name", style="green")
    table.add_column("Description", style="white")
    for entry in catalog:
        table.add_row(entry.name, entry.description or NO_DESCRIPTION)
    return table


def create_plan_table(result: PlanningResult) -> Table:
    """Create a table with one row per plan step."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Step", style="cyan")
    table.add_column("Tool", style="yellow")
    table.add_column("Action", style="white")
    table.add_column("Dependencies", style="blue")
    table.add_column("Risk", style="red")
    table.add_column("Confirm", justify="center")

    for step in result.plan.steps:
        deps = ", ".join(step.dependencies) if step.dependencies else "(none)"
        table.add_row(
            step.id,
            step.tool,
            step.action,
            deps,
            step.risk_level,
            "✋" if step.requires_user_confirmation else "",
        )
    return table


def create_progress_callback() -> t.Callable[[int, int, PlanStep, t.Optional[t.Any]], None]:
    def progress_callback(current: int, total: int, step: PlanStep, result: t.Optional[t.Any]) -> None:
        if result is None:
            console.print(f"  [{current}/{total}] ▶ Executing: {step.tool}")
        else:
            console.print(f"  [{current}/{total}] ✓ Completed: {step.tool}")

    return progress_callback


async def async_main(
    request: str,
    list_tools: bool,
    dry_run: bool,
    confirmations: tuple[str, ...],
    confirm_all: bool,
    settings: PlannerSettings,
    studio_id: str,
    user_id: str,
) -> None:
    catalog = await ToolCatalog.from_mcp(crm_mcp)

    if list_tools:
        console.print(create_tools_table(catalog))
        return

    if not request:
        console.print(
            "[red]Error:[/red] Provide a request to plan.\n"
            "Use --list to see available tools."
        )
        raise SystemExit(1)

    agent = SelfPlanningAgent(
        AgentContext(studio_id=studio_id, user_id=user_id),
        catalog,
        settings=settings,
    )

    console.print(
        Panel.fit(
            f"[bold blue]🧠 Self-Planning CRM Agent[/bold blue]\n"
            f"Request: [bold]{request}[/bold]\n"
            f"Model: [cyan]{settings.model}[/cyan]",
            border_style="blue",
        )
    )

    console.print("\n[bold green]Creating execution plan...[/bold green]")
    try:
        result = await agent.generate_execution_plan(request)
    except SynthesisError as e:
        console.print(f"[red]Error creating plan:[/red] {e}")
        raise SystemExit(1)

    plan = result.plan
    console.print(f"\n[bold]📋 Execution Plan[/bold] ({plan.complexity}, ~{plan.total_estimated_duration})")
    console.print(f"[dim]Goal:[/dim] {plan.goal}\n")
    console.print(create_plan_table(result))

    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

    if result.status is PlanStatus.BLOCKED:
        console.print("[red]❌ Plan is blocked: it uses tools that are not in the catalog[/red]")
        raise SystemExit(1)

    if dry_run:
        console.print("\n[dim]Full plan (JSON):[/dim]")
        console.print(JSON(json.dumps(result.to_dict(), indent=2)))
        console.print("\n[yellow]Dry run mode - execution skipped[/yellow]")
        return

    approved = [step.id for step in result.confirmations_needed] if confirm_all else list(confirmations)
    outstanding = missing_confirmations(plan, approved)
    if outstanding:
        console.print("\n[yellow]These steps need confirmation before the plan can run:[/yellow]")
        for step in outstanding:
            console.print(f"  • {step.id}: {step.action}")
        console.print("Re-run with [bold]--confirm STEP_ID[/bold] for each step, or [bold]--yes[/bold].")
        raise SystemExit(1)

    console.print("\n[bold green]Executing plan...[/bold green]")
    try:
        results = await agent.execute_plan(
            plan, approved, progress_callback=create_progress_callback()
        )
    except ExecutionError as e:
        console.print(f"\n[red]❌ Execution failed at {e.step_id}:[/red] {e}")
        console.print(format_plan_outputs(e.results, failed_step=e.step_id, error=str(e)), markup=False)
        raise SystemExit(1)

    console.print("[green]✓ Plan executed successfully[/green]\n")
    console.print(format_plan_outputs(results), markup=False)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("request", required=False, default="")
@click.option("--list", "list_tools", is_flag=True, help="List all tools in the CRM catalog.")
@click.option("--dry-run", "dry_run", is_flag=True, help="Generate and display the plan without executing it.")
@click.option("--confirm", "confirmations", multiple=True, metavar="STEP_ID", help="Approve a gated step (repeatable).")
@click.option("--yes", "-y", "confirm_all", is_flag=True, help="Approve every step that requires confirmation.")
@click.option("--model", default=config.PLANNER_MODEL, show_default=True, help="OpenAI model to use for planning.")
@click.option("--studio-id", default="demo-studio", show_default=True, help="Studio the agent acts for.")
@click.option("--user-id", default="admin", show_default=True, help="User the agent acts for.")
def main(
    request: str,
    list_tools: bool,
    dry_run: bool,
    confirmations: tuple[str, ...],
    confirm_all: bool,
    model: str,
    studio_id: str,
    user_id: str,
) -> None:
    """Plan and execute a studio CRM request.

    REQUEST: Free-text request, e.g. "Find Simon Parrott and send him an invoice for €295".

    Examples:
        # List available tools
        planner --list

        # Show the plan only
        planner --dry-run "Find Simon Parrott and send him an invoice for €295"

        # Execute, approving step_2
        planner --confirm step_2 "Find Simon Parrott and send him an invoice for €295"
    """
    configure_logging(config.PLANNER_LOG_LEVEL)
    settings = PlannerSettings.from_env()
    if model != settings.model:
        settings = dataclasses.replace(settings, model=model)
    asyncio.run(
        async_main(request, list_tools, dry_run, confirmations, confirm_all, settings, studio_id, user_id)
    )


if __name__ == "__main__":
    main()
