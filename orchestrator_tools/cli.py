from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import typer

from orchestrator_tools.core.contracts import AssignRequest
from orchestrator_tools.core.definitions import TOOL_DEFINITIONS
from orchestrator_tools.core.tools import OrchestratorTools
from subagent_planner.config import load_settings
from subagent_planner.core.store.plan_store import PlanStore

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback() -> None:
    """orchestrator-tools: tool definitions and tool-call dispatch for the decision loop."""


@app.command("definitions")
def definitions_cmd() -> None:
    """Print the JSON tool definitions."""
    typer.echo(json.dumps(TOOL_DEFINITIONS, indent=2))


@app.command("call")
def call_cmd(
    plan_id: str = typer.Argument(..., help="Plan id the tool call is scoped to"),
    tool: str = typer.Argument(..., help="register_worker | plan_graph | assign"),
    args: str = typer.Option("{}", "--args", help="Tool arguments as a JSON object"),
    store: Optional[str] = typer.Option(None, "--store", help="Plan store file"),
    auto_approve: bool = typer.Option(False, "--auto-approve", help="Skip assignment approval"),
) -> None:
    """Dispatch one tool call and print its result string."""
    settings = load_settings(store_path=store, auto_approve=True if auto_approve else None)
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.WARNING))

    try:
        parsed = json.loads(args)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: --args is not valid JSON: {e}", err=True)
        raise typer.Exit(code=2)

    def approve(req: AssignRequest) -> bool:
        return typer.confirm(f"Assign task '{req.task}' to '{req.worker}'?", default=True)

    tools = OrchestratorTools(
        PlanStore(settings.store_path),
        plan_id,
        approver=approve,
        auto_approve=settings.auto_approve,
    )
    result = asyncio.run(tools.dispatch(tool, parsed))
    typer.echo(result)
    if result.startswith("Error:"):
        raise typer.Exit(code=2)


def main() -> None:
    app(prog_name="orchestrator-tools")


if __name__ == "__main__":
    main()


cli = typer.main.get_command(app)
