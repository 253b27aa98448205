from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from subagent_planner.config import Settings, load_settings
from subagent_planner.core.assign.assign_task import assign_task
from subagent_planner.core.errors import PlanError, PlanLoadError, PlanValidationError
from subagent_planner.core.graph.plan_graph import plan_graph
from subagent_planner.core.io.load_graph import load_graph_file
from subagent_planner.core.model import Plan
from subagent_planner.core.registry.register_worker import register_worker
from subagent_planner.core.store.codec import plan_to_dict
from subagent_planner.core.store.plan_store import PlanStore, plan_summary
from subagent_planner.core.validate.validate_graph import (
    collect_graph_errors,
    parse_nodes,
    ready_tasks,
    summarize_graph,
)

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


@app.callback()
def _callback(
    ctx: typer.Context,
    store: Optional[str] = typer.Option(
        None, "--store", help="Plan store file (env: SUBAGENT_PLANNER_STORE)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (env: SUBAGENT_PLANNER_LOG_LEVEL)"
    ),
    auto_approve: bool = typer.Option(
        False,
        "--auto-approve",
        help="Skip the assignment confirmation (env: SUBAGENT_PLANNER_AUTO_APPROVE)",
    ),
) -> None:
    """Subagent planner CLI."""
    settings = load_settings(
        store_path=store,
        auto_approve=True if auto_approve else None,
        log_level=log_level,
    )
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )
    ctx.obj = settings


def _settings(ctx: typer.Context) -> Settings:
    settings = ctx.obj
    if not isinstance(settings, Settings):
        settings = load_settings()
    return settings


def _store(ctx: typer.Context) -> PlanStore:
    return PlanStore(_settings(ctx).store_path)


def _check_format(format: str, command: str) -> None:
    if format not in ("text", "json"):
        err = PlanValidationError(
            code=f"E_{command.upper()}_UNKNOWN_FORMAT",
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a task graph file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a task graph file without touching the store."""
    _check_format(format, "validate")

    def _emit_json(ok: bool, *, exit_code: int, errors: list[PlanError], summary: dict | None) -> None:
        payload = {
            "tool": "subagent-planner",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [e.to_item() for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        doc = load_graph_file(path)
    except PlanLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    nodes, errors = parse_nodes(doc["nodes"], file=doc["__file__"])
    if nodes is not None:
        errors = collect_graph_errors(nodes, file=doc["__file__"])

    if errors or nodes is None:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    if format == "text":
        typer.echo(summarize_graph(nodes))
        return

    status_counts: dict[str, int] = {}
    for n in nodes:
        status_counts[n.status] = status_counts.get(n.status, 0) + 1
    _emit_json(
        True,
        exit_code=0,
        errors=[],
        summary={
            "task_count": len(nodes),
            "status_counts": status_counts,
            "ready": ready_tasks(nodes),
        },
    )


@app.command("plans")
def plans(
    ctx: typer.Context,
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List stored plans."""
    _check_format(format, "plans")
    all_plans = asyncio.run(_store(ctx).list_plans())

    if format == "json":
        typer.echo(json.dumps([plan_summary(p) for p in all_plans], indent=2, sort_keys=True))
        return

    if not all_plans:
        console.print("No plans.")
        return

    table = Table(title="Plans")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Workers")
    table.add_column("Tasks")
    table.add_column("Assignments")
    for p in all_plans:
        s = plan_summary(p)
        table.add_row(
            p.id,
            p.title,
            str(s["worker_count"]),
            str(s["task_count"]),
            str(s["assignment_count"]),
        )
    console.print(table)


@app.command("show")
def show(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show one plan: workers, task graph and assignments."""
    _check_format(format, "show")
    plan = asyncio.run(_store(ctx).get_plan(plan_id))
    if plan is None:
        _print_errors([PlanLoadError.plan_not_found(plan_id)])
        raise typer.Exit(code=1)

    if format == "json":
        typer.echo(json.dumps(plan_to_dict(plan), indent=2, sort_keys=True, default=str))
        return

    _print_plan(plan)


@app.command("delete")
def delete(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id"),
) -> None:
    """Delete a plan from the store."""
    if not asyncio.run(_store(ctx).delete_plan(plan_id)):
        _print_errors([PlanLoadError.plan_not_found(plan_id)])
        raise typer.Exit(code=1)
    typer.echo(f"OK: deleted plan {plan_id}")


@app.command("register-worker")
def register_worker_cmd(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id"),
    name: str = typer.Argument(..., help="Worker name"),
    role: str = typer.Option("", "--role", help="Role description for the worker"),
) -> None:
    """Create, update or reuse a named worker."""
    if not name.strip():
        _print_errors(
            [PlanValidationError(code="E_REQUIRED_FIELD", message="worker name must be non-empty", path="name")]
        )
        raise typer.Exit(code=2)

    outcome = asyncio.run(register_worker(_store(ctx), plan_id, name, role))
    if outcome == "rejected":
        _print_errors(
            [
                PlanValidationError(
                    code="E_RESERVED_WORKER",
                    message=f"worker name '{name}' is reserved for self-delegation",
                    path="name",
                )
            ]
        )
        raise typer.Exit(code=2)
    typer.echo(f"OK: worker '{name}' {outcome}")


@app.command("plan-graph")
def plan_graph_cmd(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id"),
    path: str = typer.Argument(..., help="Task graph file (.yaml/.yml/.json)"),
) -> None:
    """Replace a plan's task graph with the graph in a file (empty file clears it)."""
    try:
        doc = load_graph_file(path)
    except PlanLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    nodes, errors = parse_nodes(doc["nodes"], file=doc["__file__"])
    if errors or nodes is None:
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    outcome = asyncio.run(plan_graph(_store(ctx), plan_id, nodes))
    if outcome.error is not None:
        _print_errors([outcome.error])
        raise typer.Exit(code=2)
    typer.echo(f"OK: task graph {outcome.status} ({len(nodes)} tasks)")


@app.command("clear-graph")
def clear_graph(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id"),
) -> None:
    """Clear a plan's task graph."""
    asyncio.run(plan_graph(_store(ctx), plan_id, []))
    typer.echo("OK: task graph cleared")


@app.command("assign")
def assign(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id"),
    worker: str = typer.Argument(..., help="Registered worker name, or __self__"),
    task: str = typer.Argument(..., help="Task name from the graph"),
    instructions: str = typer.Option("", "--instructions", "-i", help="Instructions for the worker"),
) -> None:
    """Assign a planned task to a worker."""
    settings = _settings(ctx)
    if not settings.auto_approve:
        if not typer.confirm(f"Assign task '{task}' to '{worker}'?", default=True):
            typer.echo("Aborted: assignment not approved", err=True)
            raise typer.Exit(code=1)

    outcome = asyncio.run(assign_task(_store(ctx), plan_id, worker, task, instructions))
    if outcome.error is not None:
        _print_errors([outcome.error])
        raise typer.Exit(code=2)
    typer.echo(f"OK: {outcome.outcome}")


def _print_plan(plan: Plan) -> None:
    console.print(f"Plan {plan.id}: {plan.title}")

    workers = Table(title="Workers")
    workers.add_column("Name")
    workers.add_column("Role")
    for w in plan.workers:
        workers.add_row(w.name, w.role)
    console.print(workers)

    graph = Table(title="Task graph")
    graph.add_column("Task")
    graph.add_column("Depends on")
    graph.add_column("Status")
    for n in plan.graph:
        graph.add_row(n.task, ", ".join(n.dependencies) or "-", n.status)
    console.print(graph)

    ready = ready_tasks(plan.graph)
    console.print("Ready: " + (", ".join(ready) if ready else "-"))

    if plan.assignments:
        assignments = Table(title="Assignments")
        assignments.add_column("Task")
        assignments.add_column("Worker")
        assignments.add_column("Outcome")
        for a in plan.assignments:
            assignments.add_row(a.task, a.worker, _short(a.outcome))
        console.print(assignments)


def _short(value: Any, limit: int = 60) -> str:
    if value is None:
        return "-"
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _print_errors(errors: list[PlanError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="subagent-planner")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
