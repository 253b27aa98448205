from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from subagent_planner.core.model import (
    ALLOWED_STATUSES,
    DEFAULT_TITLE,
    Assignment,
    Plan,
    PlanUpdate,
    TaskNode,
    Worker,
)


TITLE_FROM_MESSAGE_CHARS = 30


def worker_to_dict(w: Worker) -> dict[str, Any]:
    return {"name": w.name, "role": w.role}


def node_to_dict(n: TaskNode) -> dict[str, Any]:
    return {"task": n.task, "dependencies": list(n.dependencies), "status": n.status}


def assignment_to_dict(a: Assignment) -> dict[str, Any]:
    return {
        "id": a.id,
        "worker": a.worker,
        "task": a.task,
        "instructions": a.instructions,
        "assignedAt": a.assigned_at,
        "outcome": a.outcome,
    }


def plan_to_dict(plan: Plan) -> dict[str, Any]:
    return {
        "id": plan.id,
        "title": plan.title,
        "createdAt": plan.created_at,
        "messages": list(plan.messages),
        "workers": [worker_to_dict(w) for w in plan.workers],
        "graph": [node_to_dict(n) for n in plan.graph],
        "assignments": [assignment_to_dict(a) for a in plan.assignments],
    }


def _worker_from_dict(raw: Any) -> Optional[Worker]:
    if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
        return None
    # Older documents stored the role under "system_prompt".
    role = raw.get("role", raw.get("system_prompt", ""))
    return Worker(name=raw["name"], role=role if isinstance(role, str) else "")


def _node_from_dict(raw: Any) -> Optional[TaskNode]:
    if not isinstance(raw, dict) or not isinstance(raw.get("task"), str):
        return None
    deps = raw.get("dependencies") or []
    status = raw.get("status")
    return TaskNode(
        task=raw["task"],
        dependencies=[d for d in deps if isinstance(d, str)] if isinstance(deps, list) else [],
        status=status if status in ALLOWED_STATUSES else "pending",
    )


def _assignment_from_dict(raw: Any) -> Optional[Assignment]:
    if not isinstance(raw, dict):
        return None
    if not all(isinstance(raw.get(k), str) for k in ("id", "worker", "task")):
        return None
    assigned_at = raw.get("assignedAt")
    return Assignment(
        id=raw["id"],
        worker=raw["worker"],
        task=raw["task"],
        instructions=str(raw.get("instructions") or ""),
        assigned_at=assigned_at if isinstance(assigned_at, int) else 0,
        outcome=raw.get("outcome"),
    )


def _list_of(raw: Any, parse) -> list:
    if not isinstance(raw, list):
        return []
    out = []
    for item in raw:
        parsed = parse(item)
        if parsed is not None:
            out.append(parsed)
    return out


def plan_from_dict(raw: Any) -> Optional[Plan]:
    """Decode one stored plan. Returns None for entries without a string id."""
    if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
        return None

    created_at = raw.get("createdAt")
    title = raw.get("title")
    messages = raw.get("messages")
    return Plan(
        id=raw["id"],
        title=title if isinstance(title, str) else DEFAULT_TITLE,
        created_at=created_at if isinstance(created_at, int) else 0,
        messages=list(messages) if isinstance(messages, list) else [],
        # Older documents used "subAgents" for the worker list.
        workers=_list_of(raw.get("workers", raw.get("subAgents")), _worker_from_dict),
        graph=_list_of(raw.get("graph"), _node_from_dict),
        assignments=_list_of(raw.get("assignments"), _assignment_from_dict),
    )


def new_plan(plan_id: str, now: int) -> Plan:
    return Plan(id=plan_id, title=DEFAULT_TITLE, created_at=now)


def merge_plan(existing: Plan, update: PlanUpdate) -> Plan:
    """Apply a partial update to a stored plan.

    Precedence per field: the update's value wins unless it is None, in which
    case the existing value is kept. `id` and `created_at` never change.
    """
    return replace(
        existing,
        title=update.title if update.title is not None else existing.title,
        messages=list(update.messages) if update.messages is not None else existing.messages,
        workers=list(update.workers) if update.workers is not None else existing.workers,
        graph=list(update.graph) if update.graph is not None else existing.graph,
        assignments=(
            list(update.assignments) if update.assignments is not None else existing.assignments
        ),
    )


def title_from_messages(messages: list[Any]) -> Optional[str]:
    """First message text, truncated, for untitled plans."""
    if not messages:
        return None
    first = messages[0]
    content = first.get("content") if isinstance(first, dict) else None
    if isinstance(content, str) and content.strip():
        return content[:TITLE_FROM_MESSAGE_CHARS]
    return None
