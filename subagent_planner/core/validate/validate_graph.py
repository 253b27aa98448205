from __future__ import annotations

from collections import Counter
from typing import Any, Optional, Sequence, cast

from subagent_planner.core.errors import PlanValidationError
from subagent_planner.core.model import ALLOWED_STATUSES, TaskNode, TaskStatus


def _is_list_of_str(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def parse_nodes(
    raw_nodes: Any, file: Optional[str] = None
) -> tuple[Optional[list[TaskNode]], list[PlanValidationError]]:
    """Shape-check raw node dicts and build TaskNodes.

    Returns (nodes, errors). Nodes is None when errors exist. Graph rules
    (uniqueness, dependencies, readiness) are not checked here.
    """

    if not isinstance(raw_nodes, list):
        return None, [
            PlanValidationError(
                code="E_INVALID_TYPE",
                message="nodes must be an array",
                file=file,
                path="nodes",
            )
        ]

    errors: list[PlanValidationError] = []
    nodes: list[TaskNode] = []

    for i, raw in enumerate(raw_nodes):
        node_path = f"nodes[{i}]"
        if not isinstance(raw, dict):
            errors.append(
                PlanValidationError(
                    code="E_INVALID_TYPE",
                    message="node must be an object",
                    file=file,
                    path=node_path,
                )
            )
            continue

        task = raw.get("task")
        if not isinstance(task, str) or not task.strip():
            errors.append(
                PlanValidationError(
                    code="E_REQUIRED_FIELD",
                    message="task is required and must be a non-empty string",
                    file=file,
                    path=f"{node_path}.task",
                )
            )
            continue

        deps = raw.get("dependencies", [])
        if deps is None:
            deps = []
        if not _is_list_of_str(deps):
            errors.append(
                PlanValidationError(
                    code="E_INVALID_TYPE",
                    message="dependencies must be an array of strings",
                    file=file,
                    path=f"{node_path}.dependencies",
                )
            )
            continue

        status = raw.get("status", "pending")
        if not isinstance(status, str) or status not in ALLOWED_STATUSES:
            errors.append(
                PlanValidationError(
                    code="E_INVALID_ENUM",
                    message=f"status must be one of {list(ALLOWED_STATUSES)}",
                    file=file,
                    path=f"{node_path}.status",
                )
            )
            continue

        nodes.append(
            TaskNode(
                task=task,
                dependencies=list(cast(list[str], deps)),
                status=cast(TaskStatus, status),
            )
        )

    if errors:
        return None, errors
    return nodes, []


def collect_graph_errors(
    nodes: Sequence[TaskNode], file: Optional[str] = None
) -> list[PlanValidationError]:
    """Check every graph rule and return all violations.

    Errors come back grouped by rule, in the order the rules are applied:
    uniqueness, dependency existence, self-dependency, status readiness.
    Within a rule they follow node order.
    """

    errors: list[PlanValidationError] = []

    # Rule: unique task identity.
    seen: set[str] = set()
    for i, n in enumerate(nodes):
        if n.task in seen:
            errors.append(
                PlanValidationError(
                    code="E_DUPLICATE_TASK",
                    message=f"duplicate task: '{n.task}'",
                    file=file,
                    path=f"nodes[{i}].task",
                )
            )
            continue
        seen.add(n.task)

    # First occurrence wins for lookups below.
    by_task: dict[str, TaskNode] = {}
    for n in nodes:
        by_task.setdefault(n.task, n)

    # Rule: dependencies reference nodes of this graph.
    for i, n in enumerate(nodes):
        for di, dep in enumerate(n.dependencies):
            if dep not in by_task:
                errors.append(
                    PlanValidationError(
                        code="E_UNKNOWN_DEPENDENCY",
                        message=(
                            f"task '{n.task}' depends on '{dep}', which is not in the graph. "
                            "Add it to the graph first."
                        ),
                        file=file,
                        path=f"nodes[{i}].dependencies[{di}]",
                    )
                )

    # Rule: no self-loops.
    for i, n in enumerate(nodes):
        if n.task in n.dependencies:
            errors.append(
                PlanValidationError(
                    code="E_SELF_DEPENDENCY",
                    message=f"task '{n.task}' depends on itself",
                    file=file,
                    path=f"nodes[{i}].dependencies",
                )
            )

    # Rule: in_progress requires every dependency completed.
    for i, n in enumerate(nodes):
        if n.status != "in_progress":
            continue
        for di, dep in enumerate(n.dependencies):
            dep_node = by_task.get(dep)
            if dep_node is None or dep == n.task:
                continue
            if dep_node.status != "completed":
                errors.append(
                    PlanValidationError(
                        code="E_DEPENDENCY_NOT_COMPLETED",
                        message=(
                            f"cannot start task '{n.task}' because dependency '{dep}' "
                            f"is {dep_node.status}, not completed"
                        ),
                        file=file,
                        path=f"nodes[{i}].dependencies[{di}]",
                    )
                )

    return errors


def validate_graph(nodes: Sequence[TaskNode]) -> Optional[PlanValidationError]:
    """Return the first rule violation in `nodes`, or None when the graph is legal."""
    errors = collect_graph_errors(nodes)
    return errors[0] if errors else None


def summarize_graph(nodes: Sequence[TaskNode]) -> str:
    counts = Counter([n.status for n in nodes])
    parts = [f"{s}={counts.get(s, 0)}" for s in ALLOWED_STATUSES]
    ready = ready_tasks(nodes)
    return (
        f"OK: {len(nodes)} tasks ("
        + ", ".join(parts)
        + ")\nReady: "
        + (", ".join(ready) if ready else "-")
    )


def ready_tasks(nodes: Sequence[TaskNode]) -> list[str]:
    """Pending tasks whose dependencies are all completed, in graph order."""
    status_by_task = {n.task: n.status for n in nodes}
    return [
        n.task
        for n in nodes
        if n.status == "pending"
        and all(status_by_task.get(d) == "completed" for d in n.dependencies)
    ]
