from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from subagent_planner.core.model import TaskNode
from subagent_planner.core.validate.validate_graph import parse_nodes


@dataclass(frozen=True)
class RegisterWorkerRequest:
    name: str
    role: str


@dataclass(frozen=True)
class PlanGraphRequest:
    nodes: list[TaskNode]


@dataclass(frozen=True)
class AssignRequest:
    worker: str
    task: str
    instructions: str


ToolRequest = Union[RegisterWorkerRequest, PlanGraphRequest, AssignRequest]


def _require_str(obj: dict[str, Any], key: str, *, allow_empty: bool = False) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    if not allow_empty and not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def parse_register_worker(obj: dict[str, Any]) -> RegisterWorkerRequest:
    role = obj.get("role", "")
    if role is None:
        role = ""
    if not isinstance(role, str):
        raise ValueError("role must be a string")
    return RegisterWorkerRequest(name=_require_str(obj, "name"), role=role)


def parse_plan_graph(obj: dict[str, Any]) -> PlanGraphRequest:
    raw_nodes = obj.get("nodes", [])
    if raw_nodes is None:
        raw_nodes = []
    nodes, errors = parse_nodes(raw_nodes)
    if errors or nodes is None:
        raise ValueError("; ".join(str(e) for e in errors[:5]))
    return PlanGraphRequest(nodes=nodes)


def parse_assign(obj: dict[str, Any]) -> AssignRequest:
    instructions = obj.get("instructions", "")
    if instructions is None:
        instructions = ""
    if not isinstance(instructions, str):
        raise ValueError("instructions must be a string")
    return AssignRequest(
        worker=_require_str(obj, "worker"),
        task=_require_str(obj, "task"),
        instructions=instructions,
    )


_PARSERS = {
    "register_worker": parse_register_worker,
    "plan_graph": parse_plan_graph,
    "assign": parse_assign,
}


def parse_request(tool: str, args: Any) -> ToolRequest:
    """Turn raw tool-call arguments into a typed request, or raise ValueError."""
    parser = _PARSERS.get(tool)
    if parser is None:
        raise ValueError(f"unknown tool: {tool} (choose one of: {', '.join(sorted(_PARSERS))})")
    if not isinstance(args, dict):
        raise ValueError("tool arguments must be an object")
    return parser(args)
