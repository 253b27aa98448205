from __future__ import annotations

from typing import Any

from subagent_planner.core.model import ALLOWED_STATUSES, SELF_WORKER


# Strict function-tool schemas: every object sets additionalProperties: false
# and lists every property under required.

NODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "task": {
            "type": "string",
            "description": "Brief task description; unique within the graph and used as its id",
        },
        "dependencies": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Tasks (by their 'task' value) that must complete before this one starts",
        },
        "status": {
            "type": "string",
            "enum": list(ALLOWED_STATUSES),
            "description": "Status of the task",
        },
    },
    "required": ["task", "dependencies", "status"],
}


REGISTER_WORKER_DEFINITION: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "register_worker",
        "description": (
            "Create a named worker (sub-agent) with a role for reuse. Calling it again "
            "with the same name reuses the worker; a different non-empty role updates it."
        ),
        "strict": True,
        "parameters": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "name": {"type": "string", "description": "Unique name for this worker"},
                "role": {"type": "string", "description": "Role description for the worker"},
            },
            "required": ["name", "role"],
        },
    },
}


PLAN_GRAPH_DEFINITION: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "plan_graph",
        "description": (
            "Plan or replace the task dependency graph. Always send the full graph; it "
            "replaces the previous one. A task may only be in_progress once every "
            "dependency is completed. An empty list clears the graph."
        ),
        "strict": True,
        "parameters": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "nodes": {"type": "array", "items": NODE_SCHEMA},
            },
            "required": ["nodes"],
        },
    },
}


ASSIGN_DEFINITION: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "assign",
        "description": (
            "Assign a planned task to a registered worker with instructions. "
            f"Use '{SELF_WORKER}' to handle the task yourself."
        ),
        "strict": True,
        "parameters": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "worker": {"type": "string", "description": "Name of a registered worker"},
                "task": {"type": "string", "description": "Task name from the graph"},
                "instructions": {
                    "type": "string",
                    "description": "Everything the worker needs to perform the task",
                },
            },
            "required": ["worker", "task", "instructions"],
        },
    },
}


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    REGISTER_WORKER_DEFINITION,
    PLAN_GRAPH_DEFINITION,
    ASSIGN_DEFINITION,
]
