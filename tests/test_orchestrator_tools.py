import asyncio
import json
from datetime import datetime

from orchestrator_tools.core.tools import OrchestratorTools


def _call(tools, tool, args):
    return asyncio.run(tools.dispatch(tool, args))


def test_example_scenario(store):
    tools = OrchestratorTools(store, "chat-1")

    assert (
        _call(tools, "register_worker", {"name": "researcher", "role": "gathers facts"})
        == "Worker 'researcher' created successfully."
    )

    pending = [
        {"task": "A", "dependencies": [], "status": "pending"},
        {"task": "B", "dependencies": ["A"], "status": "pending"},
    ]
    assert _call(tools, "plan_graph", {"nodes": pending}) == "Task graph updated."

    blocked = [
        {"task": "A", "dependencies": [], "status": "pending"},
        {"task": "B", "dependencies": ["A"], "status": "in_progress"},
    ]
    result = _call(tools, "plan_graph", {"nodes": blocked})
    assert result.startswith("Error:")
    assert "'A'" in result

    ready = [
        {"task": "A", "dependencies": [], "status": "completed"},
        {"task": "B", "dependencies": ["A"], "status": "in_progress"},
    ]
    assert _call(tools, "plan_graph", {"nodes": ready}) == "Task graph updated."

    result = _call(tools, "assign", {"worker": "researcher", "task": "B", "instructions": "find sources"})
    assert result == "Task 'B' delegated to worker 'researcher'."


def test_register_worker_messages(store):
    tools = OrchestratorTools(store, "p1")
    args = {"name": "coder", "role": "writes code"}
    assert _call(tools, "register_worker", args) == "Worker 'coder' created successfully."
    assert _call(tools, "register_worker", args) == "Worker 'coder' reused."
    assert (
        _call(tools, "register_worker", {"name": "coder", "role": "reviews code"})
        == "Worker 'coder' updated successfully."
    )
    assert "reserved" in _call(tools, "register_worker", {"name": "__self__", "role": "x"})


def test_plan_graph_empty_clears(store):
    tools = OrchestratorTools(store, "p1")
    _call(tools, "plan_graph", {"nodes": [{"task": "A", "dependencies": [], "status": "pending"}]})
    assert _call(tools, "plan_graph", {"nodes": []}) == "Task graph cleared."
    assert asyncio.run(store.get_plan("p1")).graph == []


def test_malformed_arguments_are_reported(store):
    tools = OrchestratorTools(store, "p1")
    assert _call(tools, "register_worker", {"name": ""}).startswith("Error:")
    assert _call(tools, "plan_graph", {"nodes": [{"task": "A", "status": "done"}]}).startswith("Error:")
    assert _call(tools, "assign", "not-an-object").startswith("Error:")
    assert "unknown tool" in _call(tools, "launch_rockets", {})
    assert asyncio.run(store.get_plan("p1")) is None


def test_assign_unknown_worker_lists_names(store):
    tools = OrchestratorTools(store, "p1")
    _call(tools, "register_worker", {"name": "researcher", "role": "r"})
    _call(tools, "plan_graph", {"nodes": [{"task": "A", "dependencies": [], "status": "pending"}]})
    result = _call(tools, "assign", {"worker": "ghost", "task": "A", "instructions": ""})
    assert result.startswith("Error:")
    assert "researcher" in result


def test_declined_approval_skips_assignment(store):
    seen = []

    def approver(req):
        seen.append(req)
        return False

    tools = OrchestratorTools(store, "p1", approver=approver)
    _call(tools, "plan_graph", {"nodes": [{"task": "A", "dependencies": [], "status": "pending"}]})
    result = _call(tools, "assign", {"worker": "__self__", "task": "A", "instructions": "x"})
    assert "not approved" in result
    assert len(seen) == 1
    assert asyncio.run(store.get_plan("p1")).assignments == []


def test_auto_approve_bypasses_approver(store):
    def approver(req):
        raise AssertionError("approver should not be consulted")

    tools = OrchestratorTools(store, "p1", approver=approver, auto_approve=True)
    _call(tools, "plan_graph", {"nodes": [{"task": "A", "dependencies": [], "status": "pending"}]})
    result = _call(tools, "assign", {"worker": "__self__", "task": "A", "instructions": "x"})
    assert "coordinator" in result


def test_structured_executor_outcome_is_rendered_as_json(store):
    class Exec:
        def execute(self, *, worker, task, instructions):
            return {"ok": True}

    tools = OrchestratorTools(store, "p1", executor=Exec())
    _call(tools, "plan_graph", {"nodes": [{"task": "A", "dependencies": [], "status": "pending"}]})
    result = _call(tools, "assign", {"worker": "__self__", "task": "A", "instructions": "x"})
    assert '"ok": true' in result


def test_assign_renders_non_json_outcome(store):
    class StampedExecutor:
        def execute(self, *, worker, task, instructions):
            return {"task": task, "finished_at": datetime(2026, 1, 1)}

    tools = OrchestratorTools(store, "p1", executor=StampedExecutor())
    _call(tools, "plan_graph", {"nodes": [{"task": "A", "dependencies": [], "status": "pending"}]})

    result = _call(tools, "assign", {"worker": "__self__", "task": "A", "instructions": "go"})
    assert json.loads(result) == {"task": "A", "finished_at": "2026-01-01 00:00:00"}
