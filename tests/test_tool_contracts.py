import pytest

from orchestrator_tools.core.contracts import (
    AssignRequest,
    PlanGraphRequest,
    RegisterWorkerRequest,
    parse_request,
)
from orchestrator_tools.core.definitions import TOOL_DEFINITIONS


def test_parse_register_worker():
    req = parse_request("register_worker", {"name": "coder", "role": None})
    assert req == RegisterWorkerRequest(name="coder", role="")


def test_parse_plan_graph_builds_nodes():
    req = parse_request(
        "plan_graph", {"nodes": [{"task": "A", "dependencies": ["B"], "status": "pending"}]}
    )
    assert isinstance(req, PlanGraphRequest)
    assert req.nodes[0].task == "A"
    assert req.nodes[0].dependencies == ["B"]


def test_parse_assign():
    req = parse_request("assign", {"worker": "w", "task": "t", "instructions": "i"})
    assert req == AssignRequest(worker="w", task="t", instructions="i")


@pytest.mark.parametrize(
    "tool,args",
    [
        ("register_worker", {"role": "x"}),
        ("register_worker", {"name": "a", "role": 3}),
        ("plan_graph", {"nodes": "A"}),
        ("assign", {"worker": "w"}),
        ("assign", {"worker": "w", "task": "t", "instructions": 5}),
        ("nope", {}),
    ],
)
def test_parse_rejects_bad_arguments(tool, args):
    with pytest.raises(ValueError):
        parse_request(tool, args)


def _walk(schema):
    if isinstance(schema, dict):
        yield schema
        for v in schema.values():
            yield from _walk(v)
    elif isinstance(schema, list):
        for v in schema:
            yield from _walk(v)


def test_tool_definitions_are_strict():
    names = [d["function"]["name"] for d in TOOL_DEFINITIONS]
    assert names == ["register_worker", "plan_graph", "assign"]

    for definition in TOOL_DEFINITIONS:
        for obj in _walk(definition["function"]["parameters"]):
            if obj.get("type") == "object":
                assert obj.get("additionalProperties") is False
                assert set(obj["required"]) == set(obj["properties"].keys())
