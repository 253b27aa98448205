import pytest
from conftest import EXAMPLES

from subagent_planner.core.errors import PlanLoadError
from subagent_planner.core.io.load_graph import load_graph_file


def test_load_yaml_mapping():
    doc = load_graph_file(str(EXAMPLES / "basic-graph.yaml"))
    assert isinstance(doc["nodes"], list)
    assert doc["nodes"][0]["task"] == "Gather requirements"
    assert doc["__file__"].endswith("basic-graph.yaml")


def test_load_json_list():
    doc = load_graph_file(str(EXAMPLES / "invalid-duplicate.json"))
    assert [n["task"] for n in doc["nodes"]] == ["A", "A"]


def test_load_empty_file_is_empty_graph(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_graph_file(str(p))["nodes"] == []


def test_load_missing_file():
    with pytest.raises(PlanLoadError) as exc:
        load_graph_file(str(EXAMPLES / "does-not-exist.yaml"))
    assert exc.value.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path):
    p = tmp_path / "graph.txt"
    p.write_text("hello", encoding="utf-8")
    with pytest.raises(PlanLoadError) as exc:
        load_graph_file(str(p))
    assert exc.value.code == "E_UNSUPPORTED_FORMAT"


def test_load_bad_json(tmp_path):
    p = tmp_path / "graph.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(PlanLoadError) as exc:
        load_graph_file(str(p))
    assert exc.value.code == "E_JSON_PARSE"


def test_load_scalar_top_level(tmp_path):
    p = tmp_path / "graph.yaml"
    p.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(PlanLoadError) as exc:
        load_graph_file(str(p))
    assert exc.value.code == "E_INVALID_TOP_LEVEL"
