from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from subagent_planner.core.errors import PlanLoadError


def load_graph_file(path: str) -> dict[str, Any]:
    """Load a YAML/JSON task graph file.

    Accepts either a bare list of nodes or a mapping with a `nodes` key.
    Returns {"nodes": <raw list>, "__file__": path}. An empty document loads
    as an empty node list. Node shapes are not checked here; parse_nodes owns that.
    """

    p = Path(path)
    if not p.exists():
        raise PlanLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise PlanLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise PlanLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix == ".json":
            data = json.loads(raw_text) if raw_text.strip() else None
        else:
            data = yaml.safe_load(raw_text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        code = "E_JSON_PARSE" if suffix == ".json" else "E_YAML_PARSE"
        raise PlanLoadError(code=code, message=str(e), file=str(p)) from e

    if data is None:
        nodes: Any = []
    elif isinstance(data, list):
        nodes = data
    elif isinstance(data, dict):
        nodes = data.get("nodes", [])
        if nodes is None:
            nodes = []
    else:
        raise PlanLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a list of nodes or a mapping with 'nodes'",
            file=str(p),
        )

    return {"nodes": nodes, "__file__": str(p)}
