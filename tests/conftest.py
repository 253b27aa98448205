from pathlib import Path

import pytest

from subagent_planner.core.model import TaskNode
from subagent_planner.core.store.plan_store import PlanStore


EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def store(tmp_path: Path) -> PlanStore:
    return PlanStore(tmp_path / "data" / "plans.json", clock=lambda: 1_700_000_000_000)


def node(task: str, *deps: str, status: str = "pending") -> TaskNode:
    return TaskNode(task=task, dependencies=list(deps), status=status)  # type: ignore[arg-type]
