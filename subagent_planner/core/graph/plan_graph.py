from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from subagent_planner.core.errors import PlanValidationError
from subagent_planner.core.model import Plan, PlanUpdate, TaskNode
from subagent_planner.core.store.plan_store import PlanStore
from subagent_planner.core.validate.validate_graph import validate_graph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphOutcome:
    status: Literal["cleared", "updated", "rejected"]
    error: Optional[PlanValidationError] = None

    @property
    def ok(self) -> bool:
        return self.status != "rejected"


def replace_graph(
    plan: Plan, nodes: Sequence[TaskNode]
) -> tuple[GraphOutcome, Optional[PlanUpdate]]:
    if not nodes:
        return GraphOutcome(status="cleared"), PlanUpdate(graph=[])

    error = validate_graph(nodes)
    if error is not None:
        return GraphOutcome(status="rejected", error=error), None

    return GraphOutcome(status="updated"), PlanUpdate(graph=list(nodes))


async def plan_graph(
    store: PlanStore, plan_id: str, nodes: Sequence[TaskNode]
) -> GraphOutcome:
    """Validate a full proposed graph and replace the stored one with it.

    The proposed graph is checked as a whole (see validate_graph); on the first
    violation nothing is written. An empty proposal clears the graph.
    """
    proposed = list(nodes)
    outcome = await store.mutate(plan_id, lambda plan: replace_graph(plan, proposed))
    if outcome.error is not None:
        logger.info("graph for plan %s rejected: %s", plan_id, outcome.error.code)
    else:
        logger.info("graph for plan %s %s (%d tasks)", plan_id, outcome.status, len(proposed))
    return outcome
