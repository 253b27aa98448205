from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from orchestrator_tools.core.contracts import (
    AssignRequest,
    PlanGraphRequest,
    RegisterWorkerRequest,
    parse_request,
)
from subagent_planner.core.assign.assign_task import TaskExecutor, assign_task
from subagent_planner.core.graph.plan_graph import plan_graph
from subagent_planner.core.model import SELF_WORKER
from subagent_planner.core.registry.register_worker import register_worker
from subagent_planner.core.store.plan_store import PlanStore

logger = logging.getLogger(__name__)

Approver = Callable[[AssignRequest], bool]


def render_outcome(outcome: Any) -> str:
    if isinstance(outcome, str):
        return outcome
    return json.dumps(outcome, indent=2, default=str)


class OrchestratorTools:
    """Tool handlers bound to one plan, returning strings for the decision loop.

    Validation failures come back as "Error: ..." strings; store I/O errors
    propagate to the caller.
    """

    def __init__(
        self,
        store: PlanStore,
        plan_id: str,
        *,
        executor: Optional[TaskExecutor] = None,
        approver: Optional[Approver] = None,
        auto_approve: bool = False,
    ) -> None:
        self.store = store
        self.plan_id = plan_id
        self.executor = executor
        self.approver = approver
        self.auto_approve = auto_approve

    async def register_worker(self, req: RegisterWorkerRequest) -> str:
        outcome = await register_worker(self.store, self.plan_id, req.name, req.role)
        if outcome == "rejected":
            return f"Worker name '{SELF_WORKER}' is reserved for self-delegation."
        if outcome == "created":
            return f"Worker '{req.name}' created successfully."
        if outcome == "updated":
            return f"Worker '{req.name}' updated successfully."
        return f"Worker '{req.name}' reused."

    async def plan_graph(self, req: PlanGraphRequest) -> str:
        outcome = await plan_graph(self.store, self.plan_id, req.nodes)
        if outcome.error is not None:
            return outcome.error.as_tool_result()
        if outcome.status == "cleared":
            return "Task graph cleared."
        return "Task graph updated."

    async def assign(self, req: AssignRequest) -> str:
        if not self.auto_approve and self.approver is not None and not self.approver(req):
            logger.info("assignment of %r to %r declined", req.task, req.worker)
            return f"Assignment of task '{req.task}' to '{req.worker}' was not approved."

        outcome = await assign_task(
            self.store,
            self.plan_id,
            req.worker,
            req.task,
            req.instructions,
            executor=self.executor,
        )
        if outcome.error is not None:
            return outcome.error.as_tool_result()
        return render_outcome(outcome.outcome)

    async def dispatch(self, tool: str, args: Any) -> str:
        """Parse raw tool arguments and run the matching handler."""
        try:
            req = parse_request(tool, args)
        except ValueError as e:
            return f"Error: {e}"

        if isinstance(req, RegisterWorkerRequest):
            return await self.register_worker(req)
        if isinstance(req, PlanGraphRequest):
            return await self.plan_graph(req)
        return await self.assign(req)
