from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any, Literal, Optional, Protocol

from subagent_planner.core.errors import PlanValidationError
from subagent_planner.core.model import SELF_WORKER, Assignment, Plan, PlanUpdate
from subagent_planner.core.store.plan_store import PlanStore

logger = logging.getLogger(__name__)


class TaskExecutor(Protocol):
    def execute(self, *, worker: str, task: str, instructions: str) -> Any: ...


class PlaceholderExecutor:
    """Stands in for the real executor: reports the hand-off and does nothing else."""

    def execute(self, *, worker: str, task: str, instructions: str) -> Any:
        if worker == SELF_WORKER:
            return f"Task '{task}' is handled by the coordinator."
        return f"Task '{task}' delegated to worker '{worker}'."


@dataclass(frozen=True)
class AssignOutcome:
    status: Literal["assigned", "rejected"]
    error: Optional[PlanValidationError] = None
    assignment_id: Optional[str] = None
    outcome: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "assigned"


def _available_workers(plan: Plan) -> str:
    names = plan.worker_names()
    return ", ".join(names) if names else "(none)"


def check_assignment(plan: Plan, worker: str, task: str) -> Optional[PlanValidationError]:
    """Return why `worker` cannot take `task` on this plan, or None."""
    if plan.find_task(task) is None:
        return PlanValidationError(
            code="E_UNKNOWN_TASK",
            message=f"task '{task}' is not in the graph. Plan the task first.",
            path="task",
        )
    if worker != SELF_WORKER and plan.find_worker(worker) is None:
        return PlanValidationError(
            code="E_UNKNOWN_WORKER",
            message=(
                f"worker '{worker}' does not exist. Create the worker first. "
                f"Available workers: {_available_workers(plan)}"
            ),
            path="worker",
        )
    return None


def record_assignment(
    plan: Plan, assignment: Assignment
) -> tuple[AssignOutcome, Optional[PlanUpdate]]:
    error = check_assignment(plan, assignment.worker, assignment.task)
    if error is not None:
        return AssignOutcome(status="rejected", error=error), None
    return (
        AssignOutcome(status="assigned", assignment_id=assignment.id),
        PlanUpdate(assignments=plan.assignments + [assignment]),
    )


def storable_outcome(outcome: Any) -> Any:
    """Coerce an executor outcome into plain JSON values (unknown objects become strings)."""
    return json.loads(json.dumps(outcome, default=str))


def record_outcome(
    plan: Plan, assignment_id: str, outcome: Any
) -> tuple[bool, Optional[PlanUpdate]]:
    if not any(a.id == assignment_id for a in plan.assignments):
        return False, None
    stored = storable_outcome(outcome)
    assignments = [
        replace(a, outcome=stored) if a.id == assignment_id else a for a in plan.assignments
    ]
    return True, PlanUpdate(assignments=assignments)


async def assign_task(
    store: PlanStore,
    plan_id: str,
    worker: str,
    task: str,
    instructions: str,
    executor: Optional[TaskExecutor] = None,
) -> AssignOutcome:
    """Dispatch `worker` against `task`.

    The task must be a node of the current graph and the worker must be
    registered (or the coordinator sentinel). The attempt is recorded before the
    executor runs; the executor's outcome is stored on the same record after it
    returns. The executor runs outside the store queue.
    """
    executor = executor or PlaceholderExecutor()
    pending = Assignment(
        id=uuid.uuid4().hex,
        worker=worker,
        task=task,
        instructions=instructions,
        assigned_at=store.now(),
    )

    result = await store.mutate(plan_id, lambda plan: record_assignment(plan, pending))
    if not result.ok:
        logger.info("assignment on plan %s rejected: %s", plan_id, result.error)
        return result

    outcome = storable_outcome(
        await asyncio.to_thread(
            executor.execute, worker=worker, task=task, instructions=instructions
        )
    )

    stored = await store.mutate(plan_id, lambda plan: record_outcome(plan, pending.id, outcome))
    if not stored:
        logger.warning(
            "assignment %s on plan %s disappeared before its outcome was recorded",
            pending.id,
            plan_id,
        )
    logger.info("task %r assigned to %r on plan %s", task, worker, plan_id)
    return replace(result, outcome=outcome)
