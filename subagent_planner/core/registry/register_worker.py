from __future__ import annotations

import logging
from typing import Literal, Optional

from subagent_planner.core.model import SELF_WORKER, Plan, PlanUpdate, Worker
from subagent_planner.core.store.plan_store import PlanStore

logger = logging.getLogger(__name__)

RegisterOutcome = Literal["created", "updated", "reused", "rejected"]


def register_in_plan(
    plan: Plan, name: str, role: str
) -> tuple[RegisterOutcome, Optional[PlanUpdate]]:
    """Create-or-reuse decision for one worker, as a store mutation."""
    if not name.strip() or name == SELF_WORKER:
        return "rejected", None

    existing = plan.find_worker(name)
    if existing is None:
        return "created", PlanUpdate(workers=plan.workers + [Worker(name=name, role=role)])

    incoming = role.strip() if isinstance(role, str) else ""
    current = existing.role.strip()
    if incoming and incoming != current:
        workers = [Worker(name=name, role=role) if w.name == name else w for w in plan.workers]
        return "updated", PlanUpdate(workers=workers)

    return "reused", None


async def register_worker(
    store: PlanStore, plan_id: str, name: str, role: str = ""
) -> RegisterOutcome:
    """Register a named worker on a plan.

    - blank or reserved name: rejected, nothing written
    - new name: created
    - known name with a different non-empty role (after trimming): updated
    - otherwise: reused, nothing written
    """
    outcome = await store.mutate(plan_id, lambda plan: register_in_plan(plan, name, role))
    logger.info("worker %r on plan %s: %s", name, plan_id, outcome)
    return outcome
