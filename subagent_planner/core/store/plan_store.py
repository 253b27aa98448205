from __future__ import annotations

import asyncio
import json
import logging
import os
import secrets
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

from subagent_planner.core.model import DEFAULT_TITLE, Plan, PlanUpdate
from subagent_planner.core.store.codec import (
    merge_plan,
    new_plan,
    plan_from_dict,
    plan_to_dict,
    title_from_messages,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Callback for PlanStore.mutate: receives the current plan, returns
# (result, update). An update of None means "do not write".
Mutator = Callable[[Plan], tuple[T, Optional[PlanUpdate]]]


def now_ms() -> int:
    return int(time.time() * 1000)


class PlanStore:
    """All plans, persisted as one JSON document.

    Every public operation is admitted through a single asyncio.Lock, whose
    waiters are served in FIFO order, so at most one read or read-modify-write
    runs at a time. File I/O happens in a worker thread while the lock is held.

    Writes go to a fresh temp file in the same directory, are fsynced, and then
    replace the canonical file, so the file on disk is always either the old or
    the new complete document.
    """

    def __init__(self, path: str | Path, clock: Callable[[], int] = now_ms) -> None:
        self.path = Path(path)
        self._clock = clock
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def now(self) -> int:
        return self._clock()

    # ── Serialization ───────────────────────────────────────────────

    def _queue(self) -> asyncio.Lock:
        # asyncio.Lock binds to the loop it first waits on; a store reused
        # from another asyncio.run() gets a fresh queue for that loop.
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _serialized(self, op: Callable[[], Awaitable[T]]) -> T:
        lock = self._queue()

        async def run() -> T:
            async with lock:
                return await op()

        # Once admitted, an operation runs to completion even if the caller
        # stops waiting for it.
        return await asyncio.shield(run())

    # ── File access (callers hold the lock) ─────────────────────────

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_unlocked(self) -> list[Plan]:
        self._ensure_dir()
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.debug("store %s does not exist yet; treating as empty", self.path)
            return []

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("store %s is not valid JSON (%s); treating as empty", self.path, e)
            return []

        if not isinstance(data, list):
            logger.warning("store %s top level is not a list; treating as empty", self.path)
            return []

        plans: list[Plan] = []
        for i, item in enumerate(data):
            plan = plan_from_dict(item)
            if plan is None:
                logger.warning("store %s: skipping entry %d without an id", self.path, i)
                continue
            plans.append(plan)
        return plans

    def _write_unlocked(self, plans: list[Plan]) -> None:
        self._ensure_dir()
        payload = json.dumps([plan_to_dict(p) for p in plans], indent=2, ensure_ascii=False)
        tmp = self.path.with_name(
            f"{self.path.stem}.{time.time_ns()}.{secrets.token_hex(4)}.tmp"
        )

        try:
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())

            try:
                os.replace(tmp, self.path)
            except PermissionError:
                # Destination held open elsewhere (Windows); clear it and retry once.
                logger.warning("replace of %s refused; removing and retrying", self.path)
                self.path.unlink(missing_ok=True)
                os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

        logger.debug("wrote %d plans to %s", len(plans), self.path)

    async def _read(self) -> list[Plan]:
        return await asyncio.to_thread(self._read_unlocked)

    async def _write(self, plans: list[Plan]) -> None:
        await asyncio.to_thread(self._write_unlocked, plans)

    # ── Public API ──────────────────────────────────────────────────

    async def list_plans(self) -> list[Plan]:
        return await self._serialized(self._read)

    async def get_plan(self, plan_id: str) -> Optional[Plan]:
        async def op() -> Optional[Plan]:
            for p in await self._read():
                if p.id == plan_id:
                    return p
            return None

        return await self._serialized(op)

    async def mutate(self, plan_id: str, fn: Mutator[T]) -> T:
        """Run `fn` against the current plan and commit its update atomically.

        Unknown ids get a fresh default plan, which is only persisted if `fn`
        returns an update.
        """

        async def op() -> T:
            plans = await self._read()
            index = next((i for i, p in enumerate(plans) if p.id == plan_id), -1)
            existing = plans[index] if index >= 0 else new_plan(plan_id, self._clock())

            result, update = fn(existing)
            if update is None:
                return result

            merged = merge_plan(existing, update)
            if index >= 0:
                plans[index] = merged
            else:
                plans.append(merged)

            await self._write(plans)
            logger.info("committed plan %s", plan_id)
            return result

        return await self._serialized(op)

    async def upsert_plan(self, update: PlanUpdate) -> Plan:
        """Create or merge a plan document from a partial update carrying an id."""
        if not update.id:
            raise ValueError("upsert_plan requires an id")
        plan_id = update.id

        async def op() -> Plan:
            plans = await self._read()
            index = next((i for i, p in enumerate(plans) if p.id == plan_id), -1)

            if index >= 0:
                merged = merge_plan(plans[index], update)
                plans[index] = merged
            else:
                created_at = update.created_at if update.created_at is not None else self._clock()
                merged = merge_plan(new_plan(plan_id, created_at), update)
                if not merged.title or merged.title == DEFAULT_TITLE:
                    title = title_from_messages(merged.messages)
                    if title:
                        merged = merge_plan(merged, PlanUpdate(title=title))
                plans.append(merged)

            await self._write(plans)
            logger.info("upserted plan %s", plan_id)
            return merged

        return await self._serialized(op)

    async def delete_plan(self, plan_id: str) -> bool:
        async def op() -> bool:
            plans = await self._read()
            remaining = [p for p in plans if p.id != plan_id]
            if len(remaining) == len(plans):
                return False
            await self._write(remaining)
            logger.info("deleted plan %s", plan_id)
            return True

        return await self._serialized(op)


def plan_summary(plan: Plan) -> dict[str, Any]:
    status_counts: dict[str, int] = {}
    for n in plan.graph:
        status_counts[n.status] = status_counts.get(n.status, 0) + 1
    return {
        "id": plan.id,
        "title": plan.title,
        "created_at": plan.created_at,
        "message_count": len(plan.messages),
        "worker_count": len(plan.workers),
        "task_count": len(plan.graph),
        "status_counts": status_counts,
        "assignment_count": len(plan.assignments),
    }
