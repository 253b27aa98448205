from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional


TaskStatus = Literal["pending", "in_progress", "completed"]

ALLOWED_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed")

# Reserved worker name meaning "the coordinator handles this itself".
SELF_WORKER = "__self__"

DEFAULT_TITLE = "New Plan"


@dataclass(frozen=True)
class Worker:
    name: str
    role: str = ""


@dataclass(frozen=True)
class TaskNode:
    task: str
    dependencies: list[str]
    status: TaskStatus = "pending"


@dataclass(frozen=True)
class Assignment:
    id: str
    worker: str
    task: str
    instructions: str
    assigned_at: int
    outcome: Any = None


@dataclass(frozen=True)
class Plan:
    id: str
    title: str
    created_at: int
    messages: list[Any] = field(default_factory=list)
    workers: list[Worker] = field(default_factory=list)
    graph: list[TaskNode] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)

    def worker_names(self) -> list[str]:
        return [w.name for w in self.workers]

    def find_worker(self, name: str) -> Optional[Worker]:
        for w in self.workers:
            if w.name == name:
                return w
        return None

    def find_task(self, task: str) -> Optional[TaskNode]:
        for n in self.graph:
            if n.task == task:
                return n
        return None


@dataclass(frozen=True)
class PlanUpdate:
    """Partial replacement for a Plan.

    Fields left as None keep the stored value when merged (see merge_plan).
    `id` and `created_at` are only honored when a plan is first created.
    """

    id: Optional[str] = None
    title: Optional[str] = None
    created_at: Optional[int] = None
    messages: Optional[list[Any]] = None
    workers: Optional[list[Worker]] = None
    graph: Optional[list[TaskNode]] = None
    assignments: Optional[list[Assignment]] = None
