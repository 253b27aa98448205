from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional


@dataclass(frozen=True)
class PlanError(Exception):
    """A coded problem with a graph file, a graph proposal or a stored plan.

    Validation failures are returned as values and never raised; only load
    errors (unreadable input files, missing plans) travel as exceptions.

    The same envelope is rendered three ways:
      - ``str(err)``: ``location: CODE: message`` for CLI stderr
      - ``to_item()``: a dict for ``--format json`` output
      - ``as_tool_result()``: the ``Error: ...`` string handed back to the
        decision loop
    """

    source: ClassVar[str] = "plan"

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    @property
    def location(self) -> str:
        loc = ":".join(p for p in (self.file, self.path) if p)
        return loc or "<graph>"

    def __str__(self) -> str:
        return f"{self.location}: {self.code}: {self.message}"

    def to_item(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "path": self.path,
            "severity": "error",
            "source": self.source,
        }

    def as_tool_result(self) -> str:
        return f"Error: {self.message}"


class PlanLoadError(PlanError):
    source = "load"

    @classmethod
    def plan_not_found(cls, plan_id: str) -> PlanLoadError:
        return cls(code="E_PLAN_NOT_FOUND", message=f"no plan with id: {plan_id}", path="plan_id")


class PlanValidationError(PlanError):
    source = "validate"
