from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_STORE_PATH = "data/plans.json"
DEFAULT_LOG_LEVEL = "WARNING"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    store_path: Path
    auto_approve: bool
    log_level: str


def _env_flag(*names: str) -> bool:
    for name in names:
        value = (os.getenv(name, "") or "").strip().lower()
        if value:
            return value in _TRUE_VALUES
    return False


def load_settings(
    store_path: Optional[str] = None,
    auto_approve: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> Settings:
    """Resolve settings.

    Resolution order per field:
      1) explicit argument
      2) SUBAGENT_PLANNER_* env var (AUTO_APPROVE is also honored)
      3) default
    """

    path = store_path or (os.getenv("SUBAGENT_PLANNER_STORE", "") or "").strip()
    level = log_level or (os.getenv("SUBAGENT_PLANNER_LOG_LEVEL", "") or "").strip()
    approve = (
        auto_approve
        if auto_approve is not None
        else _env_flag("SUBAGENT_PLANNER_AUTO_APPROVE", "AUTO_APPROVE")
    )
    return Settings(
        store_path=Path(path or DEFAULT_STORE_PATH),
        auto_approve=approve,
        log_level=(level or DEFAULT_LOG_LEVEL).upper(),
    )
