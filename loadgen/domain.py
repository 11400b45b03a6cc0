"""
loadgen/domain.py

Domain models for task outcomes and run summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TASK_SUCCEEDED = "success"
TASK_FAILED = "failed"


@dataclass(frozen=True)
class TaskOutcome:
    """
    Result of one spawned task, produced exactly once when it completes.
    """

    task_name: str
    status: str
    error: BaseException | None = None
    diagnostic: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == TASK_SUCCEEDED


@dataclass(frozen=True)
class RunSummary:
    """
    Every outcome observed by one run, in completion order.
    """

    job: str
    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def to_payload(self) -> dict[str, Any]:
        return {
            "job": self.job,
            "tasks": len(self.outcomes),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": [
                {"task": outcome.task_name, "error": outcome.diagnostic}
                for outcome in self.outcomes
                if not outcome.succeeded
            ],
        }
