"""
Base job abstraction: what one run schedules onto the task set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loadgen.credentials import CredentialPair
    from loadgen.runner import TaskSet


class Job(ABC):
    """
    A unit of load that knows how to enqueue its own concurrent work.

    ``schedule`` raises only for setup failures. Failures inside spawned work
    are reported as that task's outcome.
    """

    name: str

    @abstractmethod
    def schedule(self, credentials: CredentialPair, tasks: TaskSet) -> None:
        """
        Spawn this job's tasks onto ``tasks`` without waiting for them.
        """

    def close(self) -> None:
        """
        Release resources held across tasks once every task has completed.
        """
