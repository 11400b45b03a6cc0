"""
loadgen/runner.py

Concurrent task set and the runner that drives one job through it.

Every spawned task runs on its own thread and reports exactly one
``TaskOutcome`` through a completion queue. A failing task is captured as a
failed outcome; it never cancels or blocks its siblings, and ``join_all``
returns only after every spawned task has been observed.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loadgen.domain import TASK_FAILED, TASK_SUCCEEDED, RunSummary, TaskOutcome
from loadgen.logging_utils import describe_error, log_event

if TYPE_CHECKING:
    from loadgen.credentials import CredentialPair
    from loadgen.jobs.base import Job

logger = logging.getLogger(__name__)

COMPLETION_MARKER = "Job finished executing"


class JobSetupError(RuntimeError):
    """
    Raised when a job fails before its work could be scheduled.
    """


@dataclass(frozen=True)
class TaskHandle:
    task_id: int
    name: str
    thread: threading.Thread


class TaskSet:
    """
    In-flight set of concurrently running tasks with a completion stream.
    """

    def __init__(self) -> None:
        self._completed: queue.Queue[tuple[int, TaskOutcome]] = queue.Queue()
        self._in_flight: dict[int, TaskHandle] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def spawn(self, name: str, fn: Callable[[], None]) -> TaskHandle:
        """
        Start ``fn`` concurrently and return immediately.
        """

        task_id = next(self._ids)
        thread = threading.Thread(
            target=self._run_task,
            args=(task_id, name, fn),
            name=f"loadgen-task-{name}",
            daemon=True,
        )
        handle = TaskHandle(task_id=task_id, name=name, thread=thread)
        with self._lock:
            self._in_flight[task_id] = handle
        try:
            thread.start()
        except Exception:
            with self._lock:
                self._in_flight.pop(task_id, None)
            raise
        log_event(logger, logging.DEBUG, "task_spawned", task=name)
        return handle

    def join_next(self) -> TaskOutcome | None:
        """
        Block until one in-flight task completes and return its outcome.

        Returns None when nothing is in flight.
        """

        with self._lock:
            if not self._in_flight:
                return None

        task_id, outcome = self._completed.get()
        with self._lock:
            handle = self._in_flight.pop(task_id)
        handle.thread.join()
        return outcome

    def join_all(
        self,
        on_outcome: Callable[[TaskOutcome], None] | None = None,
    ) -> list[TaskOutcome]:
        """
        Drain the completion stream until no task is in flight.
        """

        outcomes: list[TaskOutcome] = []
        while True:
            outcome = self.join_next()
            if outcome is None:
                return outcomes
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

    def _run_task(self, task_id: int, name: str, fn: Callable[[], None]) -> None:
        outcome: TaskOutcome | None = None
        try:
            fn()
            outcome = TaskOutcome(task_name=name, status=TASK_SUCCEEDED)
        except Exception as exc:
            outcome = TaskOutcome(
                task_name=name,
                status=TASK_FAILED,
                error=exc,
                diagnostic=describe_error(exc),
            )
        finally:
            if outcome is None:
                outcome = TaskOutcome(
                    task_name=name,
                    status=TASK_FAILED,
                    diagnostic="task exited abnormally",
                )
            self._completed.put((task_id, outcome))


class Runner:
    """
    Schedules one job and waits for every task it spawned.
    """

    def __init__(self, *, credentials: CredentialPair, job: Job) -> None:
        self._credentials = credentials
        self._job = job

    def run(self) -> RunSummary:
        tasks = TaskSet()
        try:
            try:
                self._job.schedule(self._credentials, tasks)
            except Exception as exc:
                drained = tasks.join_all(on_outcome=self._report)
                log_event(
                    logger,
                    logging.ERROR,
                    "job_setup_failed",
                    job=self._job.name,
                    drained_tasks=len(drained),
                    error=describe_error(exc),
                )
                raise JobSetupError("failed to setup job") from exc

            log_event(logger, logging.INFO, "job_scheduled", job=self._job.name, tasks=len(tasks))
            outcomes = tasks.join_all(on_outcome=self._report)
        finally:
            self._job.close()

        summary = RunSummary(job=self._job.name, outcomes=outcomes)
        log_event(
            logger,
            logging.INFO,
            "run_completed",
            job=summary.job,
            tasks=len(summary.outcomes),
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
        return summary

    @staticmethod
    def _report(outcome: TaskOutcome) -> None:
        if outcome.succeeded:
            log_event(logger, logging.INFO, "task_succeeded", task=outcome.task_name)
            return
        log_event(
            logger,
            logging.ERROR,
            "task_failed",
            task=outcome.task_name,
            error=outcome.diagnostic,
        )
