"""
Job variants schedulable by the runner.
"""

from loadgen.jobs.base import Job
from loadgen.jobs.namespace_fanout import NamespaceFanoutJob
from loadgen.jobs.registry import JobRegistry
from loadgen.jobs.single_conn import RemoteHandleError, SingleConnectionJob

__all__ = [
    "Job",
    "JobRegistry",
    "NamespaceFanoutJob",
    "RemoteHandleError",
    "SingleConnectionJob",
]
