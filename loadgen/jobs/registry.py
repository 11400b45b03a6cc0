"""
Job kind registry and factory.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from loadgen.config import LoadSettings, RemoteServiceSettings
from loadgen.jobs.base import Job
from loadgen.jobs.namespace_fanout import NamespaceFanoutJob
from loadgen.jobs.single_conn import SingleConnectionJob
from loadgen.statements import load_statements

JobFactory = Callable[[LoadSettings, RemoteServiceSettings], Job]


def build_single_conn(load: LoadSettings, remote: RemoteServiceSettings) -> Job:
    return SingleConnectionJob(
        table_name=load.table_name,
        insert_count=load.insert_count,
        blob_size=load.blob_size,
    )


def build_namespace_fanout(load: LoadSettings, remote: RemoteServiceSettings) -> Job:
    return NamespaceFanoutJob(
        statements=load_statements(load.source_path),
        settings=remote,
        namespace_count=load.namespace_count,
        namespace_prefix=load.namespace_prefix,
        batch_size=load.batch_size,
    )


class JobRegistry:
    """
    Maps job kind names to factories; new kinds register without touching the runner.
    """

    def __init__(self, registrations: Mapping[str, JobFactory] | None = None) -> None:
        builtins: dict[str, JobFactory] = {
            SingleConnectionJob.name: build_single_conn,
            NamespaceFanoutJob.name: build_namespace_fanout,
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins

    def register(self, *, kind: str, factory: JobFactory) -> None:
        self._registrations[kind.strip().lower()] = factory

    def kinds(self) -> list[str]:
        return sorted(self._registrations)

    def create_job(
        self,
        *,
        kind: str,
        load: LoadSettings,
        remote: RemoteServiceSettings,
    ) -> Job:
        factory = self._registrations.get(kind.strip().lower())
        if factory is None:
            allowed = ", ".join(self.kinds())
            raise ValueError(f"Unknown job kind='{kind}'. Allowed kinds: {allowed}.")
        return factory(load, remote)
