"""
tests/test_jobs.py

Job variants and the job registry.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fakes import FakeHandle, FakeResponse, FakeSession
from loadgen.client import NamespaceClient
from loadgen.config import LoadSettings, RemoteServiceSettings
from loadgen.credentials import CredentialPair
from loadgen.jobs import JobRegistry, NamespaceFanoutJob, RemoteHandleError, SingleConnectionJob
from loadgen.jobs.base import Job
from loadgen.runner import JobSetupError, Runner, TaskSet
from loadgen.statements import StatementSourceError

CREDENTIALS = CredentialPair(url="libsql://db.test", token="tkn")


class TestSingleConnectionJob:
    def test_creates_table_then_inserts_sequentially(self) -> None:
        handle = FakeHandle()
        opened: list[tuple[str, str]] = []

        def connect(url: str, token: str) -> FakeHandle:
            opened.append((url, token))
            return handle

        job = SingleConnectionJob(insert_count=5, blob_size=6000, connect=connect)
        summary = Runner(credentials=CREDENTIALS, job=job).run()

        assert opened == [("libsql://db.test", "tkn")]
        assert summary.succeeded == 1
        assert handle.statements[0] == "CREATE TABLE IF NOT EXISTS foo (x BLOB)"
        assert handle.statements[1:] == ["INSERT INTO foo VALUES (randomblob(6000))"] * 5
        assert handle.closed

    def test_open_failure_is_a_setup_error(self) -> None:
        def connect(url: str, token: str) -> FakeHandle:
            raise ConnectionError("refused")

        job = SingleConnectionJob(insert_count=1, connect=connect)

        with pytest.raises(JobSetupError) as excinfo:
            Runner(credentials=CREDENTIALS, job=job).run()

        assert isinstance(excinfo.value.__cause__, RemoteHandleError)

    def test_handle_is_closed_when_spawn_fails(self) -> None:
        class _FullTaskSet(TaskSet):
            def spawn(self, name, fn):
                raise RuntimeError("can't start new thread")

        handle = FakeHandle()
        job = SingleConnectionJob(insert_count=1, connect=lambda url, token: handle)

        with pytest.raises(RuntimeError, match="can't start new thread"):
            job.schedule(CREDENTIALS, _FullTaskSet())

        assert handle.closed
        assert handle.statements == []

    def test_insert_failure_becomes_task_outcome(self) -> None:
        handle = FakeHandle(fail_on="INSERT", fail_after=3)
        job = SingleConnectionJob(insert_count=10, connect=lambda url, token: handle)

        summary = Runner(credentials=CREDENTIALS, job=job).run()

        (outcome,) = summary.outcomes
        assert not outcome.succeeded
        assert outcome.diagnostic is not None
        assert outcome.diagnostic.startswith("insert: remote rejected")
        assert len(handle.statements) == 3
        assert handle.closed

    def test_custom_table_and_blob_size(self) -> None:
        job = SingleConnectionJob(table_name="load_rows", blob_size=16, connect=lambda u, t: FakeHandle())

        assert job.create_sql == "CREATE TABLE IF NOT EXISTS load_rows (x BLOB)"
        assert job.insert_sql == "INSERT INTO load_rows VALUES (randomblob(16))"

    @pytest.mark.parametrize(
        "kwargs",
        [{"table_name": "foo; DROP TABLE x"}, {"insert_count": -1}, {"blob_size": 0}],
    )
    def test_rejects_invalid_parameters(self, kwargs) -> None:
        with pytest.raises(ValueError):
            SingleConnectionJob(**kwargs)


class TestNamespaceFanoutJob:
    def _job(
        self,
        settings: RemoteServiceSettings,
        session: FakeSession,
        *,
        statements: list[str],
        namespace_count: int = 3,
        batch_size: int = 2,
    ) -> NamespaceFanoutJob:
        return NamespaceFanoutJob(
            statements=statements,
            settings=settings,
            namespace_count=namespace_count,
            namespace_prefix="ns-",
            batch_size=batch_size,
            client_factory=lambda credentials: NamespaceClient(
                settings=settings,
                token=credentials.token,
                session=session,  # type: ignore[arg-type]
            ),
        )

    def test_namespace_names(self, remote_settings, fake_session) -> None:
        job = self._job(remote_settings, fake_session, statements=[], namespace_count=3)

        assert job.namespaces() == ["ns-0", "ns-1", "ns-2"]

    def test_each_namespace_receives_every_statement_in_order(self, remote_settings, fake_session) -> None:
        statements = [f"INSERT {index};" for index in range(5)]
        job = self._job(remote_settings, fake_session, statements=statements)

        summary = Runner(credentials=CREDENTIALS, job=job).run()

        assert summary.succeeded == 3
        assert sorted(fake_session.create_urls()) == [
            f"http://admin.test:8081/v1/namespaces/ns-{index}/create" for index in range(3)
        ]
        for index in range(3):
            batches = fake_session.batches_for(f"ns-{index}.foo")
            assert [len(batch) for batch in batches] == [2, 2, 1]
            assert [item for batch in batches for item in batch] == statements
        assert fake_session.closed

    def test_empty_source_creates_namespaces_only(self, remote_settings, fake_session) -> None:
        job = self._job(remote_settings, fake_session, statements=[])

        summary = Runner(credentials=CREDENTIALS, job=job).run()

        assert summary.succeeded == 3
        assert len(fake_session.requests) == 3

    def test_replay_returns_batches_sent(self, remote_settings, fake_session) -> None:
        job = self._job(remote_settings, fake_session, statements=["a", "b", "c"], batch_size=2)
        client = NamespaceClient(settings=remote_settings, session=fake_session)  # type: ignore[arg-type]

        assert job.replay(client, "ns-9") == 2

    def test_failed_namespace_creation_stops_that_namespace_only(self, remote_settings) -> None:
        def respond(request) -> FakeResponse:
            if request.url.endswith("/ns-1/create"):
                return FakeResponse(500, "namespace store unavailable")
            return FakeResponse(200)

        session = FakeSession(respond)
        job = self._job(remote_settings, session, statements=["a", "b", "c"])

        summary = Runner(credentials=CREDENTIALS, job=job).run()

        failures = [outcome for outcome in summary.outcomes if not outcome.succeeded]
        assert [outcome.task_name for outcome in failures] == ["ns-1"]
        assert "namespace store unavailable" in (failures[0].diagnostic or "")
        assert session.batches_for("ns-1.foo") == []
        assert len(session.batches_for("ns-0.foo")) == 2

    def test_rejects_invalid_shape(self, remote_settings) -> None:
        with pytest.raises(ValueError):
            NamespaceFanoutJob(statements=[], settings=remote_settings, namespace_count=0)
        with pytest.raises(ValueError):
            NamespaceFanoutJob(statements=[], settings=remote_settings, batch_size=0)

    def test_default_client_targets_credential_url(self, remote_settings) -> None:
        job = NamespaceFanoutJob(statements=["a"], settings=remote_settings, namespace_count=2)

        client = job._default_client(CredentialPair(url="http://custom.test:8080", token="t"))
        try:
            assert client._data_url == "http://custom.test:8080"
            assert client._admin_url == "http://admin.test:8081"
            assert client.routing_host("ns-0") == "ns-0.foo"
        finally:
            client.close()


class TestJobRegistry:
    def test_builtin_kinds(self) -> None:
        assert JobRegistry().kinds() == ["namespace-fanout", "single-conn"]

    def test_creates_fanout_job_from_settings(self, tmp_path: Path, remote_settings) -> None:
        source = tmp_path / "load.sql"
        source.write_text("BEGIN\nINSERT 1;\nCOMMIT\n", encoding="utf-8")
        load = LoadSettings(source_path=str(source), namespace_count=4, batch_size=10)

        job = JobRegistry().create_job(kind="namespace-fanout", load=load, remote=remote_settings)

        assert isinstance(job, NamespaceFanoutJob)
        assert job.namespaces() == ["4ar-0", "4ar-1", "4ar-2", "4ar-3"]
        assert job.batch_size == 10

    def test_fanout_job_fails_fast_on_missing_source(self, tmp_path: Path, remote_settings) -> None:
        load = LoadSettings(source_path=str(tmp_path / "missing.sql"))

        with pytest.raises(StatementSourceError):
            JobRegistry().create_job(kind="namespace-fanout", load=load, remote=remote_settings)

    def test_creates_single_conn_job(self, remote_settings) -> None:
        load = LoadSettings(insert_count=7, blob_size=32, table_name="bench")

        job = JobRegistry().create_job(kind=" Single-Conn ", load=load, remote=remote_settings)

        assert isinstance(job, SingleConnectionJob)
        assert job.insert_count == 7
        assert job.insert_sql == "INSERT INTO bench VALUES (randomblob(32))"

    def test_unknown_kind_lists_allowed(self, remote_settings) -> None:
        with pytest.raises(ValueError, match="Allowed kinds: namespace-fanout, single-conn"):
            JobRegistry().create_job(kind="nope", load=LoadSettings(), remote=remote_settings)

    def test_registering_new_kind_needs_no_runner_change(self, remote_settings) -> None:
        class _NoopJob(Job):
            name = "noop"

            def schedule(self, credentials: CredentialPair, tasks: TaskSet) -> None:
                tasks.spawn("noop", lambda: None)

        registry = JobRegistry()
        registry.register(kind="noop", factory=lambda load, remote: _NoopJob())
        job = registry.create_job(kind="noop", load=LoadSettings(), remote=remote_settings)

        summary = Runner(credentials=CREDENTIALS, job=job).run()

        assert summary.succeeded == 1
