"""
Single-connection bulk insert over the remote libsql protocol.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

import libsql_client

from loadgen.credentials import CredentialPair
from loadgen.jobs.base import Job
from loadgen.logging_utils import log_event
from loadgen.runner import TaskSet

logger = logging.getLogger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RemoteHandleError(RuntimeError):
    """
    Raised when the remote handle cannot be opened or a statement fails on it.
    """


def connect_remote(url: str, token: str) -> Any:
    return libsql_client.create_client_sync(url, auth_token=token or None)


class SingleConnectionJob(Job):
    """
    Opens one remote handle and issues sequential single-row inserts on it.
    """

    name = "single-conn"

    def __init__(
        self,
        *,
        table_name: str = "foo",
        insert_count: int = 50_000,
        blob_size: int = 6000,
        connect: Callable[[str, str], Any] = connect_remote,
    ) -> None:
        if not _IDENTIFIER_PATTERN.match(table_name):
            raise ValueError(f"Invalid table name '{table_name}'.")
        if insert_count < 0:
            raise ValueError("insert_count must not be negative.")
        if blob_size <= 0:
            raise ValueError("blob_size must be positive.")
        self.table_name = table_name
        self.insert_count = insert_count
        self.blob_size = blob_size
        self._connect = connect

    @property
    def create_sql(self) -> str:
        return f"CREATE TABLE IF NOT EXISTS {self.table_name} (x BLOB)"

    @property
    def insert_sql(self) -> str:
        return f"INSERT INTO {self.table_name} VALUES (randomblob({self.blob_size}))"

    def schedule(self, credentials: CredentialPair, tasks: TaskSet) -> None:
        try:
            handle = self._connect(credentials.url, credentials.token)
        except Exception as exc:
            raise RemoteHandleError(f"open remote {credentials.url}") from exc

        try:
            tasks.spawn(self.name, lambda: self._insert_rows(handle))
        except Exception:
            handle.close()
            raise

    def _insert_rows(self, handle: Any) -> None:
        try:
            self._execute(handle, self.create_sql, step="create")
            for _ in range(self.insert_count):
                self._execute(handle, self.insert_sql, step="insert")
        finally:
            handle.close()

        log_event(
            logger,
            logging.INFO,
            "rows_inserted",
            table=self.table_name,
            rows=self.insert_count,
            blob_size=self.blob_size,
        )

    @staticmethod
    def _execute(handle: Any, sql: str, *, step: str) -> None:
        try:
            handle.execute(sql)
        except Exception as exc:
            raise RemoteHandleError(step) from exc
