"""
Namespace fan-out: replays the statement stream into many namespaces at once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from loadgen.batching import iter_batches
from loadgen.client import NamespaceClient
from loadgen.config import RemoteServiceSettings
from loadgen.credentials import CredentialPair
from loadgen.jobs.base import Job
from loadgen.logging_utils import log_event
from loadgen.runner import TaskSet
from loadgen.statements import statement_queue

logger = logging.getLogger(__name__)


class NamespaceFanoutJob(Job):
    """
    One task per namespace. Each task creates its namespace, then drains its
    own copy of the statements in batches of ``batch_size``.
    """

    name = "namespace-fanout"

    def __init__(
        self,
        *,
        statements: Sequence[str],
        settings: RemoteServiceSettings,
        namespace_count: int = 50,
        namespace_prefix: str = "4ar-",
        batch_size: int = 50,
        client_factory: Callable[[CredentialPair], NamespaceClient] | None = None,
    ) -> None:
        if namespace_count < 1:
            raise ValueError("namespace_count must be at least 1.")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        self._statements = tuple(statements)
        self._settings = settings
        self.namespace_count = namespace_count
        self.namespace_prefix = namespace_prefix
        self.batch_size = batch_size
        self._client_factory = client_factory or self._default_client
        self._client: NamespaceClient | None = None

    def namespaces(self) -> list[str]:
        return [f"{self.namespace_prefix}{index}" for index in range(self.namespace_count)]

    def schedule(self, credentials: CredentialPair, tasks: TaskSet) -> None:
        client = self._client_factory(credentials)
        self._client = client
        for namespace in self.namespaces():
            tasks.spawn(namespace, self._replay_task(client, namespace))

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _replay_task(self, client: NamespaceClient, namespace: str) -> Callable[[], None]:
        def replay() -> None:
            self.replay(client, namespace)

        return replay

    def replay(self, client: NamespaceClient, namespace: str) -> int:
        """
        Create ``namespace`` and execute every batch against it in order.

        Returns the number of batches sent.
        """

        client.ensure_namespace(namespace)
        log_event(logger, logging.DEBUG, "namespace_ready", namespace=namespace)

        pending = statement_queue(self._statements)
        sent = 0
        for batch in iter_batches(pending, self.batch_size):
            client.execute_batch(namespace, batch)
            sent += 1
            log_event(
                logger,
                logging.DEBUG,
                "batch_executed",
                namespace=namespace,
                batch=sent,
                statements=len(batch),
            )
        return sent

    def _default_client(self, credentials: CredentialPair) -> NamespaceClient:
        return NamespaceClient(
            settings=self._settings,
            token=credentials.token,
            data_url=credentials.url,
            pool_size=self.namespace_count,
        )
