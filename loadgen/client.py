"""
loadgen/client.py

HTTP client for the remote data service: namespace creation and batch
statement execution.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from loadgen.config import RemoteServiceSettings
from loadgen.schemas import NamespaceCreateRequest, StatementBatchRequest

logger = logging.getLogger(__name__)

NAMESPACE_CREATE_OK_STATUS_CODES = frozenset({200, 400})
BATCH_OK_STATUS_CODES = frozenset({200})


class RemoteRequestError(RuntimeError):
    """
    Raised when a request fails: unexpected status code or transport error.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.body = body


class NamespaceClient:
    """
    Stateless-after-construction client shared by every task of a run.

    One ``requests.Session`` backs all calls; each call is fail-fast with no
    retry. Status 400 on namespace creation means the namespace already
    exists and counts as success.
    """

    def __init__(
        self,
        *,
        settings: RemoteServiceSettings,
        token: str | None = None,
        data_url: str | None = None,
        session: requests.Session | None = None,
        pool_size: int = 10,
    ) -> None:
        self._admin_url = settings.admin_url.rstrip("/")
        self._data_url = (data_url or settings.data_url).rstrip("/")
        self._routing_host_suffix = settings.routing_host_suffix
        self._timeout_seconds = settings.timeout_seconds
        self._token = token or None
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self._session = session

    def ensure_namespace(self, name: str) -> None:
        """
        Create ``name`` if it does not exist yet.
        """

        operation = f"create namespace {name}"
        url = f"{self._admin_url}/v1/namespaces/{name}/create"
        body = NamespaceCreateRequest().model_dump()
        response = self._post(operation=operation, url=url, json_body=body)
        self._raise_for_status(operation, response, NAMESPACE_CREATE_OK_STATUS_CODES)
        logger.debug("Namespace ready name=%s status=%s", name, response.status_code)

    def execute_batch(self, namespace: str, statements: Sequence[str]) -> None:
        """
        Execute ``statements`` against ``namespace`` in one request.
        """

        if not statements:
            raise ValueError(f"execute batch on {namespace}: batch must not be empty.")

        operation = f"execute batch on {namespace}"
        body = StatementBatchRequest(statements=list(statements)).model_dump()
        response = self._post(
            operation=operation,
            url=self._data_url,
            json_body=body,
            headers={"Host": self.routing_host(namespace)},
        )
        self._raise_for_status(operation, response, BATCH_OK_STATUS_CODES)

    def routing_host(self, namespace: str) -> str:
        return f"{namespace}.{self._routing_host_suffix}"

    def close(self) -> None:
        self._session.close()

    def _post(
        self,
        *,
        operation: str,
        url: str,
        json_body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        request_headers = {"Content-Type": "application/json"}
        if self._token:
            request_headers["Authorization"] = f"Bearer {self._token}"
        if headers:
            request_headers.update(headers)

        try:
            return self._session.post(
                url,
                json=json_body,
                headers=request_headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise RemoteRequestError(
                f"{operation}: transport error url={url}",
                operation=operation,
            ) from exc

    @staticmethod
    def _raise_for_status(
        operation: str,
        response: requests.Response,
        ok_status_codes: frozenset[int],
    ) -> None:
        if response.status_code in ok_status_codes:
            return

        try:
            body = response.text
        except (requests.RequestException, UnicodeDecodeError) as exc:
            raise RemoteRequestError(
                f"{operation}: failed request status={response.status_code}, body unreadable",
                operation=operation,
                status_code=response.status_code,
            ) from exc

        raise RemoteRequestError(
            f"{operation}: failed request status={response.status_code} body={body!r}",
            operation=operation,
            status_code=response.status_code,
            body=body,
        )
