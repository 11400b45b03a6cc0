"""
loadgen/credentials.py

Resolves the (url, token) pair a run connects with, provisioning it through
the ``turso`` CLI when it is not supplied directly.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from loadgen.config import CredentialSettings
from loadgen.logging_utils import log_event

logger = logging.getLogger(__name__)


class CredentialProvisioningError(RuntimeError):
    """
    Raised when the provisioning command cannot be run or exits non-zero.
    """


@dataclass(frozen=True)
class CredentialPair:
    """
    Connection URL and access token, shared read-only by every task.
    """

    url: str
    token: str

    def __repr__(self) -> str:
        masked = "***" if self.token else ""
        return f"CredentialPair(url={self.url!r}, token={masked!r})"


def _run_cli(args: Sequence[str]) -> str:
    command = " ".join(args)
    try:
        completed = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        raise CredentialProvisioningError(f"{command}: could not start command") from exc

    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        raise CredentialProvisioningError(
            f"{command}: non-zero exit: {completed.returncode} msg: {stderr}"
        )

    try:
        stdout = completed.stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CredentialProvisioningError(f"{command}: output was not valid UTF-8") from exc
    return stdout.replace("\n", "")


def database_url(database: str, *, turso_bin: str = "turso") -> str:
    """
    Connection URL printed by ``turso db show --url <database>``.
    """

    return _run_cli([turso_bin, "db", "show", "--url", database])


def database_token(database: str, *, turso_bin: str = "turso") -> str:
    """
    New access token printed by ``turso db tokens create <database>``.
    """

    return _run_cli([turso_bin, "db", "tokens", "create", database])


def resolve_credentials(settings: CredentialSettings, *, default_url: str) -> CredentialPair:
    """
    Explicit url/token win, then provisioning for a named database, then
    ``default_url`` with no token.
    """

    if settings.url:
        return CredentialPair(url=settings.url, token=settings.token or "")

    if settings.database:
        url = database_url(settings.database, turso_bin=settings.turso_bin)
        token = settings.token or database_token(settings.database, turso_bin=settings.turso_bin)
        log_event(
            logger,
            logging.INFO,
            "credentials_provisioned",
            database=settings.database,
            url=url,
        )
        return CredentialPair(url=url, token=token)

    return CredentialPair(url=default_url, token=settings.token or "")
