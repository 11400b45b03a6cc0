"""
loadgen/config.py

Environment-driven configuration for the load driver.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> float | None:
    """
    Read an optional positive float; unset, unparsable or non-positive means None.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return None
    try:
        parsed = float(raw_value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class RemoteServiceSettings:
    """
    Endpoints and HTTP behavior for the remote data service.
    """

    admin_url: str = "http://localhost:8081"
    data_url: str = "http://localhost:8080"
    routing_host_suffix: str = "foo"
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class LoadSettings:
    """
    Workload shape for a load run.
    """

    source_path: str = "speedtest1.sql"
    batch_size: int = 50
    namespace_count: int = 50
    namespace_prefix: str = "4ar-"
    insert_count: int = 50_000
    blob_size: int = 6000
    table_name: str = "foo"


@dataclass(frozen=True)
class CredentialSettings:
    """
    Explicit credentials, or the database to provision them for.
    """

    url: str | None = None
    token: str | None = None
    database: str | None = None
    turso_bin: str = "turso"


@lru_cache(maxsize=1)
def get_remote_service_settings() -> RemoteServiceSettings:
    """
    Return cached remote service settings from environment variables.
    """

    return RemoteServiceSettings(
        admin_url=_get_str_env("LOADGEN_ADMIN_URL", "http://localhost:8081"),
        data_url=_get_str_env("LOADGEN_DATA_URL", "http://localhost:8080"),
        routing_host_suffix=_get_str_env("LOADGEN_ROUTING_HOST_SUFFIX", "foo"),
        timeout_seconds=_get_optional_float_env("LOADGEN_HTTP_TIMEOUT_SECONDS"),
    )


@lru_cache(maxsize=1)
def get_load_settings() -> LoadSettings:
    """
    Return cached workload settings from environment variables.
    """

    return LoadSettings(
        source_path=_get_str_env("LOADGEN_SOURCE_PATH", "speedtest1.sql"),
        batch_size=max(1, _get_int_env("LOADGEN_BATCH_SIZE", 50)),
        namespace_count=max(1, _get_int_env("LOADGEN_NAMESPACE_COUNT", 50)),
        namespace_prefix=_get_str_env("LOADGEN_NAMESPACE_PREFIX", "4ar-"),
        insert_count=max(0, _get_int_env("LOADGEN_INSERT_COUNT", 50_000)),
        blob_size=max(1, _get_int_env("LOADGEN_BLOB_SIZE", 6000)),
        table_name=_get_str_env("LOADGEN_TABLE_NAME", "foo"),
    )


@lru_cache(maxsize=1)
def get_credential_settings() -> CredentialSettings:
    """
    Return cached credential settings from environment variables.
    """

    return CredentialSettings(
        url=_get_optional_str_env("LOADGEN_URL"),
        token=_get_optional_str_env("LOADGEN_TOKEN"),
        database=_get_optional_str_env("LOADGEN_DATABASE"),
        turso_bin=_get_str_env("LOADGEN_TURSO_BIN", "turso"),
    )
