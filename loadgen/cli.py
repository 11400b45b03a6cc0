"""
Command-line entry point for load runs.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from dataclasses import replace

from loadgen.config import (
    CredentialSettings,
    get_credential_settings,
    get_load_settings,
    get_remote_service_settings,
)
from loadgen.credentials import CredentialProvisioningError, resolve_credentials
from loadgen.jobs import JobRegistry, SingleConnectionJob
from loadgen.jobs.namespace_fanout import NamespaceFanoutJob
from loadgen.logging_utils import configure_logging, describe_error
from loadgen.runner import COMPLETION_MARKER, JobSetupError, Runner
from loadgen.statements import StatementSourceError

SETUP_ERRORS = (
    StatementSourceError,
    CredentialProvisioningError,
    JobSetupError,
    ValueError,
)


def build_parser(registry: JobRegistry) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay write load against a remote data service.")
    parser.add_argument(
        "--job",
        choices=registry.kinds(),
        default=NamespaceFanoutJob.name,
        help="Job kind to run.",
    )
    parser.add_argument("--source", dest="source_path", default=None, help="Statement file path.")
    parser.add_argument("--batch-size", type=int, default=None, help="Statements per request.")
    parser.add_argument("--namespaces", dest="namespace_count", type=int, default=None)
    parser.add_argument("--namespace-prefix", default=None)
    parser.add_argument("--inserts", dest="insert_count", type=int, default=None)
    parser.add_argument("--url", default=None, help="Remote URL; skips provisioning.")
    parser.add_argument("--token", default=None, help="Access token.")
    parser.add_argument(
        "--database",
        default=None,
        help="Database to provision url/token for through the turso CLI.",
    )
    return parser


def _overrides(args: argparse.Namespace, names: Sequence[str]) -> dict[str, object]:
    return {name: getattr(args, name) for name in names if getattr(args, name) is not None}


def _check_credentials_for_job(kind: str, settings: CredentialSettings) -> None:
    """
    Provisioned credentials are libsql URLs, which the HTTP fan-out job cannot use.
    """

    if kind == NamespaceFanoutJob.name and settings.database and not settings.url:
        raise ValueError(
            f"--database only applies to {SingleConnectionJob.name}; "
            f"pass --url for {NamespaceFanoutJob.name}."
        )


def main(argv: Sequence[str] | None = None, *, registry: JobRegistry | None = None) -> int:
    configure_logging()
    registry = registry or JobRegistry()
    args = build_parser(registry).parse_args(argv)

    load = replace(
        get_load_settings(),
        **_overrides(
            args,
            ("source_path", "batch_size", "namespace_count", "namespace_prefix", "insert_count"),
        ),
    )
    remote = get_remote_service_settings()
    credential_settings = replace(
        get_credential_settings(),
        **_overrides(args, ("url", "token", "database")),
    )

    try:
        _check_credentials_for_job(args.job, credential_settings)
        job = registry.create_job(kind=args.job, load=load, remote=remote)
        credentials = resolve_credentials(credential_settings, default_url=remote.data_url)
        summary = Runner(credentials=credentials, job=job).run()
    except SETUP_ERRORS as exc:
        print(f"Error: {describe_error(exc)}", file=sys.stderr)
        return 1

    print(json.dumps(summary.to_payload(), indent=2))
    print(COMPLETION_MARKER)
    return 0
