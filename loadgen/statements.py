"""
loadgen/statements.py

Loads the ordered statement stream replayed by a load run.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

SKIPPED_PREFIXES: tuple[str, ...] = ("BEGIN", "COMMIT", "--")


class StatementSourceError(RuntimeError):
    """
    Raised when the statement file cannot be opened or decoded.
    """


def is_statement(line: str) -> bool:
    """
    Transaction boundaries and comments are not replayed; everything else is.
    """

    return not line.startswith(SKIPPED_PREFIXES)


def _strip_terminator(raw: str) -> str:
    """
    Drop one trailing LF or CRLF; a lone CR is part of the line.
    """

    if raw.endswith("\n"):
        raw = raw[:-1]
        if raw.endswith("\r"):
            raw = raw[:-1]
    return raw


def load_statements(path: str | Path) -> tuple[str, ...]:
    """
    Read one statement per line, keeping source order.

    Blank lines are retained verbatim. The result is immutable so each task
    can take its own queue from it.
    """

    source = Path(path)
    try:
        with source.open("r", encoding="utf-8", newline="\n") as fh:
            statements = tuple(
                line for line in (_strip_terminator(raw) for raw in fh) if is_statement(line)
            )
    except (OSError, UnicodeDecodeError) as exc:
        raise StatementSourceError(f"failed to load statements from {source}") from exc

    logger.info("Loaded %s statements from %s", len(statements), source)
    return statements


def statement_queue(statements: Iterable[str]) -> deque[str]:
    """
    Fresh queue for one task.
    """

    return deque(statements)
