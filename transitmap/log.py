"""Structured logging for the layout engine.

Everything goes to stderr so that CLI output on stdout (tables, JSON) stays
machine-readable.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterable, Iterator, TextIO

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from transitmap.models import Diagnostic


class _StderrProxy:
    """Writes to whatever sys.stderr is at call time.

    PrintLoggerFactory keeps the file object it was created with, and
    cached loggers outlive test runners that swap sys.stderr.
    """

    def write(self, s: str) -> int:
        return sys.stderr.write(s)

    def flush(self) -> None:
        sys.stderr.flush()

    def isatty(self) -> bool:
        return sys.stderr.isatty()


_stderr_proxy: TextIO = _StderrProxy()  # type: ignore[assignment]


def configure_logging(verbose: bool = False, json_logs: bool = False) -> None:
    """Install the structlog pipeline: DEBUG when verbose, WARNING otherwise."""
    level = logging.DEBUG if verbose else logging.WARNING

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_stderr_proxy),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name or "transitmap")


@contextmanager
def bound_project(project_id: str) -> Iterator[None]:
    """Attach ``project_id`` to every log event emitted inside the block."""
    with structlog.contextvars.bound_contextvars(project_id=project_id):
        yield


def log_diagnostics(logger: Any, diagnostics: Iterable[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        logger.warning(
            diagnostic.message,
            kind=diagnostic.kind.value,
            branch_id=diagnostic.branch_id,
        )
