"""Logging configuration for mcp-conformance.

Harness modules log through the standard library; runner and lifecycle log
through structlog. Both are rendered by the same structlog processor chain,
so every line carries the role and scenario of the run that produced it.
Output goes to stderr (human-readable) or to a file (JSON lines); stdout is
reserved for the check report.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(
    level: str = "warning",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Route standard logging and structlog through one handler.

    Args:
        level: One of LOG_LEVELS; unknown names fall back to warning
        log_file: Write to this file instead of stderr
        json_output: Render JSON lines instead of console output
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handler: logging.Handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(log_path))
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def run_context(role: str, scenario: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with the run's role and scenario.

    Context is per asyncio task, so concurrent runs keep their own tags.
    """
    with structlog.contextvars.bound_contextvars(role=role, scenario=scenario):
        yield
