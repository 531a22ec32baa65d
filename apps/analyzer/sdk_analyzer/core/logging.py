"""Structured logging via structlog.

Configures structlog once at process startup. Library modules keep using
`logging.getLogger(__name__)`; the stdlib bridge routes their output to
the same stream.

Renderer selection:
  debug=True: `ConsoleRenderer` with colours for interactive runs.
  debug=False: `JSONRenderer` for machine-parseable logs in CI.

Logs go to stderr so the YAML document can be piped from stdout.

ContextVar injection:
  The provider being analyzed is injected into every structlog line from
  `_provider_var`, set by `bind_analysis_context()` at the start of a run.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog

_provider_var: ContextVar[str] = ContextVar("provider", default="")


def bind_analysis_context(provider: str) -> None:
    """Tag subsequent log lines in this context with the provider name."""
    _provider_var.set(provider)


def get_provider() -> str:
    """Return the provider of the current analysis, or empty string if not set."""
    return _provider_var.get()


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject the provider name from its ContextVar."""
    provider = get_provider()
    if provider:
        event_dict["provider"] = provider
    return event_dict


def configure_structlog(debug: bool = True) -> None:
    """Configure structlog for the process lifetime.

    Call once from the entry point before the analysis starts.
    Calling it again replaces the previous configuration.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
    )
