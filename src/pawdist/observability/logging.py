"""Structured logging for the Distributor tooling.

Modules log through ``logging.getLogger(__name__)`` with ``extra=`` payloads;
``configure_logging`` routes those records and structlog's own loggers
through a single processor chain so both render identically:

- JSON or text output on stderr, keeping stdout free for ``--json`` results
- ``operation_id`` stamped on every line of one CLI invocation
- Wallet secrets redacted
- Wei amounts beyond float precision rendered as strings
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

# Context variable tying together every log line of one CLI operation
operation_id_var: ContextVar[str | None] = ContextVar("operation_id", default=None)

# Fields that must never reach the log output
REDACTED_FIELDS = frozenset(
    {
        "private_key",
        "private_key_file_content",
        "mnemonic",
        "seed",
        "secret",
        "password",
        "api_key",
        "raw_transaction",
    }
)

# Integers above this lose precision in JSON consumers that parse to float64
MAX_SAFE_INTEGER = 2**53

_handler: logging.Handler | None = None


def _add_operation_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add the operation ID to a log event if one is active."""
    operation_id = operation_id_var.get()
    if operation_id:
        event_dict["operation_id"] = operation_id
    return event_dict


def _redact_sensitive(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Redact wallet secrets from log events."""
    for key in event_dict:
        if key.lower() in REDACTED_FIELDS:
            event_dict[key] = "[REDACTED]"
    return event_dict


def _stringify_wei(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Render integers too large for a float64 as decimal strings."""
    for key, value in event_dict.items():
        if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
            event_dict[key] = str(value)
    return event_dict


def configure_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Configure structured logging for the application.

    Safe to call more than once; the previously installed handler is
    replaced.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR).
    log_format : str
        Output format (json or text).

    Raises
    ------
    ValueError
        If ``level`` is not a logging level name.
    """
    global _handler

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(
            f"Invalid log level: {level!r}. "
            "Valid levels are: DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )

    shared_processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_operation_id,
        _redact_sensitive,
        _stringify_wei,
    ]

    render_processors: list[structlog.typing.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_format.lower() == "json":
        render_processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render_processors.append(structlog.dev.ConsoleRenderer(colors=False))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared_processors],
            processors=render_processors,
        )
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(log_level)
    _handler = handler

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Parameters
    ----------
    name : str | None
        Logger name. If None, uses the calling module's name.

    Returns
    -------
    structlog.stdlib.BoundLogger
        Configured logger instance.
    """
    return structlog.get_logger(name)


def set_operation_id(operation_id: str) -> None:
    """Set the operation ID for the current context."""
    operation_id_var.set(operation_id)


def clear_operation_id() -> None:
    """Clear the operation ID for the current context."""
    operation_id_var.set(None)
