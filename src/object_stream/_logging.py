"""Structured logging for object_stream.

The library only emits events; applications decide whether and how they are
rendered. ``configure_logging`` installs structlog with a stdlib
ProcessorFormatter so that structlog events and stdlib records from other
libraries share one output format.

Stream-level context (peer names, connection ids) can be attached to every
event with ``bind_stream_context``, which uses structlog's contextvars.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    'add_log_hook',
    'bind_stream_context',
    'clear_log_hooks',
    'clear_stream_context',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
]

logging.getLogger('object_stream').addHandler(logging.NullHandler())


def _shared_processors() -> list[Any]:
    """Processors applied to both structlog events and foreign stdlib records."""
    import structlog

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.stdlib.ExtraAdder(),
        _hook_processor,
    ]


def _renderer(json_output: bool) -> Any:
    import structlog

    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    level: str = 'INFO',
    *,
    json_output: bool = True,
) -> None:
    """Route object_stream events (and stdlib logging) through structlog.

    Args:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL").
        json_output: If True, emit JSON lines. If False, use the console renderer.
    """
    import structlog

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger backed by the stdlib logger ``name``.

    The logger is lazy: binding happens on first use, so module-level
    loggers pick up a later ``configure_logging`` call. Until then events
    go through stdlib logging, where the ``object_stream`` NullHandler and
    the default WARNING level keep them off stdout and stderr. A stream
    over the process's own stdout stays clean.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        A structlog BoundLogger proxy.
    """
    import structlog

    return structlog.wrap_logger(logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger)


def bind_stream_context(**values: Any) -> None:
    """Attach key/value pairs to every event logged from the current context.

    Example:
        ```python
        bind_stream_context(peer='worker-3')
        stream.read_one()  # any event logged here carries peer='worker-3'
        ```
    """
    import structlog

    structlog.contextvars.bind_contextvars(**values)


def clear_stream_context() -> None:
    """Drop everything bound with ``bind_stream_context``."""
    import structlog

    structlog.contextvars.clear_contextvars()


# --- Logging Hooks ---

_log_hooks: list[Callable[[dict[str, Any]], None]] = []


def add_log_hook(hook: Callable[[dict[str, Any]], None]) -> None:
    """Register a hook that receives a copy of every log event dict.

    Useful for counting overflow or malformed-stream events without
    parsing log output.
    """
    _log_hooks.append(hook)


def remove_log_hook(hook: Callable[[dict[str, Any]], None]) -> None:
    """Remove a previously registered log hook."""
    if hook in _log_hooks:
        _log_hooks.remove(hook)


def clear_log_hooks() -> None:
    """Remove all registered log hooks."""
    _log_hooks.clear()


def _hook_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for hook in _log_hooks:
        try:
            hook(event_dict.copy())
        except Exception:
            pass  # Don't let hook failures break logging
    return event_dict
