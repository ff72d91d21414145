"""Process-wide stream defaults: StreamConfig, init(), get_config()."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from object_stream._logging import configure_logging
from object_stream.codecs.registry import Format, is_registered
from object_stream.errors import UnknownFormat

__all__ = [
    'DEFAULT_MAX_OUTBOX',
    'StreamConfig',
    'get_config',
    'init',
    'reset_config',
]

DEFAULT_MAX_OUTBOX = 10


@dataclass(frozen=True)
class StreamConfig:
    """Defaults applied to every ``Stream`` constructed without explicit values.

    Attributes:
        format: Format id used when ``Stream(io)`` is given no format.
        max_outbox: Outbox size above which queued writes are flushed.
        log_level: Logging level passed to ``configure_logging``. None = leave
            logging alone.
        codec_options: Per-format codec keyword arguments, for example
            ``{'msgpack': {'max_buffer': 1 << 20}}``. Arguments passed to
            ``Stream`` override these.
    """

    format: str = Format.PICKLE
    max_outbox: int = DEFAULT_MAX_OUTBOX
    log_level: str | None = None
    codec_options: dict[str, dict[str, Any]] = field(default_factory=dict)

    def options_for(self, format: str) -> dict[str, Any]:  # noqa: A002
        """Configured codec options for ``format`` (a fresh dict)."""
        return dict(self.codec_options.get(str(format), {}))


# Global stream configuration (set by init())
_config: StreamConfig | None = None


def init(
    format: str | None = None,  # noqa: A002
    max_outbox: int | None = None,
    log_level: str | None = None,
    codec_options: dict[str, dict[str, Any]] | None = None,
) -> StreamConfig:
    """Install process-wide stream defaults.

    Args:
        format: Default format id. Must be registered.
        max_outbox: Default outbox threshold (at least 0).
        log_level: Logging level ("DEBUG", "INFO", etc.). None = silent.
        codec_options: Per-format codec keyword arguments.

    Returns:
        The StreamConfig that was set.

    Raises:
        UnknownFormatError: If ``format`` has no registered codec.

    Example:
        ```python
        import object_stream

        object_stream.init(format='msgpack', codec_options={'msgpack': {'max_buffer': 65536}})
        stream = object_stream.Stream(sock)  # msgpack, 64 KiB buffer limit
        ```
    """
    global _config  # noqa: PLW0603

    resolved_format = str(format) if format is not None else StreamConfig.format
    if not is_registered(resolved_format):
        raise UnknownFormat(resolved_format).to_exception()

    resolved_max_outbox = DEFAULT_MAX_OUTBOX if max_outbox is None else max(0, max_outbox)

    _config = StreamConfig(
        format=resolved_format,
        max_outbox=resolved_max_outbox,
        log_level=log_level,
        codec_options={str(key): dict(value) for key, value in (codec_options or {}).items()},
    )

    if log_level is not None:
        configure_logging(log_level)

    return _config


def get_config() -> StreamConfig:
    """Get the current stream configuration.

    Returns the defaults when ``init()`` has not been called.
    """
    if _config is None:
        return StreamConfig()
    return _config


def reset_config() -> None:
    """Forget anything installed by ``init()``."""
    global _config  # noqa: PLW0603
    _config = None
