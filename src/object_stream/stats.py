"""Stream statistics snapshot."""

from __future__ import annotations

from datetime import datetime

import msgspec

__all__ = ['StreamStats']


class StreamStats(msgspec.Struct, frozen=True, gc=False):
    """Statistics snapshot for a stream.

    ``objects_read`` counts objects produced by decode passes;
    ``objects_delivered`` and ``objects_consumed`` split them by where
    they went once dispatched.
    """

    format: str
    peer_name: str
    objects_read: int
    objects_delivered: int
    objects_consumed: int
    objects_written: int
    inbox_size: int
    outbox_size: int
    pending_consumers: int
    buffered_bytes: int
    bytes_read: int
    bytes_written: int
    created_at: datetime
