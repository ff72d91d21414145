"""Pytest configuration and shared fixtures for object_stream tests."""

from __future__ import annotations

import logging
import socket
import threading
from typing import TYPE_CHECKING, Any

import pytest
import structlog
from object_stream import clear_log_hooks, clear_stream_context, reset_config
from object_stream.codecs import registry

from tests.helpers import ALL_FORMATS, INCREMENTAL_FORMATS

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


def _reset_logging() -> None:
    """Undo configure_logging: structlog defaults, no root handler, WARNING."""
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def _isolate_globals() -> Generator[None]:
    """Reset process-wide config, logging, log hooks and log context around each test."""
    reset_config()
    clear_log_hooks()
    clear_stream_context()
    yield
    reset_config()
    clear_log_hooks()
    clear_stream_context()
    _reset_logging()


@pytest.fixture
def scratch_format() -> Generator[str]:
    """A format id that is removed from the registry afterwards."""
    name = 'scratch'
    yield name
    with registry._registry_lock:
        registry._factories.pop(name, None)
        registry._classes.pop(name, None)


@pytest.fixture(params=ALL_FORMATS)
def fmt(request: pytest.FixtureRequest) -> str:
    """Every built-in format."""
    return request.param


@pytest.fixture(params=INCREMENTAL_FORMATS)
def incremental_fmt(request: pytest.FixtureRequest) -> str:
    """Formats that decode from partial reads."""
    return request.param


@pytest.fixture
def socket_pair() -> Generator[tuple[socket.socket, socket.socket]]:
    """A connected pair of sockets, closed at teardown."""
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


@pytest.fixture
def run_in_thread() -> Generator[Callable[[Callable[[], Any]], threading.Thread]]:
    """Start a daemon thread running ``target``; joined at teardown.

    Exceptions raised by the target are re-raised after the join, so a
    failing writer fails the test.
    """
    threads: list[threading.Thread] = []
    errors: list[BaseException] = []

    def start(target: Callable[[], Any]) -> threading.Thread:
        def wrapper() -> None:
            try:
                target()
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        thread = threading.Thread(target=wrapper, daemon=True)
        thread.start()
        threads.append(thread)
        return thread

    yield start

    for thread in threads:
        thread.join(timeout=10)
    if errors:
        raise errors[0]

