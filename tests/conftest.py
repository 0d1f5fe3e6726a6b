import logging

import pytest

from fileguard.errors import ReadError
from fileguard.events import EVENT_CODES, EVENT_HEADER
from fileguard.logger import LOGGER_NAME


def make_record(event, payload=b"", wd=1, cookie=0, flags=0):
    """Pack one inotify_event record for the named event (or a raw mask)."""
    mask = EVENT_CODES[event] if isinstance(event, str) else event
    return EVENT_HEADER.pack(wd, mask | flags, cookie, len(payload)) + payload


class FakeHandle:
    """
    Stand-in for WatchHandle that replays scripted reads.

    Each entry is either bytes to return or a callable producing the bytes.
    Once the script runs out, reads fail like a closed descriptor would.
    """

    def __init__(self, reads, path="/tmp/watched"):
        self.path = path
        self.reads = list(reads)
        self.closes = 0
        self.closed = False

    def read(self):
        if self.closed:
            raise ReadError(f"Watch on {self.path} is closed")
        if not self.reads:
            raise ReadError("read failed")
        item = self.reads.pop(0)
        if callable(item):
            return item()
        return item

    def close(self):
        self.closes += 1
        self.closed = True


@pytest.fixture
def watched_file(tmp_path):
    path = tmp_path / "watched"
    path.write_text("initial\n")
    return path


@pytest.fixture(autouse=True)
def reset_fileguard_logger():
    """Drop handlers the CLI attached so later tests do not log to stale streams."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
