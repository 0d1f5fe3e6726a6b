"""
The watch loop.

Each iteration blocks on one read of the watch handle, decodes every record
the read returned, and hands matching events to the action executor.
Events are handled strictly in the order they were read; nothing is
batched or reordered across reads.
"""

import enum
import logging
import time
from typing import Callable, Optional

from fileguard.actions import ActionExecutor, format_timestamp
from fileguard.errors import ReadError
from fileguard.events import CanonicalEvent, EventCursor
from fileguard.rules import Rule
from fileguard.shutdown import ShutdownController

logger = logging.getLogger("fileguard.dispatcher")


class DispatcherState(enum.Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Dispatcher:
    """
    Reads, decodes and dispatches inotify events for one rule.

    Args:
        handle: Open watch handle to read from.
        rule: The rule events are matched against.
        executor: Callable invoked as executor(event_name, timestamp) on match.
        shutdown: Controller owning the handle's release.
        notifier: Optional callable invoked as notifier(timestamp, event_name)
            for every decoded event, matched or not.
        clock: Returns the current epoch time.
    """

    def __init__(
        self,
        handle,
        rule: Rule,
        executor: Callable[[str, str], None],
        shutdown: ShutdownController,
        notifier: Optional[Callable[[str, str], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.handle = handle
        self.rule = rule
        self.executor = executor
        self.shutdown = shutdown
        self.notifier = notifier
        self.clock = clock
        self.state = None
        self.matched = 0

    @classmethod
    def for_rule(cls, handle, rule: Rule, shutdown: ShutdownController, notifier=None):
        return cls(handle, rule, ActionExecutor(rule), shutdown, notifier=notifier)

    def run(self):
        """
        Run until shutdown is requested or reading fails.

        Raises:
            ReadError: the read failed without a shutdown request. The
                handle has been released by the time it propagates.
        """
        self.state = DispatcherState.RUNNING
        logger.info(f"Watching {self.rule.inode_path} for {self.rule.event_name}")
        try:
            while self.state is DispatcherState.RUNNING:
                if self.shutdown.requested:
                    break
                try:
                    data = self.handle.read()
                except ReadError:
                    if self.shutdown.requested:
                        break
                    raise
                if not data:
                    logger.info("read() returned 0 bytes")
                    continue
                for event in EventCursor(data):
                    self.handle_event(event)
        except ReadError as e:
            logger.error(str(e))
            raise
        finally:
            self.state = DispatcherState.STOPPING
            if self.shutdown.signum is not None:
                logger.warning(f"Signal {self.shutdown.signum} caught! Cleaning up...")
            self.shutdown.release()
            self.state = DispatcherState.STOPPED
            logger.info("Watch loop stopped")

    def handle_event(self, event: CanonicalEvent):
        timestamp = format_timestamp(self.clock())
        logger.debug(f"Time of event: {timestamp}")
        logger.info(f"{event.name} event occurred")

        if self.notifier is not None:
            self.notifier(timestamp, event.name)

        if event.name == self.rule.event_name:
            self.matched += 1
            self.executor(event.name, timestamp)
