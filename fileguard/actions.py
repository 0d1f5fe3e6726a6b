"""
Actions run by the dispatcher when an event matches the rule.

Execute is fire-and-forget: the command's exit status is never checked and
a command that cannot be spawned is only logged. Log is fail-fast: any
error appending the line raises LogWriteError and ends the process.
"""

import logging
import subprocess
import time

from fileguard.errors import LogWriteError
from fileguard.rules import ActionKind

logger = logging.getLogger("fileguard.actions")


def format_timestamp(epoch=None):
    """Render an event time as asctime text plus its trailing space."""
    return time.asctime(time.localtime(epoch)) + " "


def format_log_line(timestamp, event_name):
    return f"{timestamp}{event_name}\n"


def append_log_line(path, line):
    """Append `line` to `path`, creating the file when absent."""
    try:
        with open(path, "a") as f:
            f.write(line)
    except OSError as e:
        raise LogWriteError(f"Couldn't write log file {path}: {e}")


class ActionExecutor:
    """Performs the rule's action for one event."""

    def __init__(self, rule, runner=subprocess.run):
        self.rule = rule
        self.runner = runner

    def __call__(self, event_name, timestamp):
        if self.rule.action_kind is ActionKind.EXECUTE:
            self.execute(event_name)
        else:
            self.log(event_name, timestamp)

    def execute(self, event_name):
        if event_name != self.rule.event_name:
            return
        command = self.rule.action_target
        logger.debug(f"Executing: {command}")
        try:
            self.runner(command, shell=True, check=False)
        except OSError as e:
            logger.warning(f"Could not run command '{command}': {e}")

    def log(self, event_name, timestamp):
        line = format_log_line(timestamp, event_name)
        append_log_line(self.rule.action_target, line)
        logger.debug(f"Logged {event_name} to {self.rule.action_target}")
