import re
import time

import pytest

from fileguard.actions import (ActionExecutor, append_log_line, format_log_line,
                               format_timestamp)
from fileguard.errors import LogWriteError
from fileguard.rules import ActionKind, Rule

LINE_RE = re.compile(r"^\w{3} \w{3} [ \d]\d \d\d:\d\d:\d\d \d{4} (IN_[A-Z_]+)\n$")


class RecordingRunner:
    def __init__(self, exc=None):
        self.calls = []
        self.exc = exc

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        if self.exc:
            raise self.exc


def test_format_timestamp_has_trailing_space():
    epoch = time.mktime((2024, 3, 5, 14, 7, 9, 0, 0, -1))
    assert format_timestamp(epoch) == "Tue Mar  5 14:07:09 2024 "


def test_format_log_line_layout():
    assert format_log_line("Tue Mar  5 14:07:09 2024 ", "IN_CREATE") == \
        "Tue Mar  5 14:07:09 2024 IN_CREATE\n"


def test_execute_runs_command_on_matching_event():
    runner = RecordingRunner()
    rule = Rule("/tmp/watched", "IN_MODIFY", ActionKind.EXECUTE, "/bin/true")
    ActionExecutor(rule, runner=runner)("IN_MODIFY", format_timestamp())
    assert runner.calls == [("/bin/true", {"shell": True, "check": False})]


def test_execute_ignores_other_events():
    runner = RecordingRunner()
    rule = Rule("/tmp/watched", "IN_MODIFY", ActionKind.EXECUTE, "/bin/true")
    ActionExecutor(rule, runner=runner)("IN_CREATE", format_timestamp())
    assert runner.calls == []


def test_execute_spawn_failure_is_not_surfaced():
    runner = RecordingRunner(exc=FileNotFoundError("no shell"))
    rule = Rule("/tmp/watched", "IN_MODIFY", ActionKind.EXECUTE, "/bin/true")
    ActionExecutor(rule, runner=runner)("IN_MODIFY", format_timestamp())
    assert len(runner.calls) == 1


def test_execute_ignores_exit_status(tmp_path):
    rule = Rule(str(tmp_path), "IN_MODIFY", ActionKind.EXECUTE, "exit 3")
    ActionExecutor(rule)("IN_MODIFY", format_timestamp())


def test_log_round_trip(tmp_path):
    log_path = tmp_path / "events.log"
    rule = Rule(str(tmp_path), "IN_CREATE", ActionKind.LOG, str(log_path))
    executor = ActionExecutor(rule)

    executor("IN_CREATE", format_timestamp())
    executor("IN_DELETE", format_timestamp())

    lines = log_path.read_text().splitlines(keepends=True)
    assert len(lines) == 2
    assert [LINE_RE.match(line).group(1) for line in lines] == ["IN_CREATE", "IN_DELETE"]


def test_log_appends_to_existing_file(tmp_path):
    log_path = tmp_path / "events.log"
    log_path.write_text("existing\n")
    append_log_line(str(log_path), "next\n")
    assert log_path.read_text() == "existing\nnext\n"


def test_log_write_failure_is_fatal(tmp_path):
    rule = Rule(str(tmp_path), "IN_CREATE", ActionKind.LOG, str(tmp_path / "missing-dir" / "x.log"))
    with pytest.raises(LogWriteError):
        ActionExecutor(rule)("IN_CREATE", format_timestamp())
