import pytest
import yaml
from click.testing import CliRunner

from fileguard import cli, config
from fileguard import daemon as daemon_module
from fileguard.rules import ActionKind


@pytest.fixture
def write_config(tmp_path):
    def write(**record):
        config_file = tmp_path / "fileguard.yaml"
        with open(config_file, "w") as f:
            yaml.dump(record, f)
        return str(config_file)
    return write


@pytest.fixture
def no_watch(monkeypatch):
    """Replace the watch loop and record the rule it was started with."""
    started = []

    def fake_run_watch(rule, notifier=None):
        started.append((rule, notifier))

    monkeypatch.setattr(daemon_module, "run_watch", fake_run_watch)
    return started


def test_help_exits_success():
    runner = CliRunner()
    for flag in ("-h", "--help"):
        result = runner.invoke(cli.main, [flag])
        assert result.exit_code == 0
        assert "--verbose" in result.output
        assert "--notify" in result.output


def test_starts_watch_with_rule(write_config, watched_file, no_watch):
    config_path = write_config(inode=str(watched_file), event="IN_MODIFY", action='execute "/bin/true"')
    result = CliRunner().invoke(cli.main, ["-n", config_path])
    assert result.exit_code == 0
    assert "Initializing fileguard!" in result.output

    (rule, notifier), = no_watch
    assert rule.event_name == "IN_MODIFY"
    assert rule.action_kind is ActionKind.EXECUTE
    assert notifier.enabled


def test_verbose_prints_rule(write_config, watched_file, no_watch, tmp_path):
    config_path = write_config(inode=str(watched_file), event="IN_CREATE", action=f"log {tmp_path / 'out.log'}")
    result = CliRunner().invoke(cli.main, ["-v", config_path])
    assert result.exit_code == 0
    assert "IN_CREATE" in result.output


def test_unsupported_event_fails_before_watch(write_config, watched_file, monkeypatch):
    def fail_open(*args, **kwargs):
        raise AssertionError("watch must not be attempted")

    monkeypatch.setattr(daemon_module.WatchHandle, "open", fail_open)
    config_path = write_config(inode=str(watched_file), event="IN_BOGUS", action='execute "/bin/true"')
    result = CliRunner().invoke(cli.main, [config_path])
    assert result.exit_code == 1
    assert "Unknown inode event supplied: IN_BOGUS" in result.output


def test_missing_inode_fails(write_config, tmp_path, no_watch):
    config_path = write_config(inode=str(tmp_path / "gone"), event="IN_OPEN", action="log /tmp/x.log")
    result = CliRunner().invoke(cli.main, [config_path])
    assert result.exit_code == 1
    assert no_watch == []


def test_malformed_action_fails(write_config, watched_file, no_watch):
    config_path = write_config(inode=str(watched_file), event="IN_OPEN", action="execute")
    result = CliRunner().invoke(cli.main, [config_path])
    assert result.exit_code == 1
    assert no_watch == []


def test_missing_config_scaffolds_default(tmp_path, monkeypatch, no_watch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(config.ENV_CONFIG_DIR_VAR, raising=False)
    result = CliRunner().invoke(cli.main, [])
    assert result.exit_code == 1
    assert "Configuration file not found" in result.output
    assert (tmp_path / "fileguard.yaml").exists()
    assert no_watch == []


def test_non_utf8_config_reports_error(tmp_path, no_watch):
    config_file = tmp_path / "fileguard.yaml"
    config_file.write_bytes(b"inode: /tmp\nevent: IN_OPEN\naction: log /tmp/\xff.log\n")
    result = CliRunner().invoke(cli.main, [str(config_file)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Could not parse" in result.output
    assert no_watch == []
