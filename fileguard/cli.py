import logging
import os

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fileguard import config
from fileguard import daemon as daemon_module
from fileguard import logger as logger_module
from fileguard import rules
from fileguard.errors import ConfigMissingError, FileguardError
from fileguard.notify import Notifier

err_console = Console(stderr=True)


def print_rule(rule, config_path):
    table = Table(title="fileguard rule")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Config", config_path)
    table.add_row("Inode", rule.inode_path)
    table.add_row("Event", rule.event_name)
    table.add_row("Action", rule.action_kind.value)
    table.add_row("Target", rule.action_target)
    err_console.print(table)


def load_rule(config_path):
    """
    Load and validate the rule, scaffolding a default config when none exists.
    """
    try:
        record = config.load_config(config_path)
    except ConfigMissingError:
        if config.create_default_config(config.DEFAULT_CONFIG_PATH):
            err_console.print(
                f"Created a default configuration at {config.DEFAULT_CONFIG_PATH}; "
                "edit it and run fileguard again."
            )
        raise
    return rules.build_rule(record)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Turn on debug logging.")
@click.option("--notify", "-n", is_flag=True, help="Raise a desktop notification for every event.")
@click.option("--daemon", "-d", "as_daemon", is_flag=True, help="Run in the background.")
@click.option("--pid-file", default=daemon_module.DEFAULT_PID_FILENAME, show_default=True,
              help="PID file used with --daemon.")
@click.option("--log-dir", default=None, help="Also write logs to fileguard.log in this directory.")
@click.argument("config_path", required=False)
@click.pass_context
def main(ctx, verbose, notify, as_daemon, pid_file, log_dir, config_path):
    """
    fileguard: watch one file or directory and act on a single inotify event.

    CONFIG_PATH is an optional .yaml/.yml/.toml configuration file; without
    one, $FILEGUARD_CONFIG_DIR/fileguard.yaml or ./fileguard.yaml is used.
    """
    if as_daemon and not log_dir:
        log_dir = os.path.dirname(os.path.abspath(pid_file))
    root_logger = logger_module.setup_logger(
        level=logging.DEBUG if verbose else logging.INFO,
        log_dir=log_dir,
    )

    try:
        config_path = config.resolve_config_path(config_path)
        root_logger.debug(f"Using configuration {config_path}")
        rule = load_rule(config_path)
        root_logger.debug(
            f"Parsed configuration: inode: {rule.inode_path} event: {rule.event_name} "
            f"action: {rule.action_kind.value} {rule.action_target}"
        )
        if verbose:
            print_rule(rule, config_path)

        notifier = Notifier(enabled=notify)
        if as_daemon:
            click.echo("Starting daemon...")
            daemon_module.run_daemon(rule, pid_file, root_logger, notifier=notifier)
        else:
            click.echo("Initializing fileguard!")
            daemon_module.run_watch(rule, notifier=notifier)
    except FileguardError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)
        ctx.exit(1)


if __name__ == "__main__":
    main()
