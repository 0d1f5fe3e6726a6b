import logging
import os

import daemon
import psutil
from daemon.pidfile import PIDLockFile

from fileguard.dispatcher import Dispatcher
from fileguard.errors import DaemonError
from fileguard.logger import handler_streams
from fileguard.shutdown import ShutdownController
from fileguard.watch import WatchHandle

logger = logging.getLogger("fileguard.daemon")

DEFAULT_PID_FILENAME = "fileguard.pid"


def run_watch(rule, notifier=None):
    """
    Subscribe to the rule's inode and run the watch loop until shutdown.

    Returns:
        ShutdownController: The controller, for inspecting how the loop ended.
    """
    handle = WatchHandle.open(rule.inode_path)
    with ShutdownController(handle) as shutdown:
        Dispatcher.for_rule(handle, rule, shutdown, notifier=notifier).run()
    return shutdown


def read_pid(pid_file):
    """Return the PID stored in `pid_file`, or None if it is missing or garbled."""
    try:
        with open(pid_file, "r") as f:
            return int(f.read().strip())
    except (OSError, ValueError):
        return None


def check_pid_file(pid_file):
    """
    Refuse to start over a live instance; clear a stale PID file.

    Raises:
        DaemonError: the PID file names a running process.
    """
    if not os.path.exists(pid_file):
        return
    pid = read_pid(pid_file)
    if pid is not None and psutil.pid_exists(pid):
        raise DaemonError(f"fileguard is already running (pid {pid}, pid file {pid_file})")
    logger.info(f"Removing stale pid file {pid_file}")
    try:
        os.remove(pid_file)
    except OSError as e:
        raise DaemonError(f"Could not remove stale pid file {pid_file}: {e}")


def run_daemon(rule, pid_file, root_logger, notifier=None):
    """Run the watch loop detached from the terminal."""
    pid_file = os.path.abspath(pid_file)
    check_pid_file(pid_file)

    context = daemon.DaemonContext(
        pidfile=PIDLockFile(pid_file),
        files_preserve=handler_streams(root_logger),
    )

    with context:
        root_logger.info(f"Daemon started (pid {os.getpid()}, pid file {pid_file})")
        try:
            return run_watch(rule, notifier=notifier)
        except Exception as e:
            root_logger.error(f"Fatal error in daemon: {e}", exc_info=True)
            raise
