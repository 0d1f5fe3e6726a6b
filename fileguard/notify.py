"""Desktop notifications through notify-send."""

import logging
import subprocess

logger = logging.getLogger("fileguard.notify")

APP_NAME = "fileguard"


class Notifier:
    """
    Raises a desktop notification per event when enabled.

    A missing notify-send binary disables the notifier after one warning;
    delivery failures are logged and never interrupt the watch loop.
    """

    def __init__(self, enabled=False, runner=subprocess.run):
        self.enabled = enabled
        self.runner = runner
        self._available = None

    def available(self):
        if self._available is None:
            try:
                self.runner(
                    ["notify-send", "--version"],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
                self._available = True
            except FileNotFoundError:
                logger.warning("notify-send not found, notifications disabled")
                self._available = False
            except OSError as e:
                logger.warning(f"notify-send check failed: {e}")
                self._available = False
        return self._available

    def __call__(self, timestamp, event_name):
        if not self.enabled or not self.available():
            return
        logger.debug("Raising notification")
        try:
            self.runner(
                ["notify-send", APP_NAME, f"{event_name} event occurred at {timestamp.strip()}"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as e:
            logger.warning(f"Failed to send notification: {e}")
