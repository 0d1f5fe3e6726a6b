"""
Signal-driven shutdown for the watch loop.

The signal handler only records the request and releases the watch
handle. Releasing closes the inotify descriptor, so a read blocked on it
fails as soon as the interpreter retries it and the dispatcher stops on its
own. Leaving the controller's context releases the handle as well; the
handle is never released more than once.
"""

import signal


DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownController:
    def __init__(self, handle, signals=DEFAULT_SIGNALS):
        self.handle = handle
        self.signals = tuple(signals)
        self.requested = False
        self.signum = None
        self.releases = 0
        self._previous = {}

    def __enter__(self):
        for signum in self.signals:
            self._previous[signum] = signal.signal(signum, self._handle_signal)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        for signum, previous in self._previous.items():
            signal.signal(signum, previous)
        self._previous = {}

    def _handle_signal(self, signum, frame):
        self.request_shutdown(signum)

    def request_shutdown(self, signum=None):
        """Record a shutdown request and release the watch."""
        self.signum = signum
        self.requested = True
        self.release()

    def release(self):
        if self.releases:
            return
        self.releases += 1
        self.handle.close()
