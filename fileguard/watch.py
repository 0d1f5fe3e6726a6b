"""
inotify watch subscription for a single inode.

Talks to libc through ctypes: one inotify instance (the group descriptor)
holding one watch on the configured path.
"""

import ctypes
import ctypes.util
import logging
import os
from typing import Optional

from fileguard.errors import ReadError, WatchInitError, WatchSubscribeError
from fileguard.events import BUF_LEN, IN_ALL_EVENTS, IN_CLOEXEC

logger = logging.getLogger("fileguard.watch")

_libc = None


def _load_libc():
    """Load libc and declare the inotify prototypes, once."""
    global _libc
    if _libc is None:
        libc_name = ctypes.util.find_library("c")
        try:
            libc = ctypes.CDLL(libc_name, use_errno=True)
            libc.inotify_init1.argtypes = [ctypes.c_int]
            libc.inotify_init1.restype = ctypes.c_int
            libc.inotify_add_watch.argtypes = [ctypes.c_int, ctypes.c_char_p, ctypes.c_uint32]
            libc.inotify_add_watch.restype = ctypes.c_int
            libc.inotify_rm_watch.argtypes = [ctypes.c_int, ctypes.c_int]
            libc.inotify_rm_watch.restype = ctypes.c_int
        except (OSError, AttributeError) as e:
            raise WatchInitError(f"inotify is not available on this system: {e}")
        _libc = libc
    return _libc


def _errno_message() -> str:
    errno = ctypes.get_errno()
    return f"[Errno {errno}] {os.strerror(errno)}"


class WatchHandle:
    """
    Owns the inotify descriptor and the watch id for one path.

    `close()` may be called any number of times, from the normal exit path
    as well as from a signal handler; only the first call releases anything.
    """

    def __init__(self, path: str, fd: Optional[int] = None, wd: Optional[int] = None):
        self.path = path
        self.fd = fd
        self.wd = wd

    @classmethod
    def open(cls, path: str, mask: int = IN_ALL_EVENTS) -> "WatchHandle":
        """
        Initialize inotify and subscribe to `path`.

        Raises:
            WatchInitError: the inotify instance could not be created.
            WatchSubscribeError: the watch could not be added for `path`.
        """
        libc = _load_libc()

        fd = libc.inotify_init1(IN_CLOEXEC)
        if fd < 0:
            raise WatchInitError(f"Could not initialize inotify: {_errno_message()}")

        wd = libc.inotify_add_watch(fd, os.fsencode(path), mask)
        if wd < 0:
            message = _errno_message()
            os.close(fd)
            raise WatchSubscribeError(f"Could not add watch for {path}: {message}")

        logger.debug(f"Watching {path} (fd={fd}, wd={wd}, mask=0x{mask:08x})")
        return cls(path, fd, wd)

    @property
    def closed(self) -> bool:
        return self.fd is None

    def read(self, size: int = BUF_LEN) -> bytes:
        """Block until notification bytes are available and return them."""
        fd = self.fd
        if fd is None:
            raise ReadError(f"Watch on {self.path} is closed")
        try:
            return os.read(fd, size)
        except OSError as e:
            raise ReadError(f"Couldn't read events for {self.path}: {e}")

    def close(self):
        """Remove the watch and close the descriptor; a no-op once closed."""
        fd, wd = self.fd, self.wd
        if fd is None:
            return
        self.fd = None
        self.wd = None

        if wd is not None and _libc is not None:
            # Fails with EINVAL once the kernel has dropped the watch itself,
            # e.g. after IN_DELETE_SELF or IN_UNMOUNT.
            if _libc.inotify_rm_watch(fd, wd) < 0:
                logger.debug(f"inotify_rm_watch({fd}, {wd}) failed: {_errno_message()}")
        try:
            os.close(fd)
        except OSError as e:
            logger.debug(f"Error closing inotify descriptor {fd}: {e}")
        logger.debug(f"Released watch on {self.path}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        state = "closed" if self.closed else f"fd={self.fd}, wd={self.wd}"
        return f"WatchHandle({self.path!r}, {state})"
