"""
Error types raised by fileguard.

Every error derives from FileguardError so the CLI can report any of them
with a single handler. All of them are fatal for the process: there is no
retry or reconnection anywhere in the watch loop.
"""


class FileguardError(Exception):
    """Base class for all fileguard errors."""

    pass


class ConfigMissingError(FileguardError):
    """No usable configuration file was found."""

    pass


class ConfigParseError(FileguardError):
    """The configuration file exists but could not be parsed."""

    pass


class UnsupportedEventError(FileguardError):
    """The configured event name is not part of the event vocabulary."""

    pass


class InodeAccessError(FileguardError):
    """The watched path is missing or not readable."""

    pass


class MalformedActionError(FileguardError):
    """The action clause is not a valid `<verb> <target>` pair."""

    pass


class WatchInitError(FileguardError):
    """The inotify subsystem could not be initialized."""

    pass


class WatchSubscribeError(FileguardError):
    """The watched path could not be subscribed to."""

    pass


class ReadError(FileguardError):
    """Reading notifications from the watch descriptor failed."""

    pass


class DecodeError(FileguardError):
    """A notification record header does not fit in the read buffer."""

    pass


class LogWriteError(FileguardError):
    """Appending to the log action's target file failed."""

    pass


class DaemonError(FileguardError):
    """Background mode could not be started."""

    pass
