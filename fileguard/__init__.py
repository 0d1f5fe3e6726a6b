"""
fileguard: a single-inode filesystem watchdog.

Watches one file or directory through inotify and, when the configured
event occurs, either runs a command or appends a timestamped line to a log.
"""

__version__ = "0.1.0"
