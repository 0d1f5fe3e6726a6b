"""
Event vocabulary and decoder for raw inotify notification records.

A single read(2) on an inotify descriptor returns zero or more
back-to-back `struct inotify_event` records:

    int      wd;      watch descriptor
    uint32_t mask;    event bits plus modifier flags
    uint32_t cookie;  links IN_MOVED_FROM/IN_MOVED_TO pairs
    uint32_t len;     size of the trailing name payload
    char     name[];  NUL padded, only present for directory watches

The decoder turns each record into a CanonicalEvent carrying the
vocabulary name of the event and the payload length, which is all the
dispatcher needs to match rules and to step to the next record.
"""

import logging
import struct
from typing import Iterator, NamedTuple, Optional, Tuple

from fileguard.errors import DecodeError

logger = logging.getLogger("fileguard.events")

# Supported events suitable for the mask parameter of inotify_add_watch.
IN_ACCESS = 0x00000001
IN_MODIFY = 0x00000002
IN_ATTRIB = 0x00000004
IN_CLOSE_WRITE = 0x00000008
IN_CLOSE_NOWRITE = 0x00000010
IN_OPEN = 0x00000020
IN_MOVED_FROM = 0x00000040
IN_MOVED_TO = 0x00000080
IN_CREATE = 0x00000100
IN_DELETE = 0x00000200
IN_DELETE_SELF = 0x00000400
IN_MOVE_SELF = 0x00000800

# Sent by the kernel regardless of the requested mask.
IN_UNMOUNT = 0x00002000
IN_Q_OVERFLOW = 0x00004000
IN_IGNORED = 0x00008000

IN_ISDIR = 0x40000000

IN_ALL_EVENTS = (
    IN_ACCESS
    | IN_MODIFY
    | IN_ATTRIB
    | IN_CLOSE_WRITE
    | IN_CLOSE_NOWRITE
    | IN_OPEN
    | IN_MOVED_FROM
    | IN_MOVED_TO
    | IN_CREATE
    | IN_DELETE
    | IN_DELETE_SELF
    | IN_MOVE_SELF
)

# inotify_init1 flags.
IN_CLOEXEC = 0o2000000

EVENT_NAMES = {
    IN_ACCESS: "IN_ACCESS",
    IN_ATTRIB: "IN_ATTRIB",
    IN_CLOSE_WRITE: "IN_CLOSE_WRITE",
    IN_CLOSE_NOWRITE: "IN_CLOSE_NOWRITE",
    IN_CREATE: "IN_CREATE",
    IN_DELETE: "IN_DELETE",
    IN_DELETE_SELF: "IN_DELETE_SELF",
    IN_MODIFY: "IN_MODIFY",
    IN_MOVE_SELF: "IN_MOVE_SELF",
    IN_MOVED_FROM: "IN_MOVED_FROM",
    IN_MOVED_TO: "IN_MOVED_TO",
    IN_OPEN: "IN_OPEN",
    IN_UNMOUNT: "IN_UNMOUNT",
}

# The closed vocabulary accepted in configuration, in documentation order.
EVENTS = tuple(EVENT_NAMES.values())

EVENT_CODES = {name: code for code, name in EVENT_NAMES.items()}

UNRECOGNIZED = "UNRECOGNIZED"

# Bits that identify the event; everything else (IN_ISDIR, IN_IGNORED, ...)
# is a modifier and does not take part in the lookup.
_EVENT_BITS = IN_ALL_EVENTS | IN_UNMOUNT

EVENT_HEADER = struct.Struct("iIII")  # wd, mask, cookie, len
HEADER_SIZE = EVENT_HEADER.size

NAME_MAX = 255
BUF_LEN = 10 * (HEADER_SIZE + NAME_MAX + 1)


class CanonicalEvent(NamedTuple):
    name: str
    raw_length: int


def is_supported_event(name: str) -> bool:
    """Case-sensitive membership test against the event vocabulary."""
    return name in EVENT_CODES


def event_name(mask: int) -> str:
    """Map a raw inotify mask to its vocabulary name, or UNRECOGNIZED."""
    return EVENT_NAMES.get(mask & _EVENT_BITS, UNRECOGNIZED)


def decode_event(buffer: bytes, offset: int, length: int) -> Tuple[CanonicalEvent, int]:
    """
    Decode the record starting at `offset`.

    Args:
        buffer: Bytes returned by one read of the inotify descriptor.
        offset: Position of the record header within `buffer`.
        length: Number of valid bytes in `buffer`.

    Returns:
        Tuple of (event, next_offset), where next_offset is always past
        the current header.
    """
    if offset < 0 or offset + HEADER_SIZE > length:
        raise DecodeError(
            f"Incomplete event header at offset {offset} (valid bytes: {length})"
        )

    wd, mask, cookie, payload_length = EVENT_HEADER.unpack_from(buffer, offset)
    name = event_name(mask)
    if name == UNRECOGNIZED:
        logger.debug(f"Unrecognized event mask 0x{mask:08x} on watch {wd}")

    next_offset = offset + HEADER_SIZE + payload_length
    if next_offset > length:
        logger.debug(
            f"Event payload at offset {offset} runs past the read length "
            f"({next_offset} > {length})"
        )
    return CanonicalEvent(name, payload_length), next_offset


class EventCursor:
    """
    Walks the records of one notification buffer in order.

    Iteration stops at the reported read length; a trailing fragment too
    short to hold a header is dropped.
    """

    def __init__(self, buffer: bytes, length: Optional[int] = None):
        self.buffer = buffer
        self.length = len(buffer) if length is None else min(length, len(buffer))
        self.offset = 0

    def has_next(self) -> bool:
        return self.offset + HEADER_SIZE <= self.length

    def decode_next(self) -> CanonicalEvent:
        event, self.offset = decode_event(self.buffer, self.offset, self.length)
        return event

    def __iter__(self) -> Iterator[CanonicalEvent]:
        while self.has_next():
            yield self.decode_next()
        if self.offset < self.length:
            logger.debug(
                f"Dropping {self.length - self.offset} trailing bytes "
                "shorter than an event header"
            )
