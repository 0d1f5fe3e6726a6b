"""
Rules module for fileguard.

A Rule ties the watched inode to one event name and one action. It is
built once from the configuration record and never changes afterwards.

The action clause is a two-token string:
  - execute "<command line>"   run the command through the host shell
  - log <path>                 append "<timestamp><event>" lines to <path>
"""

import enum
import os
import shlex
from dataclasses import dataclass
from typing import Mapping, Tuple

from fileguard.errors import InodeAccessError, MalformedActionError, UnsupportedEventError
from fileguard.events import EVENTS, is_supported_event


class ActionKind(enum.Enum):
    EXECUTE = "execute"
    LOG = "log"


@dataclass(frozen=True)
class Rule:
    """Validated watch rule: which inode, which event, which action."""

    inode_path: str
    event_name: str
    action_kind: ActionKind
    action_target: str


def parse_action(clause: str) -> Tuple[ActionKind, str]:
    """
    Split an action clause into its verb and target.

    Quoting follows shell rules, so a command containing spaces must be
    quoted: `execute "make -C /srv/site"`.

    Raises:
        MalformedActionError: the clause is not exactly a known verb
            followed by one non-empty target.
    """
    try:
        tokens = shlex.split(clause)
    except ValueError as e:
        raise MalformedActionError(f"Could not parse action '{clause}': {e}")

    if len(tokens) != 2:
        raise MalformedActionError(
            f"Action must be '<execute|log> <target>', got {len(tokens)} token(s): '{clause}'"
        )

    verb, target = tokens
    try:
        kind = ActionKind(verb)
    except ValueError:
        raise MalformedActionError(f"Unknown action '{verb}', expected 'execute' or 'log'")

    if not target.strip():
        raise MalformedActionError("Command/path cannot be empty")

    if kind is ActionKind.LOG:
        target = os.path.abspath(os.path.expanduser(target))
    return kind, target


def check_inode(path: str) -> str:
    """
    Make sure `path` names an existing file or directory we may read.

    Returns:
        str: The absolute path.
    """
    if not path:
        raise InodeAccessError("No inode path configured")
    if not os.path.exists(path):
        raise InodeAccessError(f"Unable to open inode \"{path}\": no such file or directory")
    if not os.access(path, os.R_OK):
        raise InodeAccessError(f"Permission check for inode \"{path}\" failed: not readable")
    return os.path.abspath(path)


def build_rule(record: Mapping[str, str]) -> Rule:
    """
    Validate a configuration record and build the Rule.

    The event name is checked before anything touches the filesystem, so an
    unsupported event fails without a watch ever being attempted.

    Args:
        record: Mapping with 'inode', 'event' and 'action' strings.

    Raises:
        UnsupportedEventError, InodeAccessError, MalformedActionError
    """
    event = record["event"]
    if not is_supported_event(event):
        raise UnsupportedEventError(
            f"Unknown inode event supplied: {event} (supported: {', '.join(EVENTS)})"
        )

    inode_path = check_inode(os.path.expanduser(record["inode"]))
    kind, target = parse_action(record["action"])
    return Rule(inode_path=inode_path, event_name=event, action_kind=kind, action_target=target)
