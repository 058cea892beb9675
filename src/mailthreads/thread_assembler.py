# ABOUTME: Builds the reply tree of a thread from its flat, date-ordered emails.
"""Thread assembly: turn a thread's emails into a forest of ThreadItems.

Emails are linked by In-Reply-To against each email's effective id (IMAP id
when known, else the stored id). Linking happens against a complete index, so
a reply seen before its parent still lands under it.
"""

import logging
from collections.abc import Iterable

from mailthreads.models import Email, ThreadItem

logger = logging.getLogger(__name__)


def assemble_thread(emails: Iterable[Email], self_reply_as_root: bool = True) -> list[ThreadItem]:
    """Build the threaded view of a list of emails.

    Args:
        emails: Emails of one thread, oldest first. The order is kept, not re-sorted.
        self_reply_as_root: Treat an email replying to itself as a root. When
            False the email is attached under itself and drops out of the forest.

    Returns:
        Root items in the order their emails appear in the input. Replies of
        each item are in input order as well.
    """
    index: dict[str, ThreadItem] = {}
    for email in emails:
        key = email.effective_id
        if key in index:
            # Later email wins, the slot keeps its original position
            logger.debug(f"Duplicate effective id {key} in thread {email.thread_id}")
        index[key] = ThreadItem(email)

    root_keys: set[str] = set()
    parents: dict[str, str] = {}
    for key, item in index.items():
        reply_to = item.email.in_reply_to
        if reply_to == key and self_reply_as_root:
            reply_to = None

        if not reply_to or reply_to not in index:
            root_keys.add(key)
            continue

        index[reply_to].add_reply(item)
        if reply_to != key:
            parents[key] = reply_to

    _break_cycles(index, root_keys, parents)

    return [item for key, item in index.items() if key in root_keys]


def _break_cycles(index: dict[str, ThreadItem], root_keys: set[str], parents: dict[str, str]) -> None:
    """Turn items caught in reply cycles back into roots.

    Items not reachable from a root hang off a cycle. In each cycle the item
    linked last (latest in the index) is detached from its parent and becomes
    a root. Self-replies are not in ``parents`` and stay where they are.
    """
    reached = {item.email.effective_id for key in root_keys for _, item in index[key].walk()}
    if len(reached) == len(index):
        return

    position = {key: i for i, key in enumerate(index)}
    visited: dict[str, int] = {}
    for start, key in enumerate(index):
        path = []
        current = key
        while current in parents and current not in reached and current not in visited:
            visited[current] = start
            path.append(current)
            current = parents[current]

        if visited.get(current) != start:
            continue

        cycle = path[path.index(current):]
        closing = max(cycle, key=position.__getitem__)
        logger.debug(f"Reply cycle through {closing}, placing it as a root")
        index[parents.pop(closing)].replies.remove(index[closing])
        root_keys.add(closing)


def count_nodes(roots: Iterable[ThreadItem]) -> int:
    """Count every item of a forest, at every depth."""
    return sum(1 for root in roots for _ in root.walk())


class ThreadAssembler:
    """Thread assembly with the policy taken from config."""

    def __init__(self, config=None):
        self.self_reply_as_root = True
        if config is not None:
            self.self_reply_as_root = config.settings["threads"]["self_reply_as_root"]

    def assemble(self, emails: Iterable[Email]) -> list[ThreadItem]:
        return assemble_thread(emails, self_reply_as_root=self.self_reply_as_root)
