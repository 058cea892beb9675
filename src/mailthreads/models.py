# ABOUTME: Data models for stored emails, viewing users, and thread tree nodes
# ABOUTME: Provides dataclasses with validation and dict conversion for import/export
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from mailthreads.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailAddress:
    """An address plus its display name"""

    email: str
    name: str = ""

    def __str__(self):
        if self.name:
            return f"{self.name} <{self.email}>"
        return self.email


@dataclass
class User:
    """The user a thread is being viewed for"""

    id: int
    email: str | None = None


@dataclass
class Email:
    """A stored email belonging to a thread.

    Everything except ``content`` is fixed once the email is stored.
    ``was_read`` is not part of the stored record: the repository fills it
    in per query for the viewing user.
    """

    id: str
    subject: str
    content: str
    original_content: str
    thread_id: int
    date: datetime
    sender: EmailAddress
    imap_id: str | None = None
    in_reply_to: str | None = None
    was_read: bool = False

    def __post_init__(self):
        """Validate after initialization"""
        if not self.id:
            raise ValidationError("email id cannot be empty")
        if isinstance(self.date, str):
            try:
                self.date = datetime.fromisoformat(self.date)
            except ValueError as e:
                raise ValidationError(f"Invalid email date {self.date!r}: {e}")
        if not isinstance(self.date, datetime):
            raise ValidationError("date must be a datetime")
        try:
            self.thread_id = int(self.thread_id)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid thread id {self.thread_id!r}: {e}")

    @property
    def effective_id(self) -> str:
        """Key used to link replies: the IMAP id when known, else the id."""
        return self.imap_id or self.id

    def mark_as_read(self) -> None:
        self.was_read = True

    def set_content(self, content: str) -> None:
        self.content = content

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "content": self.content,
            "original_content": self.original_content,
            "thread_id": self.thread_id,
            "date": self.date.isoformat(),
            "from_email": self.sender.email,
            "from_name": self.sender.name,
            "imap_id": self.imap_id,
            "in_reply_to": self.in_reply_to,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Email":
        try:
            return cls(
                id=data["id"],
                subject=data.get("subject") or "",
                content=data.get("content") or "",
                original_content=data.get("original_content") or "",
                thread_id=int(data["thread_id"]),
                date=data["date"],
                sender=EmailAddress(data["from_email"], data.get("from_name") or ""),
                imap_id=data.get("imap_id") or None,
                in_reply_to=data.get("in_reply_to") or None,
            )
        except (KeyError, ValueError, TypeError) as e:
            raise ValidationError(f"Invalid email data: {e}")


@dataclass(eq=False)
class ThreadItem:
    """One node of a thread view: an email and the replies to it"""

    email: Email
    replies: list["ThreadItem"] = field(default_factory=list)

    def add_reply(self, item: "ThreadItem") -> None:
        self.replies.append(item)

    def walk(self) -> Iterator[tuple[int, "ThreadItem"]]:
        """Yield (depth, item) for this node and its descendants, depth-first."""
        stack = [(0, self)]
        while stack:
            depth, item = stack.pop()
            yield depth, item
            # Reversed so the first reply is visited first
            for reply in reversed(item.replies):
                if reply is not item:
                    stack.append((depth + 1, reply))

    def to_dict(self) -> dict[str, Any]:
        data = self.email.to_dict()
        data["was_read"] = self.email.was_read
        data["replies"] = [reply.to_dict() for reply in self.replies if reply is not self]
        return data
