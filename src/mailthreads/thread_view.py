# ABOUTME: Output of thread views as nested records and rich trees.
"""Output of thread views as nested records and rich trees."""

from rich.console import Group
from rich.text import Text
from rich.tree import Tree

from mailthreads.content_renderer import render_email_body
from mailthreads.models import ThreadItem


def forest_to_dicts(roots: list[ThreadItem]) -> list[dict]:
    """Nested dicts for a forest, reply order preserved."""
    return [root.to_dict() for root in roots]


def format_label(item: ThreadItem) -> Text:
    """One-line label: unread marker, subject, sender and date."""
    email = item.email
    label = Text()
    if email.was_read:
        label.append("  ")
    else:
        label.append("● ", style="bold blue")
    label.append(email.subject or "(no subject)", style="dim" if email.was_read else "bold")
    label.append(f"  {email.sender}", style="cyan")
    label.append(f"  {email.date.strftime('%Y-%m-%d %H:%M')}", style="dim")
    return label


def build_tree(
    roots: list[ThreadItem],
    title: str = "Thread",
    show_content: bool = False,
    preview_lines: int = 8,
) -> Tree:
    """Build a rich Tree for a thread view.

    Args:
        roots: Forest returned by the repository
        title: Label of the tree root
        show_content: Add a content preview under each label
        preview_lines: Lines of content to show per email
    """
    tree = Tree(Text(title, style="bold"))
    stack = [(tree, root) for root in reversed(roots)]
    while stack:
        parent, item = stack.pop()
        label = format_label(item)
        if show_content and item.email.content.strip():
            preview = render_email_body(item.email.content, max_lines=preview_lines)
            node = parent.add(Group(label, Text(preview, style="dim")))
        else:
            node = parent.add(label)
        for reply in reversed(item.replies):
            if reply is not item:
                stack.append((node, reply))
    return tree
