# ABOUTME: Email content rendering - converts HTML to text and handles truncation.
"""Email content rendering - converts HTML to text and handles truncation."""

import html2text


def looks_like_html(body: str) -> bool:
    lowered = body.lower()
    return "<html" in lowered or "<body" in lowered or "<div" in lowered or "<p>" in lowered


def html_to_text(body: str) -> str:
    h = html2text.HTML2Text()
    h.ignore_links = False
    h.ignore_images = True
    h.body_width = 80
    return h.handle(body).strip()


def render_email_body(body: str, is_html: bool | None = None, max_lines: int | None = None) -> str:
    """Convert email body to displayable text.

    Args:
        body: Email body content
        is_html: Whether the body is HTML (guessed from the markup when None)
        max_lines: Maximum lines to keep, None for no limit

    Returns:
        Rendered text, truncated with indicator if needed
    """
    if is_html is None:
        is_html = looks_like_html(body)
    text = html_to_text(body) if is_html else body

    lines = text.strip().split("\n")

    if max_lines is not None and len(lines) > max_lines:
        preview = "\n".join(lines[:max_lines])
        preview += "\n[...]"
        return preview

    return "\n".join(lines)
