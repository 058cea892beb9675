# ABOUTME: Tests for content rendering and thread view output.
"""Tests for content rendering and thread view output."""

from rich.console import Console

from mailthreads.content_renderer import html_to_text, looks_like_html, render_email_body
from mailthreads.thread_assembler import assemble_thread
from mailthreads.thread_view import build_tree, forest_to_dicts, format_label


def render(tree) -> str:
    console = Console(record=True, width=120, color_system=None)
    console.print(tree)
    return console.export_text()


class TestContentRenderer:
    def test_plain_text_unchanged(self):
        assert render_email_body("line one\nline two", is_html=False) == "line one\nline two"

    def test_html_converted(self):
        text = render_email_body("<html><body><p>Hello <b>there</b></p></body></html>")

        assert "Hello" in text
        assert "<p>" not in text

    def test_truncation(self):
        body = "\n".join(f"line {n}" for n in range(20))

        preview = render_email_body(body, is_html=False, max_lines=3)

        assert preview.splitlines() == ["line 0", "line 1", "line 2", "[...]"]

    def test_looks_like_html(self):
        assert looks_like_html("<div>hi</div>")
        assert not looks_like_html("just text")

    def test_html_to_text_strips_markup(self):
        assert html_to_text("<p>Hi</p>") == "Hi"


class TestThreadView:
    def test_forest_to_dicts_keeps_order(self, sample_thread):
        data = forest_to_dicts(assemble_thread(sample_thread))

        assert [d["id"] for d in data] == ["1"]
        assert [d["id"] for d in data[0]["replies"]] == ["2", "3"]
        assert [d["id"] for d in data[0]["replies"][0]["replies"]] == ["4"]

    def test_label_marks_unread(self, make_email):
        unread = make_email("1", subject="Budget")
        read = make_email("2", subject="Budget")
        read.mark_as_read()
        roots = assemble_thread([unread, read])

        assert format_label(roots[0]).plain.startswith("● Budget")
        assert format_label(roots[1]).plain.startswith("  Budget")

    def test_tree_contains_all_subjects(self, sample_thread):
        output = render(build_tree(assemble_thread(sample_thread), title="Thread 1"))

        assert "Thread 1" in output
        for n in range(1, 5):
            assert f"Message {n}" in output
        assert output.index("Message 2") < output.index("Message 4") < output.index("Message 3")

    def test_tree_with_content(self, make_email):
        roots = assemble_thread([make_email("1", content="<p>Quarterly numbers</p>")])

        output = render(build_tree(roots, show_content=True))

        assert "Quarterly numbers" in output
