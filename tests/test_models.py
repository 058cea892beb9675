from datetime import datetime

import pytest

from mailthreads.exceptions import ValidationError
from mailthreads.models import Email, EmailAddress, ThreadItem


class TestEmailAddress:
    def test_str_with_name(self):
        assert str(EmailAddress("jane@example.com", "Jane Doe")) == "Jane Doe <jane@example.com>"

    def test_str_without_name(self):
        assert str(EmailAddress("jane@example.com")) == "jane@example.com"


class TestEmail:
    def test_email_creation(self, make_email):
        email = make_email("abc", in_reply_to="xyz", thread_id=7)

        assert email.id == "abc"
        assert email.thread_id == 7
        assert email.in_reply_to == "xyz"
        assert email.was_read is False

    def test_empty_id_rejected(self, make_email):
        with pytest.raises(ValidationError):
            make_email("")

    def test_string_date_parsed(self):
        email = Email(
            id="1",
            subject="s",
            content="c",
            original_content="o",
            thread_id="3",
            date="2024-03-01T10:00:00",
            sender=EmailAddress("a@example.com"),
        )

        assert email.date == datetime(2024, 3, 1, 10, 0, 0)
        assert email.thread_id == 3

    def test_bad_date_rejected(self):
        with pytest.raises(ValidationError):
            Email(
                id="1",
                subject="s",
                content="c",
                original_content="o",
                thread_id=1,
                date="yesterday",
                sender=EmailAddress("a@example.com"),
            )

    def test_bad_thread_id_rejected(self):
        with pytest.raises(ValidationError):
            Email(
                id="1",
                subject="s",
                content="c",
                original_content="o",
                thread_id="general",
                date=datetime(2024, 3, 1),
                sender=EmailAddress("a@example.com"),
            )

    def test_effective_id_prefers_imap_id(self, make_email):
        assert make_email("1", imap_id="<m1@example.com>").effective_id == "<m1@example.com>"
        assert make_email("1").effective_id == "1"

    def test_mark_as_read(self, make_email):
        email = make_email("1")
        email.mark_as_read()

        assert email.was_read is True

    def test_set_content(self, make_email):
        email = make_email("1", content="<p>Hi</p>")
        email.set_content("Hi")

        assert email.content == "Hi"

    def test_serialization(self, make_email):
        email = make_email("1", in_reply_to="0", imap_id="<m1@example.com>")

        data = email.to_dict()
        assert data["id"] == "1"
        assert data["date"] == email.date.isoformat()
        assert data["from_email"] == "sender@example.com"
        assert "was_read" not in data

        email2 = Email.from_dict(data)
        assert email2 == email

    def test_from_dict_missing_field(self):
        with pytest.raises(ValidationError):
            Email.from_dict({"id": "1", "thread_id": 1})


class TestThreadItem:
    def test_add_reply_appends_last(self, make_email):
        root = ThreadItem(make_email("1"))
        first = ThreadItem(make_email("2"))
        second = ThreadItem(make_email("3"))

        root.add_reply(first)
        root.add_reply(second)

        assert root.replies == [first, second]

    def test_to_dict_nests_replies(self, make_email):
        root = ThreadItem(make_email("1"))
        reply = ThreadItem(make_email("2", in_reply_to="1"))
        reply.email.mark_as_read()
        root.add_reply(reply)

        data = root.to_dict()
        assert data["id"] == "1"
        assert data["was_read"] is False
        assert len(data["replies"]) == 1
        assert data["replies"][0]["id"] == "2"
        assert data["replies"][0]["was_read"] is True
        assert data["replies"][0]["replies"] == []
