import shutil
import tempfile
from datetime import datetime, timedelta

import pytest

from mailthreads.config import Config
from mailthreads.email_repository import EmailRepository
from mailthreads.models import Email, EmailAddress


@pytest.fixture
def temp_config_dir():
    """Create a temporary config directory for tests"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def test_config(temp_config_dir, monkeypatch):
    """Create a test config instance"""
    monkeypatch.delenv("MAILTHREADS_DB", raising=False)
    return Config(config_dir=temp_config_dir)


@pytest.fixture
def repo(test_config):
    """Email repository backed by a database in the temp config dir"""
    return EmailRepository(test_config)


@pytest.fixture
def tmp_xdg(tmp_path, monkeypatch):
    """Point every XDG directory at tmp_path so Config() stays isolated"""
    for name in ("XDG_CONFIG_HOME", "XDG_DATA_HOME", "XDG_STATE_HOME", "XDG_CACHE_HOME"):
        monkeypatch.setenv(name, str(tmp_path / name.lower()))
    monkeypatch.delenv("MAILTHREADS_DB", raising=False)
    return tmp_path


BASE_DATE = datetime(2024, 3, 1, 10, 0, 0)


def _make_email(
    email_id,
    in_reply_to=None,
    minutes=0,
    thread_id=1,
    imap_id=None,
    subject=None,
    content="Hello",
):
    """Build an Email whose date is BASE_DATE plus the given minutes"""
    return Email(
        id=str(email_id),
        subject=subject or f"Message {email_id}",
        content=content,
        original_content=f"Subject: Message {email_id}\n\n{content}\n",
        thread_id=thread_id,
        date=BASE_DATE + timedelta(minutes=minutes),
        sender=EmailAddress("sender@example.com", "Sender"),
        imap_id=imap_id,
        in_reply_to=in_reply_to,
    )


@pytest.fixture
def make_email():
    """Factory for emails dated BASE_DATE plus some minutes"""
    return _make_email


@pytest.fixture
def sample_thread():
    """A(1) <- B(2), C(3); B <- D(4)"""
    return [
        _make_email(1, minutes=1),
        _make_email(2, in_reply_to="1", minutes=2),
        _make_email(3, in_reply_to="1", minutes=3),
        _make_email(4, in_reply_to="2", minutes=4),
    ]
