# ABOUTME: SQLite-backed storage for thread emails and per-user read markers
# ABOUTME: Loads threads oldest-first with read status joined in and builds threaded views
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from mailthreads.exceptions import Conflict, DataError, NotFound
from mailthreads.models import Email, EmailAddress, ThreadItem, User
from mailthreads.thread_assembler import ThreadAssembler

logger = logging.getLogger(__name__)


class EmailRepository:
    """
    Store emails and answer thread queries.

    Read status is kept in its own table keyed by (user_id, email_id) and is
    joined in when a thread is loaded; the emails table never changes when a
    user reads something.

    Database location: config.get_database_path()
    (typically ~/.local/share/mailthreads/emails.db)
    """

    def __init__(self, config, db_path: str | Path | None = None):
        self.config = config
        self.db_path = Path(db_path) if db_path else config.get_database_path()
        self.assembler = ThreadAssembler(config)
        self._init_database()

    def _init_database(self):
        """Create database and schema if not exists"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS emails (
                    id TEXT PRIMARY KEY,
                    subject TEXT,
                    content TEXT,
                    original_content TEXT,
                    thread_id INTEGER NOT NULL,
                    date TEXT NOT NULL,  -- ISO-8601
                    date_utc TEXT,  -- sort key, see _sort_key
                    from_email TEXT,
                    from_name TEXT,
                    imap_id TEXT,
                    in_reply_to TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_emails_read (
                    user_id INTEGER NOT NULL,
                    email_id TEXT NOT NULL,
                    read_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,

                    PRIMARY KEY (user_id, email_id)
                )
                """
            )

            conn.execute("CREATE INDEX IF NOT EXISTS idx_thread_id ON emails(thread_id)")
            conn.commit()

            self._add_sort_key_column_if_missing(conn)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_date_utc ON emails(date_utc)")
            conn.commit()
            logger.debug(f"Email database initialized at {self.db_path}")

    def _add_sort_key_column_if_missing(self, conn):
        """Add and fill date_utc in databases created before it existed (migration)."""
        columns = [row[1] for row in conn.execute("PRAGMA table_info(emails)").fetchall()]
        if "date_utc" not in columns:
            logger.info("Adding date_utc column to existing database")
            conn.execute("ALTER TABLE emails ADD COLUMN date_utc TEXT")

        rows = conn.execute("SELECT id, date FROM emails WHERE date_utc IS NULL").fetchall()
        for row in rows:
            sort_key = _sort_key(datetime.fromisoformat(row["date"]))
            conn.execute("UPDATE emails SET date_utc = ? WHERE id = ?", (sort_key, row["id"]))
        if rows:
            logger.info(f"Filled date_utc for {len(rows)} stored emails")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise DataError(f"Database operation failed: {e}") from e
        finally:
            if conn:
                conn.close()

    def contains(self, email_id: str) -> bool:
        with self.get_connection() as conn:
            row = conn.execute("SELECT COUNT(id) FROM emails WHERE id = ?", (email_id,)).fetchone()
        return row[0] > 0

    def get_thread_view(self, thread_id: int, user: User | None = None) -> list[ThreadItem]:
        """
        Returns a threaded view of the emails.

        Args:
            thread_id: Thread to load
            user: Viewing user; read flags are only set when given

        Returns:
            Root ThreadItems, oldest first, with replies nested below them
        """
        emails = self.get_thread_emails(thread_id, user)
        roots = self.assembler.assemble(emails)
        logger.debug(f"Thread {thread_id}: {len(emails)} emails, {len(roots)} roots")
        return roots

    def get_thread_emails(self, thread_id: int, user: User | None = None) -> list[Email]:
        """All emails of a thread, oldest first, annotated with read status for user."""
        with self.get_connection() as conn:
            if user is not None:
                rows = conn.execute(
                    """
                    SELECT emails.*,
                           CASE WHEN read_status.user_id IS NULL THEN 0 ELSE 1 END AS was_read
                    FROM emails
                    LEFT JOIN user_emails_read AS read_status
                        ON emails.id = read_status.email_id AND read_status.user_id = ?
                    WHERE emails.thread_id = ?
                    ORDER BY emails.date_utc ASC, emails.rowid ASC
                    """,
                    (user.id, thread_id),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT emails.*, 0 AS was_read
                    FROM emails
                    WHERE emails.thread_id = ?
                    ORDER BY emails.date_utc ASC, emails.rowid ASC
                    """,
                    (thread_id,),
                ).fetchall()
        return [self._create_email(row) for row in rows]

    def get_thread_count(self, thread_id: int) -> int:
        """Returns the number of emails in a thread."""
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(id) FROM emails WHERE thread_id = ?", (thread_id,)
            ).fetchone()
        return int(row[0])

    def list_threads(self) -> list[tuple[int, int]]:
        """(thread_id, email count) pairs, ordered by thread id."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT thread_id, COUNT(id) FROM emails GROUP BY thread_id ORDER BY thread_id"
            ).fetchall()
        return [(int(row[0]), int(row[1])) for row in rows]

    def find_all(self) -> list[Email]:
        with self.get_connection() as conn:
            rows = conn.execute("SELECT * FROM emails ORDER BY rowid").fetchall()
        return [self._create_email(row) for row in rows]

    def add(self, email: Email) -> None:
        """Store a new email.

        Raises:
            Conflict: An email with the same id is already stored
        """
        with self.get_connection() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO emails
                    (id, subject, content, original_content, thread_id, date, date_utc,
                     from_email, from_name, imap_id, in_reply_to)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        email.id,
                        email.subject,
                        email.content,
                        email.original_content,
                        email.thread_id,
                        email.date.isoformat(),
                        _sort_key(email.date),
                        email.sender.email,
                        email.sender.name,
                        email.imap_id,
                        email.in_reply_to,
                    ),
                )
                conn.commit()
            except sqlite3.IntegrityError:
                conn.rollback()
                raise Conflict(
                    f"Email {email.id} already exists",
                    recovery_hint="Use update_content to change an existing email",
                )
        logger.debug(f"Stored email {email.id} in thread {email.thread_id}")

    def get_email_source(self, email_id: str) -> str:
        """Original raw content of an email.

        Raises:
            NotFound: No email with this id
        """
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT original_content FROM emails WHERE id = ?", (email_id,)
            ).fetchone()
        if row is None:
            raise NotFound(f"Email not found: {email_id}")
        return row["original_content"] or ""

    def update_content(self, email: Email) -> None:
        with self.get_connection() as conn:
            conn.execute("UPDATE emails SET content = ? WHERE id = ?", (email.content, email.id))
            conn.commit()

    def get_email_count(self) -> int:
        with self.get_connection() as conn:
            row = conn.execute("SELECT COUNT(*) FROM emails").fetchone()
        return int(row[0])

    def mark_as_read(self, email_id: str, user: User) -> None:
        """Record that user has read the email. Marking twice is a no-op.

        Raises:
            NotFound: No email with this id
        """
        if not self.contains(email_id):
            raise NotFound(f"Email not found: {email_id}")
        with self.get_connection() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO user_emails_read (user_id, email_id, read_at) VALUES (?, ?, ?)",
                (user.id, email_id, datetime.now().isoformat()),
            )
            conn.commit()

    def mark_as_unread(self, email_id: str, user: User) -> None:
        with self.get_connection() as conn:
            conn.execute(
                "DELETE FROM user_emails_read WHERE user_id = ? AND email_id = ?",
                (user.id, email_id),
            )
            conn.commit()

    def _create_email(self, row: sqlite3.Row) -> Email:
        email = Email(
            id=row["id"],
            subject=row["subject"] or "",
            content=row["content"] or "",
            original_content=row["original_content"] or "",
            thread_id=int(row["thread_id"]),
            date=datetime.fromisoformat(row["date"]),
            sender=EmailAddress(row["from_email"] or "", row["from_name"] or ""),
            imap_id=row["imap_id"],
            in_reply_to=row["in_reply_to"],
        )

        if "was_read" in row.keys() and row["was_read"]:
            email.mark_as_read()

        return email


def _sort_key(date: datetime) -> str:
    """Text key that sorts in time order across UTC offsets.

    Aware dates are converted to UTC; naive dates are taken as UTC already.
    """
    if date.tzinfo is not None:
        date = date.astimezone(timezone.utc).replace(tzinfo=None)
    return date.isoformat(sep=" ", timespec="microseconds")
