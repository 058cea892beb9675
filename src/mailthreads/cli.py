# ABOUTME: Command-line interface for mailthreads thread storage
# ABOUTME: Provides commands for viewing threads, importing/exporting emails, and read status
"""mailthreads command-line interface"""

import json
import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console

from mailthreads.config import Config
from mailthreads.content_renderer import html_to_text, looks_like_html
from mailthreads.email_repository import EmailRepository
from mailthreads.exceptions import Conflict, MailthreadsError, ValidationError
from mailthreads.logging_config import resolve_log_level, setup_logging
from mailthreads.models import Email, User
from mailthreads.thread_assembler import count_nodes
from mailthreads.thread_view import build_tree, forest_to_dicts

logger = logging.getLogger(__name__)


@click.group()
@click.pass_context
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--db", "db_path", default=None, help="Email database path (overrides config)")
def cli(ctx, debug, db_path):
    """mailthreads - Threaded views over stored email discussions"""
    # Load environment from .env if present (MAILTHREADS_DB, XDG overrides)
    load_dotenv()

    try:
        config = Config()
    except MailthreadsError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    setup_logging(resolve_log_level(config, debug), config.get_log_file())

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["db_path"] = db_path


def _open_repository(ctx) -> tuple[Config, EmailRepository]:
    config = ctx.obj["config"]
    try:
        repo = EmailRepository(config, db_path=ctx.obj.get("db_path"))
    except MailthreadsError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    logger.debug(f"Using email database {repo.db_path}")
    return config, repo


@cli.command()
@click.argument("thread_id", type=int)
@click.option("--user", "user_id", type=int, default=None, help="Show read status for this user")
@click.option("--json", "as_json", is_flag=True, help="Print the thread as nested JSON")
@click.option("--content/--no-content", default=None, help="Show content previews")
@click.pass_context
def thread(ctx, thread_id, user_id, as_json, content):
    """Show the threaded view of THREAD_ID"""
    config, repo = _open_repository(ctx)
    user = User(id=user_id) if user_id is not None else None

    try:
        roots = repo.get_thread_view(thread_id, user)
    except MailthreadsError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(forest_to_dicts(roots), indent=2))
        return

    if not roots:
        click.echo(f"Thread {thread_id} has no emails")
        return

    ui = config.settings["ui"]
    show_content = ui["show_content"] if content is None else content
    tree = build_tree(
        roots,
        title=f"Thread {thread_id} ({count_nodes(roots)} emails)",
        show_content=show_content,
        preview_lines=ui["preview_lines"],
    )
    Console().print(tree)


@cli.command()
@click.pass_context
def threads(ctx):
    """List stored threads with their email counts"""
    _, repo = _open_repository(ctx)
    rows = repo.list_threads()
    if not rows:
        click.echo("No threads stored")
        return
    for thread_id, count in rows:
        click.echo(f"{thread_id}\t{count}")


@cli.command()
@click.argument("email_id")
@click.pass_context
def source(ctx, email_id):
    """Print the original source of EMAIL_ID"""
    _, repo = _open_repository(ctx)
    try:
        click.echo(repo.get_email_source(email_id))
    except MailthreadsError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@cli.command(name="import")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_emails(ctx, filepath):
    """Import emails from a JSON-lines file

    Each line is an email record as written by 'mailthreads export'.
    Emails whose id is already stored are skipped.
    """
    _, repo = _open_repository(ctx)
    added = skipped = failed = 0

    with open(filepath, encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                email = Email.from_dict(json.loads(line))
                repo.add(email)
                added += 1
            except Conflict as e:
                logger.info(f"Line {line_no}: {e}")
                skipped += 1
            except (json.JSONDecodeError, ValidationError) as e:
                click.echo(f"✗ Line {line_no}: {e}", err=True)
                failed += 1
            except MailthreadsError as e:
                click.echo(f"✗ {e}", err=True)
                sys.exit(1)

    click.echo(f"✓ Imported {added} emails ({skipped} already stored, {failed} invalid)")
    if failed:
        sys.exit(1)


@cli.command()
@click.pass_context
def export(ctx):
    """Write all stored emails as JSON lines to stdout"""
    _, repo = _open_repository(ctx)
    for email in repo.find_all():
        click.echo(json.dumps(email.to_dict()))


@cli.command(name="mark-read")
@click.argument("email_id")
@click.option("--user", "user_id", type=int, required=True, help="User who read the email")
@click.option("--unread", is_flag=True, help="Remove the read marker instead")
@click.pass_context
def mark_read(ctx, email_id, user_id, unread):
    """Mark EMAIL_ID as read (or unread) for a user"""
    _, repo = _open_repository(ctx)
    user = User(id=user_id)
    try:
        if unread:
            repo.mark_as_unread(email_id, user)
            click.echo(f"✓ {email_id} marked unread for user {user_id}")
        else:
            repo.mark_as_read(email_id, user)
            click.echo(f"✓ {email_id} marked read for user {user_id}")
    except MailthreadsError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Only report what would change")
@click.pass_context
def rerender(ctx, dry_run):
    """Convert stored HTML content to plain text"""
    _, repo = _open_repository(ctx)
    changed = 0
    for email in repo.find_all():
        if not looks_like_html(email.content):
            continue
        changed += 1
        if dry_run:
            click.echo(f"Would re-render {email.id}")
            continue
        email.set_content(html_to_text(email.content))
        repo.update_content(email)
        logger.debug(f"Re-rendered {email.id}")

    verb = "Would re-render" if dry_run else "Re-rendered"
    click.echo(f"✓ {verb} {changed} emails")


@cli.command()
@click.pass_context
def stats(ctx):
    """Show storage statistics"""
    _, repo = _open_repository(ctx)
    click.echo(f"Database: {repo.db_path}")
    click.echo(f"Total emails: {repo.get_email_count()}")
    click.echo(f"Total threads: {len(repo.list_threads())}")


@cli.command()
def version():
    """Show mailthreads version"""
    from mailthreads import __version__

    click.echo(f"mailthreads version {__version__}")


if __name__ == "__main__":
    cli()
