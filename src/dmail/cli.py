from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich import print
from rich.markup import escape
from rich.table import Table

from dmail.config import Settings
from dmail.core.logging import configure_logging, get_logger
from dmail.errors import DMailError
from dmail.messages import Attachment, EmailParticipant, OutgoingMessage, PageRequest
from dmail.services import MailboxClient, export_views, run_doctor_checks
from dmail.transport.imap import ImapStore
from dmail.transport.smtp import SmtpSender

app = typer.Typer(no_args_is_help=True, help="dmail: read, delete and send email over IMAP/SMTP")


def _load_settings(base_dir: Path | None = None) -> Settings:
    settings = Settings.load(base_dir=base_dir)
    settings.ensure_directories()
    return settings


def _start(command: str) -> tuple[Settings, str]:
    settings = _load_settings()
    correlation_id = uuid.uuid4().hex
    configure_logging(settings.logs_dir, correlation_id=correlation_id, console=False)
    get_logger(f"dmail.cli.{command}", correlation_id).info("Command %s started", command)
    return settings, correlation_id


@contextmanager
def _mailbox(settings: Settings, correlation_id: str) -> Iterator[MailboxClient]:
    if settings.imap is None:
        raise typer.BadParameter("IMAP account is not configured: set DMAIL_IMAP_HOST and DMAIL_IMAP_USER")
    with ImapStore(settings.imap) as store:
        yield MailboxClient(
            store,
            logger=get_logger("dmail.mailbox", correlation_id),
            default_folder=settings.imap.folder,
        )


def _fail(exc: DMailError) -> typer.Exit:
    print(f"[red]{exc.__class__.__name__}[/red]: {escape(str(exc))}")
    return typer.Exit(1)


def _parse_params(values: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Template parameter must look like key=value: {value}")
        params[key.strip()] = raw
    return params


@app.command("count")
def count_command(
    folder: str | None = typer.Option(None, help="Folder name (INBOX by default)"),
) -> None:
    settings, correlation_id = _start("count")
    try:
        with _mailbox(settings, correlation_id) as mailbox:
            total = mailbox.get_total_count(folder)
    except DMailError as exc:
        raise _fail(exc) from exc
    print(f"Messages: {total}")


@app.command("check")
def check_command(
    folder: str | None = typer.Option(None, help="Folder name (INBOX by default)"),
    start: int = typer.Option(0, min=0, help="0-based index of the first message"),
    size: int = typer.Option(20, min=1, help="Page size"),
) -> None:
    settings, correlation_id = _start("check")
    try:
        with _mailbox(settings, correlation_id) as mailbox:
            views = mailbox.check_messages(folder, PageRequest.of(start, size))
    except DMailError as exc:
        raise _fail(exc) from exc

    table = Table(title=f"{folder or settings.imap.folder}: {len(views)} message(s)")
    for column in ["id", "seen", "from", "subject", "size", "sent"]:
        table.add_column(column)
    for view in views:
        table.add_row(
            str(view.id),
            "" if view.seen is None else ("yes" if view.seen else "no"),
            escape(view.sender.email) if view.sender else "",
            escape(view.subject or ""),
            str(view.size or ""),
            view.sent_date.isoformat() if view.sent_date else "",
        )
    print(table)


@app.command("read")
def read_command(
    folder: str | None = typer.Option(None, help="Folder name (INBOX by default)"),
    message_id: int | None = typer.Option(None, "--id", min=1, help="Read one message by its sequence number"),
    start: int = typer.Option(0, min=0, help="0-based index of the first message"),
    size: int = typer.Option(5, min=1, help="Page size"),
) -> None:
    settings, correlation_id = _start("read")
    try:
        with _mailbox(settings, correlation_id) as mailbox:
            if message_id is not None:
                messages = [mailbox.read_message_by_id(folder, message_id)]
            else:
                messages = mailbox.read_messages(folder, PageRequest.of(start, size))
    except DMailError as exc:
        raise _fail(exc) from exc

    for message in messages:
        sender = message.sender.formatted() if message.sender else "-"
        print(f"[bold]#{message.id}[/bold] {escape(message.subject or '(no subject)')}")
        print(f"From: {escape(sender)}")
        text = message.get_content_by_type("text/plain") or message.get_content_by_type("text/html")
        print(escape(text))
        for attachment in message.attachments:
            label = escape(f"{attachment.name or '(inline)'} {attachment.content_type}")
            print(f"- attachment: {label} {attachment.size} bytes")
        print("")


@app.command("delete")
def delete_command(
    ids: list[int] | None = typer.Argument(None, help="Sequence numbers of messages to delete"),
    folder: str | None = typer.Option(None, help="Folder name (INBOX by default)"),
    all_messages: bool = typer.Option(False, "--all", help="Delete every message in the folder"),
) -> None:
    if not ids and not all_messages:
        raise typer.BadParameter("Pass message ids or --all")
    settings, correlation_id = _start("delete")
    try:
        with _mailbox(settings, correlation_id) as mailbox:
            if all_messages:
                report = mailbox.delete_all_messages_report(folder)
            else:
                report = mailbox.delete_messages_report(folder, ids or [])
    except DMailError as exc:
        raise _fail(exc) from exc

    for message_id, outcome in sorted(report.items()):
        if outcome.deleted:
            print(f"- {message_id}: [green]deleted[/green]")
        else:
            print(f"- {message_id}: [yellow]not deleted[/yellow] ({escape(outcome.reason or '')})")


@app.command("send")
def send_command(
    to: list[str] = typer.Option(..., "--to", help="Recipient address (repeatable)"),
    subject: str = typer.Option("", help="Message subject"),
    text: str | None = typer.Option(None, help="Plain text body"),
    html: str | None = typer.Option(None, help="HTML body"),
    template: Path | None = typer.Option(None, help="Jinja2 template file rendered as the HTML body"),
    param: list[str] = typer.Option([], "--param", help="Template parameter key=value (repeatable)"),
    attach: list[Path] = typer.Option([], "--attach", exists=True, dir_okay=False, help="File to attach"),
) -> None:
    bodies = [value for value in (text, html, template) if value is not None]
    if len(bodies) != 1:
        raise typer.BadParameter("Pass exactly one of --text, --html or --template")

    settings, _ = _start("send")
    if settings.smtp is None:
        raise typer.BadParameter("SMTP account is not configured: set DMAIL_SMTP_HOST and DMAIL_SMTP_USER")

    try:
        recipients = [EmailParticipant.of(address) for address in to]
        attachments = [Attachment.from_file(path) for path in attach]
        if template is not None:
            template_path = template
            if not template.is_absolute() and not template.exists():
                template_path = settings.template_dir / template
            message = OutgoingMessage.templated(subject, template_path, _parse_params(param), recipients, attachments)
        elif html is not None:
            message = OutgoingMessage.html(subject, html, recipients, attachments)
        else:
            message = OutgoingMessage.plain(subject, text or "", recipients, attachments)
        SmtpSender(settings.smtp).send(message)
    except DMailError as exc:
        raise _fail(exc) from exc
    print(f"[green]Sent[/green] to {', '.join(to)}")


@app.command("export")
def export_command(
    folder: str | None = typer.Option(None, help="Folder name (INBOX by default)"),
    start: int = typer.Option(0, min=0, help="0-based index of the first message"),
    size: int = typer.Option(100, min=1, help="Page size"),
    format: str = typer.Option("csv", help="Comma separated formats: csv,xlsx"),
    out: Path | None = typer.Option(None, help="Export directory"),
) -> None:
    formats = [item.strip().lower() for item in format.split(",") if item.strip()]
    unknown = [item for item in formats if item not in {"csv", "xlsx"}]
    if unknown:
        raise typer.BadParameter(f"Unsupported formats: {unknown}")

    settings, correlation_id = _start("export")
    try:
        with _mailbox(settings, correlation_id) as mailbox:
            views = mailbox.check_messages(folder, PageRequest.of(start, size))
    except DMailError as exc:
        raise _fail(exc) from exc

    files = export_views(views, formats=formats, out_dir=(out or settings.exports_dir).resolve())
    print(f"[green]Exported[/green] {len(views)} message(s)")
    for file_path in files:
        print(f"- {file_path}")


@app.command("doctor")
def doctor_command() -> None:
    settings, _ = _start("doctor")
    checks = run_doctor_checks(settings)

    print("Doctor results:")
    for check in checks:
        status = check["status"].upper()
        print(f"- {escape(f'[{status}]')} {check['check']}: {escape(check['detail'])}")


if __name__ == "__main__":
    app()
