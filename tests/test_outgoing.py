from __future__ import annotations

import email
import smtplib
from pathlib import Path

import pytest

from dmail.config import EncryptionType, SmtpConfig
from dmail.converters import build_mime_message, convert_attachment_part, convert_body_part, to_parts
from dmail.errors import SessionError, ValidationError
from dmail.messages import (
    Attachment,
    AttachmentType,
    ContentChunk,
    EmailParticipant,
    OutgoingContentType,
    OutgoingMessage,
)
from dmail.mime.matching import decode_header_value
from dmail.transport.smtp import SmtpSender

BOB = EmailParticipant.of("bob@example.com", "Bob")
CAROL = EmailParticipant.of("carol@example.com")


def test_outgoing_message_requires_recipients() -> None:
    with pytest.raises(ValidationError):
        OutgoingMessage.plain("Hi", "body", [])


def test_plain_and_html_factories_set_content_type() -> None:
    plain = OutgoingMessage.plain("Hi", "body", [BOB])
    html = OutgoingMessage.html("Hi", "<p>body</p>", [BOB], encoding="ISO-8859-1")

    assert plain.contents[0].content_type == "text/plain; charset=UTF-8"
    assert plain.content_kind is OutgoingContentType.PLAIN
    assert html.contents[0].content_type == "text/html; charset=ISO-8859-1"
    assert html.content_kind is OutgoingContentType.HTML


def test_build_mime_message_with_attachment() -> None:
    message = OutgoingMessage.plain(
        "Привет",
        "Текст письма",
        [CAROL, BOB],
        [Attachment(name="report.pdf", data=b"%PDF", content_type="application/pdf")],
    )

    mime = build_mime_message(message, EmailParticipant.of("me@example.com", "Me"))
    parsed = email.message_from_bytes(mime.as_bytes())

    assert parsed.get_content_type() == "multipart/mixed"
    assert decode_header_value(parsed["Subject"]) == "Привет"
    assert parsed["From"] == "Me <me@example.com>"
    assert parsed["To"] == "Bob <bob@example.com>, carol@example.com"

    body, attachment = parsed.get_payload()
    assert body.get_content_type() == "text/plain"
    assert body.get_content_charset() == "utf-8"
    assert body.get_payload(decode=True).decode("utf-8") == "Текст письма"
    assert attachment.get_content_type() == "application/pdf"
    assert attachment.get_content_disposition() == "attachment"
    assert attachment.get_filename() == "report.pdf"
    assert attachment.get_payload(decode=True) == b"%PDF"


def test_empty_attachments_are_dropped() -> None:
    message = OutgoingMessage.html(
        "Hi",
        "<p>x</p>",
        [BOB],
        [Attachment(name="empty.bin", data=b"", content_type="application/octet-stream")],
    )

    assert len(to_parts(message)) == 1
    assert convert_attachment_part(message.attachments[0]) is None


def test_body_part_keeps_custom_content_type() -> None:
    part = convert_body_part(ContentChunk(content_type="text/x-markdown; charset=UTF-8", data="# Title"))

    assert part.get_content_type() == "text/x-markdown"
    assert part["Content-Type"] == "text/x-markdown; charset=UTF-8"


def test_attachment_without_name_has_bare_disposition() -> None:
    part = convert_attachment_part(Attachment(name=None, data=b"\x00\x01", content_type="application/octet-stream"))

    assert part is not None
    assert part["Content-Disposition"] == "attachment"
    assert part.get_filename() is None


def test_attachment_from_file_guesses_type(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("remember", encoding="utf-8")

    attachment = Attachment.from_file(path)

    assert attachment.name == "notes.txt"
    assert attachment.content_type == "text/plain"
    assert attachment.type is AttachmentType.TEXT
    assert attachment.size == len(b"remember")


class FakeSmtp:
    def __init__(self, fail_with: Exception | None = None):
        self.fail_with = fail_with
        self.logins: list[tuple[str, str]] = []
        self.sent: list[tuple[object, list[str]]] = []

    def __enter__(self) -> FakeSmtp:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None

    def login(self, user: str, password: str) -> None:
        self.logins.append((user, password))

    def send_message(self, message, to_addrs: list[str]) -> None:  # noqa: ANN001
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((message, to_addrs))


def _smtp_config(password: str = "secret") -> SmtpConfig:
    return SmtpConfig(
        host="smtp.example.com",
        username="me@example.com",
        password=password,
        port=587,
        encryption=EncryptionType.STARTTLS,
    )


def test_smtp_sender_logs_in_and_sends() -> None:
    client = FakeSmtp()
    sender = SmtpSender(_smtp_config(), client_factory=lambda config: client)

    sender.send(OutgoingMessage.plain("Hi", "body", [CAROL, BOB]))

    assert client.logins == [("me@example.com", "secret")]
    mime, recipients = client.sent[0]
    assert recipients == ["bob@example.com", "carol@example.com"]
    assert mime["From"] == "me@example.com"


def test_smtp_sender_skips_login_without_password() -> None:
    client = FakeSmtp()
    SmtpSender(_smtp_config(password=""), client_factory=lambda config: client).send(
        OutgoingMessage.plain("Hi", "body", [BOB])
    )

    assert client.logins == []
    assert len(client.sent) == 1


def test_smtp_failure_raises_session_error() -> None:
    client = FakeSmtp(fail_with=smtplib.SMTPException("relay denied"))
    sender = SmtpSender(_smtp_config(), client_factory=lambda config: client)

    with pytest.raises(SessionError, match="relay denied"):
        sender.send(OutgoingMessage.plain("Hi", "body", [BOB]))
