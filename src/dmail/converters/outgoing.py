from __future__ import annotations

import email.errors
from email import encoders
from email.header import Header
from email.message import Message
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from dmail.errors import CreateMessageError
from dmail.messages import Attachment, ContentChunk, EmailParticipant, OutgoingMessage
from dmail.mime.matching import parse_mime_type

CONTENT_TYPE_HDR = "Content-Type"
_PART_ERRORS = (ValueError, LookupError, TypeError, email.errors.MessageError)


def _header_probe(content_type: str) -> Message:
    probe = Message()
    probe[CONTENT_TYPE_HDR] = content_type
    return probe


def convert_body_part(content: ContentChunk) -> Message:
    probe = _header_probe(content.content_type)
    try:
        part = MIMEText(
            content.data,
            _subtype=probe.get_content_subtype(),
            _charset=probe.get_content_charset() or "utf-8",
        )
        part.replace_header(CONTENT_TYPE_HDR, content.content_type)
    except _PART_ERRORS as exc:
        raise CreateMessageError(f"Body part couldn't be created due to the following error: {exc}") from exc
    return part


def convert_attachment_part(attachment: Attachment) -> Message | None:
    if not attachment.data:
        return None
    mime_type = parse_mime_type(attachment.content_type)
    maintype, subtype = (mime_type.primary, mime_type.subtype) if mime_type else ("application", "octet-stream")
    try:
        part = MIMEBase(maintype, subtype)
        part.set_payload(attachment.data)
        encoders.encode_base64(part)
        if attachment.name:
            part.add_header("Content-Disposition", "attachment", filename=attachment.name)
        else:
            part.add_header("Content-Disposition", "attachment")
        part.replace_header(CONTENT_TYPE_HDR, attachment.content_type)
    except _PART_ERRORS as exc:
        raise CreateMessageError(f"Attachment part couldn't be created due to the following error: {exc}") from exc
    return part


def to_parts(message: OutgoingMessage) -> list[Message]:
    """Body parts for ``message``: one per content chunk, then one per non-empty attachment."""
    parts = [convert_body_part(content) for content in message.contents]
    for attachment in message.attachments:
        part = convert_attachment_part(attachment)
        if part is not None:
            parts.append(part)
    return parts


def build_mime_message(message: OutgoingMessage, sender: EmailParticipant) -> MIMEMultipart:
    mime = MIMEMultipart("mixed")
    if message.subject:
        mime["Subject"] = Header(message.subject, message.encoding)
    mime["From"] = sender.formatted()
    mime["To"] = ", ".join(p.formatted() for p in sorted(message.recipients, key=lambda p: p.email))
    for part in to_parts(message):
        mime.attach(part)
    return mime
