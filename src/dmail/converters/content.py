from __future__ import annotations

import logging

from dmail.errors import ReadMessageError
from dmail.messages import Attachment, AttachmentType, ContentAndAttachments, MessageContent
from dmail.mime.matching import decode_header_value, is_mime_type
from dmail.mime.parts import MessagePart
from dmail.transport.base import TRANSPORT_ERRORS

logger = logging.getLogger(__name__)

ATTACHMENT_DISPOSITION = "attachment"


def extract(part: MessagePart) -> MessageContent:
    """Flatten a MIME tree into its body chunks and attachments, in pre-order."""
    result = ContentAndAttachments()
    try:
        _walk(part, result)
    except TRANSPORT_ERRORS as exc:
        raise ReadMessageError(f"An error occurred in getting content from the message: {exc}") from exc
    return result.snapshot()


def _walk(part: MessagePart, result: ContentAndAttachments) -> None:
    content_type = part.get_content_type()

    if part.get_disposition() != ATTACHMENT_DISPOSITION:
        if is_mime_type(content_type, "text/*"):
            content = part.get_content()
            if isinstance(content, str):
                result.add_content(content_type, content)
                return
            if isinstance(content, bytes):
                result.add_content(content_type, _bytes_to_text(content))
                return

        elif is_mime_type(content_type, "message/rfc822"):
            embedded = part.get_content()
            if isinstance(embedded, MessagePart):
                _walk(embedded, result)
                return

        elif is_mime_type(content_type, "multipart/*"):
            children = part.get_content()
            if isinstance(children, list):
                for child in children:
                    _walk(child, result)
                return

    if AttachmentType.find(content_type) is not AttachmentType.UNKNOWN:
        attachment = get_attachment(part)
        if attachment is None:
            logger.debug("Skipping empty attachment part %s", content_type)
        else:
            result.add_attachment(attachment)
        return

    result.add_content(content_type, _default_content(part))


def get_attachment(part: MessagePart) -> Attachment | None:
    """Build an :class:`Attachment` from ``part``; parts without bytes yield ``None``."""
    data = _content_as_bytes(part)
    if not data:
        return None
    filename = part.get_filename()
    content_type = part.get_content_type()
    return Attachment(
        name=decode_header_value(filename) if filename else None,
        data=data,
        content_type=decode_header_value(content_type),
        type=AttachmentType.find(content_type),
    )


def _default_content(part: MessagePart) -> str:
    content = part.get_content()
    if isinstance(content, str):
        return content
    if isinstance(content, bytes):
        return _bytes_to_text(content)
    return part.write_to().decode("utf-8", errors="replace")


def _content_as_bytes(part: MessagePart) -> bytes:
    content = part.get_content()
    if content is None:
        return b""
    if isinstance(content, bytes):
        return content
    if isinstance(content, str):
        return content.encode("utf-8")
    return part.write_to()


def _bytes_to_text(data: bytes) -> str:
    return "\n".join(data.decode("utf-8", errors="replace").splitlines())
