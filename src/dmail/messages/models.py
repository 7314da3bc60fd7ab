from __future__ import annotations

import mimetypes
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import formataddr
from pathlib import Path
from typing import Any

from dmail.errors import ValidationError
from dmail.mime.matching import is_mime_type

from .types import AttachmentType, OutgoingContentType, TransferEncoder

DEFAULT_ENCODING = "UTF-8"


@dataclass(frozen=True, slots=True)
class EmailParticipant:
    email: str
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.email:
            raise ValidationError("The participant's email must not be empty")

    @classmethod
    def of(cls, email: str, name: str | None = None) -> EmailParticipant:
        return cls(email=email, name=name or None)

    def formatted(self) -> str:
        return formataddr((self.name or "", self.email))


@dataclass(frozen=True, slots=True)
class ContentChunk:
    content_type: str
    data: str

    def __post_init__(self) -> None:
        if not self.content_type:
            raise ValidationError("The content type of a message body must not be empty")

    def is_mime_type(self, pattern: str) -> bool:
        return is_mime_type(self.content_type, pattern)


@dataclass(frozen=True, slots=True)
class Attachment:
    name: str | None
    data: bytes
    content_type: str
    type: AttachmentType | None = None

    def __post_init__(self) -> None:
        if self.type is None:
            object.__setattr__(self, "type", AttachmentType.find(self.content_type))

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_file(cls, path: Path, content_type: str | None = None) -> Attachment:
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            content_type=content_type or guessed or "application/octet-stream",
        )


def _join_by_type(contents: Iterable[ContentChunk], pattern: str) -> str:
    return "\n".join(item.data for item in contents if item.is_mime_type(pattern))


@dataclass(frozen=True, slots=True)
class MessageContent:
    contents: tuple[ContentChunk, ...] = ()
    attachments: tuple[Attachment, ...] = ()

    def get_content_by_type(self, pattern: str) -> str:
        return _join_by_type(self.contents, pattern)


@dataclass(slots=True)
class ContentAndAttachments:
    """Accumulator filled while one message tree is walked."""

    contents: list[ContentChunk] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    def add_content(self, content_type: str, data: str) -> None:
        self.contents.append(ContentChunk(content_type=content_type, data=data))

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(attachment)

    def get_content_by_type(self, pattern: str) -> str:
        return _join_by_type(self.contents, pattern)

    def snapshot(self) -> MessageContent:
        return MessageContent(contents=tuple(self.contents), attachments=tuple(self.attachments))


@dataclass(frozen=True, slots=True)
class MessageView:
    id: int
    subject: str | None = None
    sender: EmailParticipant | None = None
    recipients: frozenset[EmailParticipant] = frozenset()
    seen: bool | None = None
    size: int | None = None
    sent_date: datetime | None = None
    received_date: datetime | None = None
    transfer_encoder: TransferEncoder = TransferEncoder.UNKNOWN

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "sender": self.sender.email if self.sender else None,
            "sender_name": self.sender.name if self.sender else None,
            "recipients": ", ".join(sorted(p.email for p in self.recipients)),
            "seen": self.seen,
            "size": self.size,
            "sent_date": self.sent_date.isoformat() if self.sent_date else None,
            "received_date": self.received_date.isoformat() if self.received_date else None,
            "transfer_encoder": self.transfer_encoder.value,
        }


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    id: int
    subject: str | None = None
    sender: EmailParticipant | None = None
    recipients: frozenset[EmailParticipant] = frozenset()
    contents: tuple[ContentChunk, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    seen: bool | None = None
    size: int | None = None
    sent_date: datetime | None = None
    received_date: datetime | None = None
    transfer_encoder: TransferEncoder = TransferEncoder.UNKNOWN

    @classmethod
    def from_view(cls, view: MessageView, content: MessageContent) -> IncomingMessage:
        return cls(
            id=view.id,
            subject=view.subject,
            sender=view.sender,
            recipients=view.recipients,
            contents=content.contents,
            attachments=content.attachments,
            seen=view.seen,
            size=view.size,
            sent_date=view.sent_date,
            received_date=view.received_date,
            transfer_encoder=view.transfer_encoder,
        )

    def get_content_by_type(self, pattern: str) -> str:
        return _join_by_type(self.contents, pattern)


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """A message ready to be assembled; templates are rendered before it is built."""

    subject: str | None
    recipients: frozenset[EmailParticipant]
    contents: tuple[ContentChunk, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    content_kind: OutgoingContentType = OutgoingContentType.PLAIN
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self) -> None:
        if not self.recipients:
            raise ValidationError("An outgoing message must have at least one recipient")

    @classmethod
    def plain(
        cls,
        subject: str | None,
        text: str,
        recipients: Iterable[EmailParticipant],
        attachments: Iterable[Attachment] = (),
        encoding: str = DEFAULT_ENCODING,
    ) -> OutgoingMessage:
        return cls._with_body(OutgoingContentType.PLAIN, subject, text, recipients, attachments, encoding)

    @classmethod
    def html(
        cls,
        subject: str | None,
        html: str,
        recipients: Iterable[EmailParticipant],
        attachments: Iterable[Attachment] = (),
        encoding: str = DEFAULT_ENCODING,
    ) -> OutgoingMessage:
        return cls._with_body(OutgoingContentType.HTML, subject, html, recipients, attachments, encoding)

    @classmethod
    def templated(
        cls,
        subject: str | None,
        template_path: Path | str,
        params: Mapping[str, Any] | None,
        recipients: Iterable[EmailParticipant],
        attachments: Iterable[Attachment] = (),
        content_kind: OutgoingContentType = OutgoingContentType.HTML,
        encoding: str = DEFAULT_ENCODING,
    ) -> OutgoingMessage:
        from dmail.templates import render_template

        chunk = render_template(template_path, params, content_type=content_kind.with_charset(encoding))
        return cls(
            subject=subject,
            recipients=frozenset(recipients),
            contents=(chunk,),
            attachments=tuple(attachments),
            content_kind=content_kind,
            encoding=encoding,
        )

    @classmethod
    def _with_body(
        cls,
        kind: OutgoingContentType,
        subject: str | None,
        body: str,
        recipients: Iterable[EmailParticipant],
        attachments: Iterable[Attachment],
        encoding: str,
    ) -> OutgoingMessage:
        return cls(
            subject=subject,
            recipients=frozenset(recipients),
            contents=(ContentChunk(content_type=kind.with_charset(encoding), data=body),),
            attachments=tuple(attachments),
            content_kind=kind,
            encoding=encoding,
        )


@dataclass(frozen=True, slots=True)
class PageRequest:
    start: int
    size: int

    def __post_init__(self) -> None:
        for field_name in ("start", "size"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"The page {field_name} must be an integer, got {value!r}")
        if self.start < 0:
            raise ValidationError(f"The page start must not be negative, got {self.start}")
        if self.size < 1:
            raise ValidationError(f"The page size must be positive, got {self.size}")

    @classmethod
    def of(cls, start: int, size: int) -> PageRequest:
        return cls(start=start, size=size)

    @property
    def end(self) -> int:
        return self.start + self.size - 1

    def fetch_range(self, total_count: int) -> tuple[int, int] | None:
        """1-based inclusive bounds clipped to ``total_count``; ``None`` when nothing is left."""
        first = self.start + 1
        last = min(self.end + 1, total_count)
        if first > last:
            return None
        return first, last


@dataclass(frozen=True, slots=True)
class DeleteOutcome:
    message_id: int
    deleted: bool
    reason: str | None = None
