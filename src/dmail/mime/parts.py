from __future__ import annotations

from email.message import Message
from typing import Protocol, Union, runtime_checkable

PartContent = Union[str, bytes, "MessagePart", list["MessagePart"], None]


@runtime_checkable
class MessagePart(Protocol):
    """One node of a MIME tree as the content walker sees it."""

    def get_disposition(self) -> str | None: ...

    def get_content_type(self) -> str: ...

    def get_filename(self) -> str | None: ...

    def get_content(self) -> PartContent: ...

    def write_to(self) -> bytes: ...


class EmailPart:
    """:class:`MessagePart` view over a parsed :class:`email.message.Message`.

    ``get_content`` returns decoded text for ``text/*`` leaves, the embedded
    message for ``message/rfc822``, the ordered children for multiparts and
    the transfer-decoded bytes for anything else.
    """

    def __init__(self, message: Message):
        self.message = message

    def get_disposition(self) -> str | None:
        return self.message.get_content_disposition()

    def get_content_type(self) -> str:
        header = self.message.get("Content-Type")
        if header is None:
            return self.message.get_content_type()
        return " ".join(str(header).split())

    def get_filename(self) -> str | None:
        return self.message.get_filename()

    def get_content(self) -> PartContent:
        if self.message.is_multipart():
            payload = self.message.get_payload()
            if self.message.get_content_maintype() == "message":
                return EmailPart(payload[0]) if payload else None
            return [EmailPart(child) for child in payload]

        data = self.message.get_payload(decode=True)
        if self.message.get_content_maintype() != "text":
            return data
        if data is None:
            return ""
        charset = self.message.get_content_charset() or "utf-8"
        try:
            return data.decode(charset, errors="replace")
        except LookupError:
            return data.decode("utf-8", errors="replace")

    def write_to(self) -> bytes:
        return self.message.as_bytes()

    def __repr__(self) -> str:
        return f"EmailPart({self.get_content_type()!r})"
