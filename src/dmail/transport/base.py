from __future__ import annotations

import email.errors
import imaplib
import smtplib
from datetime import datetime
from enum import Enum
from typing import Protocol

from dmail.mime.parts import MessagePart

DEFAULT_INBOX_FOLDER_NAME = "INBOX"

# Low-level failures a transport call may raise. IndexError/KeyError (via
# LookupError) signal a message number the folder does not hold.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    imaplib.IMAP4.error,
    smtplib.SMTPException,
    email.errors.MessageError,
    OSError,
    LookupError,
    ValueError,
)


class FolderMode(str, Enum):
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"


class MessageFlag(str, Enum):
    SEEN = "\\Seen"
    DELETED = "\\Deleted"
    ANSWERED = "\\Answered"
    FLAGGED = "\\Flagged"
    DRAFT = "\\Draft"


class MessageHandle(Protocol):
    @property
    def number(self) -> int: ...

    def get_subject(self) -> str | None: ...

    def get_from(self) -> list[tuple[str, str]]: ...

    def get_recipients(self) -> list[tuple[str, str]]: ...

    def get_header(self, name: str) -> str | None: ...

    def get_sent_date(self) -> datetime | None: ...

    def get_received_date(self) -> datetime | None: ...

    def get_size(self) -> int | None: ...

    def is_flag_set(self, flag: MessageFlag) -> bool: ...

    def set_flag(self, flag: MessageFlag, value: bool) -> None: ...

    def get_part(self) -> MessagePart: ...


class MailFolder(Protocol):
    @property
    def name(self) -> str: ...

    def message_count(self) -> int: ...

    def fetch(self, start: int, end: int) -> list[MessageHandle]: ...

    def get_message(self, number: int) -> MessageHandle: ...

    def expunge(self) -> None: ...

    def close(self) -> None: ...


class MailStore(Protocol):
    def open_folder(self, name: str, mode: FolderMode) -> MailFolder: ...
