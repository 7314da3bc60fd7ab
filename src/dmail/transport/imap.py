from __future__ import annotations

import email
import imaplib
import logging
import re
import ssl
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from email.message import Message
from email.utils import getaddresses, parsedate_to_datetime
from typing import Any

from dateutil import parser as dt_parser

from dmail.config import EncryptionType, ImapConfig
from dmail.errors import FolderOperationError, SessionError
from dmail.mime.parts import EmailPart

from .base import FolderMode, MessageFlag

logger = logging.getLogger(__name__)

ENVELOPE_ITEMS = "(FLAGS RFC822.SIZE INTERNALDATE BODY.PEEK[HEADER])"

_FETCH_START_RE = re.compile(rb"^(\d+) \(")
_FLAGS_RE = re.compile(rb"FLAGS \(([^)]*)\)", re.IGNORECASE)
_SIZE_RE = re.compile(rb"RFC822\.SIZE (\d+)", re.IGNORECASE)
_INTERNALDATE_RE = re.compile(rb'INTERNALDATE "([^"]+)"', re.IGNORECASE)


@dataclass(slots=True)
class FetchedEnvelope:
    number: int
    meta: bytes = b""
    literal: bytes = b""
    flags: set[str] = field(default_factory=set)
    size: int | None = None
    internal_date: datetime | None = None

    def finalize(self) -> FetchedEnvelope:
        flags_match = _FLAGS_RE.search(self.meta)
        if flags_match:
            self.flags = {flag.lower() for flag in flags_match.group(1).decode("ascii", "replace").split()}
        size_match = _SIZE_RE.search(self.meta)
        if size_match:
            self.size = int(size_match.group(1))
        date_match = _INTERNALDATE_RE.search(self.meta)
        if date_match:
            self.internal_date = _parse_internal_date(date_match.group(1).decode("ascii", "replace"))
        return self


def _parse_internal_date(value: str) -> datetime | None:
    try:
        return dt_parser.parse(value)
    except (ValueError, OverflowError):
        logger.debug("Unparsable INTERNALDATE %r", value)
        return None


def parse_fetch_response(data: list[Any]) -> dict[int, FetchedEnvelope]:
    """Group an ``imaplib`` FETCH response by message sequence number.

    Literal items arrive as ``(meta, literal)`` tuples; attributes the server
    sends after a literal arrive as separate ``bytes`` items.
    """
    envelopes: dict[int, FetchedEnvelope] = {}
    current: FetchedEnvelope | None = None
    for item in data:
        if item is None:
            continue
        if isinstance(item, tuple):
            meta, literal = item[0], item[1]
            match = _FETCH_START_RE.match(meta)
            if match is None:
                continue
            current = FetchedEnvelope(number=int(match.group(1)), meta=meta, literal=literal)
            envelopes[current.number] = current
            continue
        match = _FETCH_START_RE.match(item)
        if match is not None:
            current = FetchedEnvelope(number=int(match.group(1)), meta=item)
            envelopes[current.number] = current
        elif current is not None:
            current.meta += item
    return {number: envelope.finalize() for number, envelope in envelopes.items()}


def quote_mailbox(name: str) -> str:
    if name.startswith('"') and name.endswith('"'):
        return name
    if re.search(r'[\s"\\(){%*]', name):
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return name


def _check(status: str, data: Any, command: str) -> None:
    if status != "OK":
        raise imaplib.IMAP4.error(f"{command} failed: {data!r}")


class ImapMessage:
    def __init__(self, folder: ImapFolder, number: int, envelope: FetchedEnvelope | None = None):
        self._folder = folder
        self._number = number
        self._envelope = envelope
        self._headers: Message | None = None
        self._part: EmailPart | None = None

    @property
    def number(self) -> int:
        return self._number

    def _get_envelope(self) -> FetchedEnvelope:
        if self._envelope is None:
            envelopes = self._folder.fetch_envelopes(self._number, self._number)
            if self._number not in envelopes:
                raise imaplib.IMAP4.error(f"Message {self._number} was not returned by the server")
            self._envelope = envelopes[self._number]
        return self._envelope

    def _get_headers(self) -> Message:
        if self._headers is None:
            self._headers = email.message_from_bytes(self._get_envelope().literal)
        return self._headers

    def get_subject(self) -> str | None:
        return self.get_header("Subject")

    def get_from(self) -> list[tuple[str, str]]:
        return getaddresses([str(v) for v in self._get_headers().get_all("From", [])])

    def get_recipients(self) -> list[tuple[str, str]]:
        return getaddresses([str(v) for v in self._get_headers().get_all("To", [])])

    def get_header(self, name: str) -> str | None:
        value = self._get_headers().get(name)
        if value is None:
            return None
        # unfold continuation lines
        return "".join(str(value).splitlines())

    def get_sent_date(self) -> datetime | None:
        value = self.get_header("Date")
        if not value:
            return None
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None

    def get_received_date(self) -> datetime | None:
        return self._get_envelope().internal_date

    def get_size(self) -> int | None:
        return self._get_envelope().size

    def is_flag_set(self, flag: MessageFlag) -> bool:
        return flag.value.lower() in self._get_envelope().flags

    def set_flag(self, flag: MessageFlag, value: bool) -> None:
        self._folder.store_flag(self._number, flag, value)
        if self._envelope is not None:
            if value:
                self._envelope.flags.add(flag.value.lower())
            else:
                self._envelope.flags.discard(flag.value.lower())

    def get_part(self) -> EmailPart:
        if self._part is None:
            self._part = EmailPart(email.message_from_bytes(self._folder.fetch_body(self._number)))
        return self._part

    def __repr__(self) -> str:
        return f"ImapMessage({self._folder.name!r}, {self._number})"


class ImapFolder:
    def __init__(self, client: Any, name: str, mode: FolderMode, message_count: int):
        self._client = client
        self._name = name
        self.mode = mode
        self._message_count = message_count

    @property
    def name(self) -> str:
        return self._name

    def message_count(self) -> int:
        return self._message_count

    def _check_range(self, start: int, end: int) -> None:
        if start < 1 or end > self._message_count or start > end:
            raise IndexError(
                f"Message range {start}:{end} is outside of 1:{self._message_count} in folder {self._name}"
            )

    def fetch_envelopes(self, start: int, end: int) -> dict[int, FetchedEnvelope]:
        status, data = self._client.fetch(f"{start}:{end}", ENVELOPE_ITEMS)
        _check(status, data, "FETCH")
        return parse_fetch_response(data)

    def fetch_body(self, number: int) -> bytes:
        items = "(BODY.PEEK[])" if self.mode is FolderMode.READ_ONLY else "(BODY[])"
        status, data = self._client.fetch(str(number), items)
        _check(status, data, "FETCH")
        envelope = parse_fetch_response(data).get(number)
        if envelope is None or not envelope.literal:
            raise imaplib.IMAP4.error(f"The body of message {number} was not returned by the server")
        return envelope.literal

    def store_flag(self, number: int, flag: MessageFlag, value: bool) -> None:
        if self.mode is FolderMode.READ_ONLY:
            raise imaplib.IMAP4.readonly(f"Folder {self._name} is opened read-only")
        self._check_range(number, number)
        status, data = self._client.store(str(number), "+FLAGS" if value else "-FLAGS", f"({flag.value})")
        _check(status, data, "STORE")

    def fetch(self, start: int, end: int) -> list[ImapMessage]:
        self._check_range(start, end)
        envelopes = self.fetch_envelopes(start, end)
        return [ImapMessage(self, number, envelopes.get(number)) for number in range(start, end + 1)]

    def get_message(self, number: int) -> ImapMessage:
        self._check_range(number, number)
        return ImapMessage(self, number)

    def expunge(self) -> None:
        status, data = self._client.expunge()
        _check(status, data, "EXPUNGE")
        removed = len([item for item in data if item])
        self._message_count = max(self._message_count - removed, 0)

    def close(self) -> None:
        # CLOSE would silently expunge \Deleted messages; UNSELECT leaves them alone
        if "UNSELECT" in getattr(self._client, "capabilities", ()):
            status, data = self._client.unselect()
            _check(status, data, "UNSELECT")
        elif self.mode is FolderMode.READ_ONLY:
            status, data = self._client.close()
            _check(status, data, "CLOSE")
        else:
            status, data = self._client.select(quote_mailbox(self._name), readonly=True)
            _check(status, data, "EXAMINE")
            status, data = self._client.close()
            _check(status, data, "CLOSE")


def create_imap_client(config: ImapConfig) -> imaplib.IMAP4:
    if config.encryption is EncryptionType.SSL:
        return imaplib.IMAP4_SSL(
            config.host, config.port, ssl_context=ssl.create_default_context(), timeout=config.timeout_sec
        )
    client = imaplib.IMAP4(config.host, config.port, timeout=config.timeout_sec)
    if config.encryption is EncryptionType.STARTTLS:
        client.starttls(ssl_context=ssl.create_default_context())
    return client


class ImapStore:
    """One logged-in IMAP account; opens one folder at a time."""

    def __init__(
        self,
        config: ImapConfig,
        client_factory: Callable[[ImapConfig], Any] = create_imap_client,
    ):
        self.config = config
        self._client_factory = client_factory
        self._client: Any | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> ImapStore:
        if self._client is not None:
            return self
        logger.info("Connect to mailbox: %s@%s:%s", self.config.username, self.config.host, self.config.port)
        try:
            client = self._client_factory(self.config)
            client.login(self.config.username, self.config.password)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise SessionError(f"Creating session finished with the error: {exc}") from exc
        self._client = client
        return self

    def open_folder(self, name: str, mode: FolderMode) -> ImapFolder:
        if self._client is None:
            raise FolderOperationError("The store is not connected")
        logger.debug("Try to open folder: %s (%s)", name, mode.value)
        try:
            status, data = self._client.select(quote_mailbox(name), readonly=mode is FolderMode.READ_ONLY)
            _check(status, data, "SELECT")
            count = int(data[0]) if data and data[0] else 0
        except (imaplib.IMAP4.error, OSError, ValueError) as exc:
            raise FolderOperationError(
                f"The folder with the name {name} couldn't be opened because of the following error: {exc}"
            ) from exc
        return ImapFolder(self._client, name, mode, count)

    def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.logout()
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning("Logout from %s finished with the error: %s", self.config.host, exc)

    def __enter__(self) -> ImapStore:
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()
