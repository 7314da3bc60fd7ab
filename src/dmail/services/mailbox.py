from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from dmail.converters import convert_to_incoming_message, convert_to_view
from dmail.errors import DMailError, FolderOperationError, ValidationError
from dmail.messages import DeleteOutcome, IncomingMessage, MessageView, PageRequest
from dmail.transport.base import (
    DEFAULT_INBOX_FOLDER_NAME,
    TRANSPORT_ERRORS,
    FolderMode,
    MailFolder,
    MailStore,
    MessageFlag,
    MessageHandle,
)

T = TypeVar("T")

ALL_MESSAGES = PageRequest.of(0, sys.maxsize)


def _validate_id(message_id: int) -> int:
    if isinstance(message_id, bool) or not isinstance(message_id, int) or message_id < 1:
        raise ValidationError(f"A message id must be a positive integer, got {message_id!r}")
    return message_id


class MailboxClient:
    """Paged read and delete operations over one mailbox account.

    Message ids are folder sequence numbers: they are only meaningful until
    the next expunge of that folder.
    """

    def __init__(
        self,
        store: MailStore,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        default_folder: str = DEFAULT_INBOX_FOLDER_NAME,
    ):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.default_folder = default_folder

    @contextmanager
    def open_folder(self, folder_name: str | None, mode: FolderMode) -> Iterator[MailFolder]:
        name = folder_name or self.default_folder
        try:
            folder = self.store.open_folder(name, mode)
        except TRANSPORT_ERRORS as exc:
            raise FolderOperationError(
                f"The folder with the name {name} couldn't be opened because of the following error: {exc}"
            ) from exc
        try:
            yield folder
        finally:
            self._close_folder(folder)

    def _close_folder(self, folder: MailFolder) -> None:
        try:
            folder.close()
        except (DMailError, *TRANSPORT_ERRORS) as exc:
            self.logger.warning(
                "The folder with the name %s couldn't be closed because of the following error: %s",
                folder.name,
                exc,
            )

    def _count(self, folder: MailFolder) -> int:
        try:
            return folder.message_count()
        except TRANSPORT_ERRORS as exc:
            raise FolderOperationError(
                f"Getting a count of messages in the folder with the name {folder.name} "
                f"finished with the error: {exc}"
            ) from exc

    def _fetch_page(self, folder: MailFolder, page_request: PageRequest) -> list[MessageHandle]:
        bounds = page_request.fetch_range(self._count(folder))
        if bounds is None:
            return []
        start, end = bounds
        try:
            return list(folder.fetch(start, end))
        except TRANSPORT_ERRORS as exc:
            raise FolderOperationError(f"The get list message operation has failed: {exc}") from exc

    def _expunge(self, folder: MailFolder) -> None:
        try:
            folder.expunge()
        except TRANSPORT_ERRORS as exc:
            raise FolderOperationError(
                f"The folder with the name {folder.name} couldn't be expunged because of the following error: {exc}"
            ) from exc

    def read(
        self,
        folder_name: str | None,
        page_request: PageRequest,
        mode: FolderMode,
        projector: Callable[[MessageHandle], T],
    ) -> list[T]:
        if not isinstance(page_request, PageRequest):
            raise ValidationError("A page request is required")
        with self.open_folder(folder_name, mode) as folder:
            return [projector(message) for message in self._fetch_page(folder, page_request)]

    def get_total_count(self, folder_name: str | None = None) -> int:
        with self.open_folder(folder_name, FolderMode.READ_ONLY) as folder:
            return self._count(folder)

    def check_messages(self, folder_name: str | None, page_request: PageRequest) -> list[MessageView]:
        return self.read(folder_name, page_request, FolderMode.READ_ONLY, convert_to_view)

    def read_messages(self, folder_name: str | None, page_request: PageRequest) -> list[IncomingMessage]:
        return self.read(folder_name, page_request, FolderMode.READ_WRITE, convert_to_incoming_message)

    def read_message_by_id(self, folder_name: str | None, message_id: int) -> IncomingMessage:
        _validate_id(message_id)
        with self.open_folder(folder_name, FolderMode.READ_WRITE) as folder:
            try:
                message = folder.get_message(message_id)
            except TRANSPORT_ERRORS as exc:
                raise FolderOperationError(
                    f"Reading the message with id={message_id} in the folder with the name {folder.name} "
                    f"finished with the error: {exc}"
                ) from exc
            return convert_to_incoming_message(message)

    def _flag_deleted(self, message_id: int, resolve: Callable[[], MessageHandle]) -> DeleteOutcome:
        try:
            resolve().set_flag(MessageFlag.DELETED, True)
        except TRANSPORT_ERRORS as exc:
            self.logger.warning(
                "The message with id=%s wasn't marked as deleted because of the following error: %s",
                message_id,
                exc,
            )
            return DeleteOutcome(message_id=message_id, deleted=False, reason=str(exc))
        return DeleteOutcome(message_id=message_id, deleted=True)

    def delete_message(self, folder_name: str | None, message_id: int) -> bool:
        _validate_id(message_id)
        with self.open_folder(folder_name, FolderMode.READ_WRITE) as folder:
            outcome = self._flag_deleted(message_id, lambda: folder.get_message(message_id))
            if not outcome.deleted:
                return False
            self._expunge(folder)
        return True

    def delete_messages_report(
        self, folder_name: str | None, message_ids: Iterable[int]
    ) -> dict[int, DeleteOutcome]:
        if message_ids is None:
            raise ValidationError("A collection of message ids is required")
        ids = [_validate_id(message_id) for message_id in message_ids]
        with self.open_folder(folder_name, FolderMode.READ_WRITE) as folder:
            result: dict[int, DeleteOutcome] = {}
            for message_id in ids:
                result[message_id] = self._flag_deleted(
                    message_id, lambda message_id=message_id: folder.get_message(message_id)
                )
            self._expunge(folder)
        return result

    def delete_messages(self, folder_name: str | None, message_ids: Iterable[int]) -> dict[int, bool]:
        report = self.delete_messages_report(folder_name, message_ids)
        return {message_id: outcome.deleted for message_id, outcome in report.items()}

    def delete_all_messages_report(self, folder_name: str | None = None) -> dict[int, DeleteOutcome]:
        with self.open_folder(folder_name, FolderMode.READ_WRITE) as folder:
            result: dict[int, DeleteOutcome] = {}
            for message in self._fetch_page(folder, ALL_MESSAGES):
                result[message.number] = self._flag_deleted(message.number, lambda message=message: message)
            self._expunge(folder)
        return result

    def delete_all_messages(self, folder_name: str | None = None) -> dict[int, bool]:
        report = self.delete_all_messages_report(folder_name)
        return {message_id: outcome.deleted for message_id, outcome in report.items()}
