from __future__ import annotations

import pytest
from fakes import FakeFolder, FakeStore

from dmail.errors import FolderOperationError, ValidationError
from dmail.services import MailboxClient
from dmail.transport.base import FolderMode


def test_delete_messages_reports_per_id(mailbox: MailboxClient, inbox: FakeFolder) -> None:
    result = mailbox.delete_messages(None, {2, 999})

    assert result == {2: True, 999: False}
    assert inbox.expunge_calls == 1
    assert inbox.close_calls == 1
    assert inbox.mode is FolderMode.READ_WRITE
    assert [m.subject for m in inbox.messages] == ["Message 1", "Message 3", "Message 4", "Message 5"]


def test_delete_report_keeps_failure_reason(mailbox: MailboxClient, inbox: FakeFolder) -> None:
    inbox.messages[2].fail_on.add("set_flag")

    report = mailbox.delete_messages_report(None, [1, 3])

    assert report[1].deleted is True
    assert report[3].deleted is False
    assert "set_flag failed" in (report[3].reason or "")
    assert inbox.expunge_calls == 1
    assert [m.subject for m in inbox.messages] == ["Message 2", "Message 3", "Message 4", "Message 5"]


def test_delete_single_message(mailbox: MailboxClient, inbox: FakeFolder) -> None:
    assert mailbox.delete_message(None, 2) is True
    assert inbox.message_count() == 4
    assert inbox.expunge_calls == 1

    # ids shift after expunge: 5 no longer exists
    assert mailbox.delete_message(None, 5) is False
    assert inbox.expunge_calls == 1
    assert inbox.close_calls == 2


def test_expunge_failure_raises_and_closes(mailbox: MailboxClient, inbox: FakeFolder) -> None:
    inbox.expunge_error = OSError("EXPUNGE rejected")

    with pytest.raises(FolderOperationError, match="EXPUNGE rejected"):
        mailbox.delete_messages(None, [1])
    assert inbox.close_calls == 1


def test_delete_all_messages(mailbox: MailboxClient, inbox: FakeFolder) -> None:
    result = mailbox.delete_all_messages()

    assert result == {1: True, 2: True, 3: True, 4: True, 5: True}
    assert inbox.messages == []
    assert inbox.expunge_calls == 1
    assert inbox.fetch_calls == [(1, 5)]


def test_delete_all_in_empty_folder(test_logger) -> None:  # noqa: ANN001
    folder = FakeFolder("INBOX", [])
    mailbox = MailboxClient(FakeStore({"INBOX": folder}), logger=test_logger)

    assert mailbox.delete_all_messages() == {}
    assert folder.fetch_calls == []
    assert folder.close_calls == 1


def test_delete_empty_collection(mailbox: MailboxClient, inbox: FakeFolder) -> None:
    assert mailbox.delete_messages(None, []) == {}
    assert inbox.message_count() == 5


@pytest.mark.parametrize("message_ids", [None, [1, 0], [True], ["1"]])
def test_invalid_ids_are_rejected_before_opening(
    mailbox: MailboxClient, store: FakeStore, message_ids: object
) -> None:
    with pytest.raises(ValidationError):
        mailbox.delete_messages(None, message_ids)  # type: ignore[arg-type]
    assert store.opened == []
