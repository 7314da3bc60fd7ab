from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from fakes import FakeFolder, FakeMessage, FakeStore

from dmail.config import Settings
from dmail.core.logging import CorrelationIdFilter
from dmail.services import MailboxClient


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path) -> None:  # noqa: ANN001
    for name in [
        "DMAIL_HOME",
        "DMAIL_LOG_DIR",
        "DMAIL_EXPORT_DIR",
        "DMAIL_TEMPLATE_DIR",
        "DMAIL_IMAP_HOST",
        "DMAIL_IMAP_USER",
        "DMAIL_IMAP_PASSWORD",
        "DMAIL_IMAP_PORT",
        "DMAIL_IMAP_ENCRYPTION",
        "DMAIL_IMAP_FOLDER",
        "DMAIL_IMAP_TIMEOUT_SEC",
        "DMAIL_SMTP_HOST",
        "DMAIL_SMTP_USER",
        "DMAIL_SMTP_PASSWORD",
        "DMAIL_SMTP_PORT",
        "DMAIL_SMTP_ENCRYPTION",
        "DMAIL_SMTP_TIMEOUT_SEC",
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    s = Settings.load(base_dir=root)
    s.ensure_directories()
    return s


@pytest.fixture()
def test_logger() -> logging.Logger:
    logger = logging.getLogger("dmail-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)
    return logger


@pytest.fixture()
def inbox() -> FakeFolder:
    return FakeFolder("INBOX", [FakeMessage(subject=f"Message {i}") for i in range(1, 6)])


@pytest.fixture()
def store(inbox: FakeFolder) -> FakeStore:
    return FakeStore({"INBOX": inbox})


@pytest.fixture()
def mailbox(store: FakeStore, test_logger: logging.Logger) -> MailboxClient:
    return MailboxClient(store, logger=test_logger)


@pytest.fixture()
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        if any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)
