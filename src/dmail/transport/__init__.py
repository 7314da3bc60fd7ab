from .base import (
    DEFAULT_INBOX_FOLDER_NAME,
    TRANSPORT_ERRORS,
    FolderMode,
    MailFolder,
    MailStore,
    MessageFlag,
    MessageHandle,
)

__all__ = [
    "DEFAULT_INBOX_FOLDER_NAME",
    "TRANSPORT_ERRORS",
    "FolderMode",
    "MailFolder",
    "MailStore",
    "MessageFlag",
    "MessageHandle",
]
