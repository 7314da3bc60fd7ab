from __future__ import annotations


class DMailError(Exception):
    """Base class for every error raised by the library."""


class SessionError(DMailError):
    """Connecting to or authenticating against a mail server failed."""


class FolderOperationError(DMailError):
    """Opening, fetching from or expunging a folder failed."""


class ReadMessageError(DMailError):
    """Reading a message's headers, content or attachments failed."""


class ValidationError(DMailError):
    """Malformed input detected before any transport call."""


class CreateMessageError(DMailError):
    """An outgoing message could not be assembled."""


class TemplateError(CreateMessageError):
    """A message template could not be loaded or rendered."""
