from dmail.errors import (
    CreateMessageError,
    DMailError,
    FolderOperationError,
    ReadMessageError,
    SessionError,
    TemplateError,
    ValidationError,
)
from dmail.messages import (
    Attachment,
    AttachmentType,
    ContentChunk,
    DeleteOutcome,
    EmailParticipant,
    IncomingMessage,
    MessageContent,
    MessageView,
    OutgoingContentType,
    OutgoingMessage,
    PageRequest,
    TransferEncoder,
)
from dmail.services.mailbox import MailboxClient

__version__ = "1.0.0"

__all__ = [
    "Attachment",
    "AttachmentType",
    "ContentChunk",
    "CreateMessageError",
    "DMailError",
    "DeleteOutcome",
    "EmailParticipant",
    "FolderOperationError",
    "IncomingMessage",
    "MailboxClient",
    "MessageContent",
    "MessageView",
    "OutgoingContentType",
    "OutgoingMessage",
    "PageRequest",
    "ReadMessageError",
    "SessionError",
    "TemplateError",
    "TransferEncoder",
    "ValidationError",
]
