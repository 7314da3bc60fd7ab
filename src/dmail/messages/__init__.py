from .models import (
    DEFAULT_ENCODING,
    Attachment,
    ContentAndAttachments,
    ContentChunk,
    DeleteOutcome,
    EmailParticipant,
    IncomingMessage,
    MessageContent,
    MessageView,
    OutgoingMessage,
    PageRequest,
)
from .types import AttachmentType, OutgoingContentType, TransferEncoder

__all__ = [
    "DEFAULT_ENCODING",
    "Attachment",
    "AttachmentType",
    "ContentAndAttachments",
    "ContentChunk",
    "DeleteOutcome",
    "EmailParticipant",
    "IncomingMessage",
    "MessageContent",
    "MessageView",
    "OutgoingContentType",
    "OutgoingMessage",
    "PageRequest",
    "TransferEncoder",
]
