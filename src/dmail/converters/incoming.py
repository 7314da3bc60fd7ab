from __future__ import annotations

from dmail.errors import ReadMessageError
from dmail.messages import IncomingMessage
from dmail.transport.base import TRANSPORT_ERRORS, MessageHandle

from .content import extract
from .view import convert_to_view


def convert_to_incoming_message(message: MessageHandle) -> IncomingMessage:
    view = convert_to_view(message)
    try:
        part = message.get_part()
    except TRANSPORT_ERRORS as exc:
        raise ReadMessageError(f"The body of message {message.number} couldn't be fetched: {exc}") from exc
    return IncomingMessage.from_view(view, extract(part))
