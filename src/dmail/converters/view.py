from __future__ import annotations

import logging

from dmail.errors import ReadMessageError
from dmail.messages import EmailParticipant, MessageView, TransferEncoder
from dmail.mime.matching import decode_header_value
from dmail.transport.base import TRANSPORT_ERRORS, MessageFlag, MessageHandle

logger = logging.getLogger(__name__)

CONTENT_TRANSFER_ENCODING_HDR = "Content-Transfer-Encoding"
CONTENT_LENGTH_HDR = "Content-Length"


def to_participant(name: str | None, address: str | None) -> EmailParticipant | None:
    if not address:
        return None
    return EmailParticipant.of(address, decode_header_value(name) if name else None)


def get_recipients(message: MessageHandle) -> frozenset[EmailParticipant]:
    try:
        addresses = message.get_recipients()
    except TRANSPORT_ERRORS as exc:
        raise ReadMessageError(f"The attempt to get recipients of the message has failed: {exc}") from exc
    participants = (to_participant(name, address) for name, address in addresses)
    return frozenset(p for p in participants if p is not None)


def convert_to_view(message: MessageHandle) -> MessageView:
    recipients = get_recipients(message)

    try:
        raw_subject = message.get_subject()
    except TRANSPORT_ERRORS as exc:
        raise ReadMessageError(f"The attempt to get the subject of the message has failed: {exc}") from exc
    subject = decode_header_value(raw_subject) if raw_subject is not None else None

    try:
        senders = message.get_from()
    except TRANSPORT_ERRORS as exc:
        raise ReadMessageError(f"The attempt to get senders of the message has failed: {exc}") from exc
    # only the first From address is kept
    sender = to_participant(*senders[0]) if senders else None

    seen: bool | None = None
    try:
        seen = message.is_flag_set(MessageFlag.SEEN)
    except TRANSPORT_ERRORS as exc:
        logger.warning("It is impossible to determine whether message %s has been seen: %s", message.number, exc)

    try:
        transfer_encoder = TransferEncoder.for_name(message.get_header(CONTENT_TRANSFER_ENCODING_HDR))
        size = message.get_size()
        if size is None:
            size = _content_length(message)
        sent_date = message.get_sent_date()
        received_date = message.get_received_date()
    except TRANSPORT_ERRORS as exc:
        raise ReadMessageError(f"The attempt to get metadata of the message has failed: {exc}") from exc

    return MessageView(
        id=message.number,
        subject=subject,
        sender=sender,
        recipients=recipients,
        seen=seen,
        size=size,
        sent_date=sent_date,
        received_date=received_date,
        transfer_encoder=transfer_encoder,
    )


def _content_length(message: MessageHandle) -> int | None:
    raw = message.get_header(CONTENT_LENGTH_HDR)
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw.strip())
