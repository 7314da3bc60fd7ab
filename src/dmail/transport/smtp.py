from __future__ import annotations

import logging
import smtplib
import ssl
from collections.abc import Callable

from dmail.config import EncryptionType, SmtpConfig
from dmail.converters.outgoing import build_mime_message
from dmail.errors import SessionError
from dmail.messages import EmailParticipant, OutgoingMessage

logger = logging.getLogger(__name__)


def create_smtp_client(config: SmtpConfig) -> smtplib.SMTP:
    if config.encryption is EncryptionType.SSL:
        return smtplib.SMTP_SSL(
            config.host, config.port, timeout=config.timeout_sec, context=ssl.create_default_context()
        )
    client = smtplib.SMTP(config.host, config.port, timeout=config.timeout_sec)
    if config.encryption is EncryptionType.STARTTLS:
        client.starttls(context=ssl.create_default_context())
    return client


class SmtpSender:
    def __init__(
        self,
        config: SmtpConfig,
        client_factory: Callable[[SmtpConfig], smtplib.SMTP] = create_smtp_client,
    ):
        self.config = config
        self._client_factory = client_factory

    @property
    def principal(self) -> EmailParticipant:
        return EmailParticipant.of(self.config.username)

    def send(self, message: OutgoingMessage, sender: EmailParticipant | None = None) -> None:
        mime = build_mime_message(message, sender or self.principal)
        recipients = sorted(p.email for p in message.recipients)
        logger.info("Sending message %r to %s recipient(s)", message.subject, len(recipients))
        try:
            with self._client_factory(self.config) as client:
                if self.config.password:
                    client.login(self.config.username, self.config.password)
                client.send_message(mime, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as exc:
            raise SessionError(f"Sending the message finished with the error: {exc}") from exc
