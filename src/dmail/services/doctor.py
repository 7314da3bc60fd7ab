from __future__ import annotations

import platform
import sys
from collections.abc import Callable
from typing import Any

from dmail.config import ImapConfig, Settings
from dmail.errors import DMailError
from dmail.transport.base import TRANSPORT_ERRORS
from dmail.transport.imap import ImapStore

from .mailbox import MailboxClient


def run_doctor_checks(
    settings: Settings,
    store_factory: Callable[[ImapConfig], Any] = ImapStore,
) -> list[dict[str, str]]:
    checks: list[dict[str, str]] = []

    checks.append(
        {
            "check": "python_version",
            "status": "ok" if sys.version_info >= (3, 11) else "warn",
            "detail": platform.python_version(),
        }
    )

    checks.append(
        {
            "check": "template_dir",
            "status": "ok" if settings.template_dir.exists() else "warn",
            "detail": str(settings.template_dir),
        }
    )

    if settings.imap is None:
        checks.append({"check": "imap", "status": "warn", "detail": "IMAP account is not configured"})
    else:
        account = settings.imap
        try:
            with store_factory(account) as store:
                count = MailboxClient(store).get_total_count(account.folder)
            checks.append(
                {
                    "check": "imap",
                    "status": "ok",
                    "detail": f"{account.username}@{account.host}:{account.port} {account.folder}={count}",
                }
            )
        except (DMailError, *TRANSPORT_ERRORS) as exc:
            checks.append({"check": "imap", "status": "warn", "detail": str(exc)})

    if settings.smtp is None:
        checks.append({"check": "smtp", "status": "warn", "detail": "SMTP account is not configured"})
    else:
        checks.append(
            {
                "check": "smtp",
                "status": "ok",
                "detail": f"{settings.smtp.username}@{settings.smtp.host}:{settings.smtp.port}",
            }
        )

    return checks
