from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from dmail.errors import ValidationError
from dmail.transport.base import DEFAULT_INBOX_FOLDER_NAME


class EncryptionType(str, Enum):
    SSL = "ssl"
    STARTTLS = "starttls"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> EncryptionType:
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(item.value for item in cls)
            raise ValidationError(f"Unsupported encryption type {value!r}, expected one of: {allowed}") from exc


@dataclass(frozen=True, slots=True)
class ImapConfig:
    host: str
    username: str
    password: str
    port: int = 993
    encryption: EncryptionType = EncryptionType.SSL
    timeout_sec: float = 30.0
    folder: str = DEFAULT_INBOX_FOLDER_NAME


@dataclass(frozen=True, slots=True)
class SmtpConfig:
    host: str
    username: str
    password: str
    port: int = 465
    encryption: EncryptionType = EncryptionType.SSL
    timeout_sec: float = 30.0


@dataclass(slots=True)
class Settings:
    root_dir: Path
    logs_dir: Path
    exports_dir: Path
    template_dir: Path
    imap: ImapConfig | None = None
    smtp: SmtpConfig | None = None

    @classmethod
    def load(cls, base_dir: Path | None = None) -> Settings:
        load_dotenv(find_dotenv(usecwd=True), override=False)

        root_env = os.getenv("DMAIL_HOME")
        root_dir = Path(root_env).expanduser().resolve() if root_env else (base_dir or Path.cwd()).resolve()

        logs_dir = Path(os.getenv("DMAIL_LOG_DIR", root_dir / "logs")).expanduser().resolve()
        exports_dir = Path(os.getenv("DMAIL_EXPORT_DIR", root_dir / "exports")).expanduser().resolve()
        template_dir = Path(os.getenv("DMAIL_TEMPLATE_DIR", root_dir / "templates")).expanduser().resolve()

        return cls(
            root_dir=root_dir,
            logs_dir=logs_dir,
            exports_dir=exports_dir,
            template_dir=template_dir,
            imap=cls._load_imap_config(),
            smtp=cls._load_smtp_config(),
        )

    @staticmethod
    def _load_imap_config() -> ImapConfig | None:
        host = os.getenv("DMAIL_IMAP_HOST")
        user = os.getenv("DMAIL_IMAP_USER")
        if not host or not user:
            return None
        return ImapConfig(
            host=host,
            username=user,
            password=os.getenv("DMAIL_IMAP_PASSWORD", ""),
            port=_port_env("DMAIL_IMAP_PORT", 993),
            encryption=EncryptionType.parse(os.getenv("DMAIL_IMAP_ENCRYPTION", "ssl")),
            timeout_sec=_float_env("DMAIL_IMAP_TIMEOUT_SEC", 30.0),
            folder=os.getenv("DMAIL_IMAP_FOLDER", DEFAULT_INBOX_FOLDER_NAME),
        )

    @staticmethod
    def _load_smtp_config() -> SmtpConfig | None:
        host = os.getenv("DMAIL_SMTP_HOST")
        user = os.getenv("DMAIL_SMTP_USER")
        if not host or not user:
            return None
        return SmtpConfig(
            host=host,
            username=user,
            password=os.getenv("DMAIL_SMTP_PASSWORD", ""),
            port=_port_env("DMAIL_SMTP_PORT", 465),
            encryption=EncryptionType.parse(os.getenv("DMAIL_SMTP_ENCRYPTION", "ssl")),
            timeout_sec=_float_env("DMAIL_SMTP_TIMEOUT_SEC", 30.0),
        )

    def ensure_directories(self) -> None:
        for path in [self.root_dir, self.logs_dir, self.exports_dir]:
            path.mkdir(parents=True, exist_ok=True)


def _port_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from exc
    if not 0 < value < 65536:
        raise ValidationError(f"{name} must be a valid port number, got {value}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from exc
