from __future__ import annotations

from enum import Enum

from dmail.mime.matching import is_mime_type


class AttachmentType(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    XLS = "xls"
    XLSX = "xlsx"
    PPT = "ppt"
    PPTX = "pptx"
    RTF = "rtf"
    ARCHIVE = "archive"
    CSV = "csv"
    CALENDAR = "calendar"
    TEXT = "text"
    JSON = "json"
    XML = "xml"
    BINARY = "binary"
    UNKNOWN = "unknown"

    @classmethod
    def find(cls, content_type: str | None) -> AttachmentType:
        if not content_type:
            return cls.UNKNOWN
        for kind, patterns in ATTACHMENT_PATTERNS:
            if any(is_mime_type(content_type, pattern) for pattern in patterns):
                return kind
        return cls.UNKNOWN


ATTACHMENT_PATTERNS: tuple[tuple[AttachmentType, tuple[str, ...]], ...] = (
    (AttachmentType.IMAGE, ("image/*",)),
    (AttachmentType.AUDIO, ("audio/*",)),
    (AttachmentType.VIDEO, ("video/*",)),
    (AttachmentType.PDF, ("application/pdf", "application/x-pdf")),
    (AttachmentType.DOC, ("application/msword",)),
    (AttachmentType.DOCX, ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",)),
    (AttachmentType.XLS, ("application/vnd.ms-excel",)),
    (AttachmentType.XLSX, ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",)),
    (AttachmentType.PPT, ("application/vnd.ms-powerpoint",)),
    (AttachmentType.PPTX, ("application/vnd.openxmlformats-officedocument.presentationml.presentation",)),
    (AttachmentType.RTF, ("application/rtf", "text/rtf")),
    (
        AttachmentType.ARCHIVE,
        (
            "application/zip",
            "application/x-zip-compressed",
            "application/gzip",
            "application/x-gzip",
            "application/x-tar",
            "application/x-7z-compressed",
            "application/vnd.rar",
            "application/x-rar-compressed",
        ),
    ),
    (AttachmentType.CSV, ("text/csv",)),
    (AttachmentType.CALENDAR, ("text/calendar",)),
    (AttachmentType.TEXT, ("text/plain",)),
    (AttachmentType.JSON, ("application/json",)),
    (AttachmentType.XML, ("application/xml", "text/xml")),
    (AttachmentType.BINARY, ("application/octet-stream",)),
)


class TransferEncoder(str, Enum):
    SEVEN_BIT = "7bit"
    EIGHT_BIT = "8bit"
    BINARY = "binary"
    BASE64 = "base64"
    QUOTED_PRINTABLE = "quoted-printable"
    X_UUENCODE = "x-uuencode"
    UNKNOWN = "unknown"

    @classmethod
    def for_name(cls, name: str | None) -> TransferEncoder:
        if not name:
            return cls.UNKNOWN
        normalized = name.strip().lower()
        for encoder in cls:
            if encoder.value == normalized:
                return encoder
        return cls.UNKNOWN


class OutgoingContentType(str, Enum):
    PLAIN = "text/plain"
    HTML = "text/html"

    def with_charset(self, encoding: str) -> str:
        return f"{self.value}; charset={encoding}"
