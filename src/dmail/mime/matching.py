from __future__ import annotations

import re
from dataclasses import dataclass
from email.header import decode_header

_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
CONTENT_TYPE_PATTERN = re.compile(rf"^\s*({_TOKEN})\s*/\s*({_TOKEN})\s*(?:;.*)?$", re.DOTALL)


@dataclass(frozen=True, slots=True)
class MimeType:
    primary: str
    subtype: str

    def match(self, other: MimeType) -> bool:
        if self.primary.lower() != other.primary.lower():
            return False
        if self.subtype == "*" or other.subtype == "*":
            return True
        return self.subtype.lower() == other.subtype.lower()

    @property
    def base(self) -> str:
        return f"{self.primary.lower()}/{self.subtype.lower()}"


def parse_mime_type(value: str | None) -> MimeType | None:
    if not value:
        return None
    match = CONTENT_TYPE_PATTERN.match(value)
    if match is None:
        return None
    return MimeType(primary=match.group(1), subtype=match.group(2))


def is_mime_type(content_type: str | None, pattern: str | None) -> bool:
    """Match ``content_type`` against ``pattern`` (``type/subtype``, ``*`` allowed as subtype).

    Parameters are ignored on both sides. A pattern that is not a structured
    content type is looked up as a plain substring of ``content_type``.
    """
    if not pattern:
        return False
    expected = parse_mime_type(pattern)
    if expected is None:
        return bool(content_type) and pattern in content_type
    actual = parse_mime_type(content_type)
    if actual is None:
        return False
    return expected.match(actual)


def decode_header_value(value: object) -> str:
    if value is None:
        return ""
    decoded = decode_header(str(value))
    parts: list[str] = []
    for chunk, encoding in decoded:
        if isinstance(chunk, bytes):
            try:
                parts.append(chunk.decode(encoding or "utf-8", errors="replace"))
            except LookupError:
                parts.append(chunk.decode("utf-8", errors="replace"))
        else:
            parts.append(chunk)
    return "".join(parts)
