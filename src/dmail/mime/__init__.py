from .matching import MimeType, decode_header_value, is_mime_type, parse_mime_type
from .parts import EmailPart, MessagePart

__all__ = [
    "EmailPart",
    "MessagePart",
    "MimeType",
    "decode_header_value",
    "is_mime_type",
    "parse_mime_type",
]
