from .content import extract, get_attachment
from .incoming import convert_to_incoming_message
from .outgoing import build_mime_message, convert_attachment_part, convert_body_part, to_parts
from .view import convert_to_view, get_recipients

__all__ = [
    "build_mime_message",
    "convert_attachment_part",
    "convert_body_part",
    "convert_to_incoming_message",
    "convert_to_view",
    "extract",
    "get_attachment",
    "get_recipients",
    "to_parts",
]
