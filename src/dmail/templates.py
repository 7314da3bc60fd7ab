from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from dmail.errors import TemplateError
from dmail.messages.models import ContentChunk
from dmail.messages.types import OutgoingContentType


def _environment(template_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "htm", "xml", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_template(
    template_path: Path | str,
    params: Mapping[str, Any] | None = None,
    *,
    content_type: str = OutgoingContentType.HTML.with_charset("UTF-8"),
) -> ContentChunk:
    """Render a Jinja2 template file into a ready-to-send body chunk.

    The template's directory is the loader root, so ``{% include %}`` and
    ``{% extends %}`` resolve against sibling files.
    """
    path = Path(template_path).expanduser()
    env = _environment(path.parent)
    try:
        rendered = env.get_template(path.name).render(**dict(params or {}))
    except jinja2.TemplateNotFound as exc:
        raise TemplateError(f"The template {path} was not found") from exc
    except jinja2.TemplateError as exc:
        raise TemplateError(f"The template {path} couldn't be rendered: {exc}") from exc
    return ContentChunk(content_type=content_type, data=rendered)
