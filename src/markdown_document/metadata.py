"""Metadata header parsing and document metadata resolution."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from .models import DocumentMetadata
from .syntax import frontmatter_end
from .utils import title_from_filename

logger = logging.getLogger(__name__)

HeaderStatus = Literal["missing", "unclosed", "invalid", "ok"]


@dataclass(frozen=True, slots=True)
class Frontmatter:
    status: HeaderStatus
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    end_line: int | None = None
    error: str | None = None

    @property
    def warning(self) -> str | None:
        if self.status == "invalid":
            return f"Invalid metadata header ignored: {self.error}"
        if self.status == "unclosed":
            return "Metadata header is not closed; treated as body text"
        return None


def split_frontmatter(text: str) -> Frontmatter:
    """Separate a leading YAML metadata header from the body.

    A closed header is always stripped, even when its YAML is invalid; an
    unclosed header is left in place.
    """

    lines = text.split("\n")
    if not lines or lines[0].rstrip() != "---":
        return Frontmatter(status="missing", body=text)
    end = frontmatter_end(lines)
    if end is None:
        return Frontmatter(status="unclosed", body=text)

    raw = "\n".join(lines[1:end])
    body = "\n".join(lines[end + 1 :]).lstrip("\n")
    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as exc:
        problem = getattr(exc, "problem", None) or str(exc).splitlines()[0]
        logger.debug("Metadata header failed to parse: %s", exc)
        return Frontmatter(status="invalid", body=body, end_line=end, error=problem)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return Frontmatter(
            status="invalid",
            body=body,
            end_line=end,
            error=f"expected a mapping, got {type(data).__name__}",
        )
    return Frontmatter(status="ok", body=body, data=data, end_line=end)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value if item is not None and str(item).strip()]
        return ", ".join(items) or None
    text = str(value).strip()
    return text or None


def _first(data: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = _text(data.get(key))
        if value is not None:
            return value
    return None


def resolve_metadata(
    data: dict[str, Any],
    source_path: Path | None,
    *,
    title: str | None = None,
    author: str | None = None,
    language: str | None = None,
    chapter_count: int = 0,
    word_count: int = 0,
    image_count: int = 0,
) -> DocumentMetadata:
    resolved_title = title or _first(data, "title")
    if not resolved_title:
        resolved_title = title_from_filename(source_path) if source_path is not None else "Untitled"
    return DocumentMetadata(
        title=resolved_title,
        subtitle=_first(data, "subtitle"),
        author=author or _first(data, "author", "authors"),
        language=language or _first(data, "lang", "language"),
        date=_first(data, "date"),
        description=_first(data, "description"),
        publisher=_first(data, "publisher"),
        isbn=_first(data, "isbn"),
        chapter_count=chapter_count,
        word_count=word_count,
        image_count=image_count,
    )


def render_header(metadata: DocumentMetadata, *, extended: bool) -> str:
    """Serialise metadata as a ``---`` delimited YAML block."""

    payload: dict[str, str] = {"title": metadata.title}
    optional = [
        ("subtitle", metadata.subtitle),
        ("author", metadata.author),
        ("lang", metadata.language),
        ("date", metadata.date),
    ]
    if extended:
        optional.extend(
            [
                ("description", metadata.description),
                ("publisher", metadata.publisher),
                ("identifier", metadata.isbn),
            ]
        )
    payload.update({key: value for key, value in optional if value})
    dumped = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{dumped}---\n"


__all__ = ["Frontmatter", "render_header", "resolve_metadata", "split_frontmatter"]
