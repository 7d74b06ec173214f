from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .utils import normalize_line_endings

MARKDOWN_EXTENSIONS: frozenset[str] = frozenset({".md", ".markdown", ".mdown", ".mkd", ".txt"})


@dataclass(slots=True)
class SourceDocument:
    path: Path
    extension: str
    text: str
    size_bytes: int


class DetectionError(RuntimeError):
    """Raised when a source file is not a readable Markdown document."""


def sniff_text(path: Path) -> str:
    data = path.read_bytes()
    if b"\x00" in data[:1024]:
        raise DetectionError(f"Binary content detected in {path.name}")
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DetectionError(f"{path.name} is not valid UTF-8: {exc.reason}") from exc
    return normalize_line_endings(text)


def detect_source(path: Path) -> SourceDocument:
    extension = path.suffix.lower()
    if extension not in MARKDOWN_EXTENSIONS:
        raise DetectionError(f"Unsupported file extension: {extension or '<none>'}")
    text = sniff_text(path)
    return SourceDocument(
        path=path.resolve(),
        extension=extension,
        text=text,
        size_bytes=path.stat().st_size,
    )
