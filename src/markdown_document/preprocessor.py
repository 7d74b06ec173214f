"""Turn Obsidian-flavoured Markdown into clean, engine-ready Markdown."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .analyzer import count_words
from .constants import ATTACHMENT_FOLDERS
from .images import ImageResolver
from .metadata import render_header, resolve_metadata, split_frontmatter
from .models import PreprocessResult, TargetFormat
from .syntax import (
    iter_headings,
    normalize_heading_levels,
    rewrite_callouts,
    rewrite_highlights,
    rewrite_wiki_links,
    strip_comments,
)
from .utils import normalize_line_endings

logger = logging.getLogger(__name__)


class MarkdownPreprocessor:
    """Applies the prose rewrites and resolves images for one target format."""

    def __init__(self, attachment_folders: Sequence[str] = ATTACHMENT_FOLDERS, workers: int = 4) -> None:
        self.attachment_folders = tuple(attachment_folders)
        self.workers = workers

    def preprocess(
        self,
        text: str,
        source_path: Path,
        target_format: TargetFormat,
        *,
        title: str | None = None,
        author: str | None = None,
        language: str | None = None,
    ) -> PreprocessResult:
        text = normalize_line_endings(text)
        warnings: list[str] = []

        frontmatter = split_frontmatter(text)
        if frontmatter.warning:
            warnings.append(frontmatter.warning)
        body = frontmatter.body

        body, removed = strip_comments(body)
        if removed:
            warnings.append(f"Removed {removed} Obsidian comment(s)")

        resolver = ImageResolver(source_path.parent, self.attachment_folders, self.workers)
        images = resolver.rewrite(body)
        body = images.text
        if images.embeds_converted:
            warnings.append(f"Converted {images.embeds_converted} Obsidian embed(s) to standard images")
        warnings.extend(f"Image not found: {reference}" for reference in images.missing)

        body, links = rewrite_wiki_links(body)
        if links:
            warnings.append(f"Converted {links} wiki-link(s) to standard links")

        body, highlights = rewrite_highlights(body, target_format)
        if highlights:
            warnings.append(f"Rendered {highlights} highlight span(s)")

        body, callouts = rewrite_callouts(body, target_format)
        if callouts:
            warnings.append(f"Rendered {callouts} callout block(s)")

        body, normalized = normalize_heading_levels(body)
        if normalized:
            warnings.append(f"Normalized {normalized} heading level(s)")

        levels = [heading.level for heading in iter_headings(body) if heading.text]
        chapters = levels.count(1) or levels.count(2)
        metadata = resolve_metadata(
            frontmatter.data,
            source_path,
            title=title,
            author=author,
            language=language,
            chapter_count=chapters,
            word_count=count_words(frontmatter.body),
            image_count=len(images.images),
        )
        logger.debug(
            "Preprocessed %s for %s: %d image(s), %d warning(s)",
            source_path.name,
            target_format,
            len(images.images),
            len(warnings),
        )
        return PreprocessResult(
            content=body,
            metadata=metadata,
            resolved_images=images.images,
            warnings=tuple(warnings),
        )

    @staticmethod
    def generate_clean_markdown(result: PreprocessResult, target_format: TargetFormat) -> str:
        header = render_header(result.metadata, extended=target_format == "epub")
        body = result.content.strip("\n")
        if not body:
            return header
        return f"{header}\n{body}\n"


def preprocess(
    text: str,
    source_path: Path,
    target_format: TargetFormat,
    **overrides: str | None,
) -> PreprocessResult:
    return MarkdownPreprocessor().preprocess(text, source_path, target_format, **overrides)


def generate_clean_markdown(result: PreprocessResult, target_format: TargetFormat) -> str:
    return MarkdownPreprocessor.generate_clean_markdown(result, target_format)


__all__ = ["MarkdownPreprocessor", "generate_clean_markdown", "preprocess"]
