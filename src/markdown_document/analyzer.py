from __future__ import annotations

import re

from .constants import COMPLEX_TABLE_COLUMNS, LONG_CODE_LINE
from .models import AnalysisResult
from .syntax import (
    CALLOUT_RE,
    FENCED_CODE_RE,
    FRONTMATTER_RE,
    H1_RE,
    HIGHLIGHT_RE,
    OBSIDIAN_EMBED_RE,
    STANDARD_IMAGE_RE,
    TABLE_RE,
    WIKI_LINK_RE,
    split_table_cells,
)

WORD_NOISE_RE = re.compile(r"[#*`\[\]()]")


def recommend_preset(images: int, tables: int, code_blocks: int, words: int) -> str:
    """Pick a typography preset from document statistics."""

    if images > 10:
        return "image_heavy"
    if tables > 5:
        return "table_heavy"
    if code_blocks > 10:
        return "manual"
    if words > 10000:
        return "text_heavy"
    return "balanced"


def count_words(text: str) -> int:
    stripped = WORD_NOISE_RE.sub("", FENCED_CODE_RE.sub("", text))
    return len(stripped.split())


def analyze(
    text: str,
    *,
    long_code_line: int = LONG_CODE_LINE,
    complex_table_columns: int = COMPLEX_TABLE_COLUMNS,
) -> AnalysisResult:
    """Scan raw Markdown for dialect constructs and layout risks.

    The scan is purely textual and never fails; an empty document yields an
    all-false result recommending the ``balanced`` preset.
    """

    issues: list[str] = []

    embeds = OBSIDIAN_EMBED_RE.findall(text)
    if embeds:
        issues.append(f"Found {len(embeds)} Obsidian image embed(s)")

    links = WIKI_LINK_RE.findall(text)
    if links:
        issues.append(f"Found {len(links)} Obsidian wiki-link(s)")

    highlights = HIGHLIGHT_RE.findall(text)
    if highlights:
        issues.append(f"Found {len(highlights)} highlight span(s)")

    callouts = CALLOUT_RE.findall(text)
    if callouts:
        issues.append(f"Found {len(callouts)} callout block(s)")

    tables = [match.group(0) for match in TABLE_RE.finditer(text)]
    has_complex_tables = any(
        len(split_table_cells(table.split("\n", 1)[0])) > complex_table_columns for table in tables
    )
    if has_complex_tables:
        issues.append(f"Found a table with more than {complex_table_columns} columns")

    code_blocks = [match.group(0) for match in FENCED_CODE_RE.finditer(text)]
    has_long_code_lines = any(
        len(line) > long_code_line for block in code_blocks for line in block.split("\n")
    )
    if has_long_code_lines:
        issues.append(f"Found a code line longer than {long_code_line} characters (may be clipped in PDF)")

    h1_count = len(H1_RE.findall(text))
    has_multiple_h1 = h1_count > 1
    if has_multiple_h1:
        issues.append(f"Found {h1_count} top-level headings (1 recommended)")

    image_count = len(embeds) + len(STANDARD_IMAGE_RE.findall(text))
    word_count = count_words(text)

    flags = (
        bool(embeds),
        bool(links),
        bool(highlights),
        bool(callouts),
        has_long_code_lines,
        has_complex_tables,
        has_multiple_h1,
    )
    return AnalysisResult(
        has_obsidian_images=bool(embeds),
        has_obsidian_links=bool(links),
        has_highlights=bool(highlights),
        has_callouts=bool(callouts),
        has_long_code_lines=has_long_code_lines,
        has_complex_tables=has_complex_tables,
        has_multiple_h1=has_multiple_h1,
        has_frontmatter=FRONTMATTER_RE.match(text) is not None,
        image_count=image_count,
        table_count=len(tables),
        code_block_count=len(code_blocks),
        word_count=word_count,
        recommend_preprocess=any(flags),
        recommended_preset=recommend_preset(image_count, len(tables), len(code_blocks), word_count),
        issues=tuple(issues),
    )


__all__ = ["analyze", "count_words", "recommend_preset"]
