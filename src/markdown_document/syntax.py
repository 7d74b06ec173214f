"""Dialect patterns and prose-only rewrites shared by the pipeline stages.

Everything here works on raw text. Code is never parsed into a tree; instead
fenced blocks, inline code spans and the metadata header are *masked*: replaced
by spaces of the same length so that offsets and line numbers computed on the
masked copy are valid in the original text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Iterator, Literal
from urllib.parse import unquote

FRONTMATTER_RE = re.compile(r"^---\n[\s\S]*?\n---")
OBSIDIAN_EMBED_RE = re.compile(r"!\[\[([^\]]+)\]\]")
WIKI_LINK_RE = re.compile(r"(?<!!)\[\[([^\]]+)\]\]")
HIGHLIGHT_RE = re.compile(r"==([^=]+)==")
HIGHLIGHT_SPAN_RE = re.compile(r"==([^=\n]+)==")
CALLOUT_RE = re.compile(r">\s*\[!(\w+)\]")
STANDARD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
TABLE_RE = re.compile(r"\|.*\|.*\n\|[-:| ]+\|")
FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
H1_RE = re.compile(r"^#\s+[^\n]+", re.MULTILINE)
OBSIDIAN_COMMENT_RE = re.compile(r"%%[\s\S]*?%%")
STANDARD_LINK_RE = re.compile(r"(?<!!)\[([^\]]*)\]\(([^)]*)\)")

FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
INLINE_CODE_RE = re.compile(r"(`+)(?!`).*?(?<!`)\1(?!`)")
ATX_HEADING_RE = re.compile(r"^( {0,3})(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
CALLOUT_LINE_RE = re.compile(r"^(\s*)>\s*\[!(\w+)\]([+-]?)[ \t]*(.*)$")
TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?\s*$")
SIZE_ALIAS_RE = re.compile(r"^(\d+)(?:x(\d+))?$")
REMOTE_RE = re.compile(r"^(?:[a-z][a-z0-9+.-]*:|//|#)", re.IGNORECASE)

TargetFormat = Literal["epub", "pdf"]


@dataclass(frozen=True, slots=True)
class FenceBlock:
    start: int
    end: int | None
    marker: str

    @property
    def closed(self) -> bool:
        return self.end is not None


@dataclass(frozen=True, slots=True)
class Heading:
    index: int
    level: int
    text: str


@dataclass(frozen=True, slots=True)
class WikiTarget:
    target: str
    anchor: str | None
    alias: str | None

    @property
    def size(self) -> tuple[int | None, int | None]:
        if not self.alias:
            return None, None
        match = SIZE_ALIAS_RE.match(self.alias.strip())
        if not match:
            return None, None
        width = int(match.group(1))
        height = int(match.group(2)) if match.group(2) else None
        return width, height


# -- scanning -----------------------------------------------------------------


def frontmatter_end(lines: list[str]) -> int | None:
    """Index of the closing ``---`` line of a leading metadata header."""

    if not lines or lines[0].rstrip() != "---":
        return None
    for index in range(1, len(lines)):
        if lines[index].rstrip() == "---":
            return index
    return None


def scan_fences(lines: list[str]) -> list[FenceBlock]:
    """Fenced code blocks after the metadata header, in document order."""

    blocks: list[FenceBlock] = []
    opened: tuple[int, str] | None = None
    header_end = frontmatter_end(lines)
    first = header_end + 1 if header_end is not None else 0
    for index in range(first, len(lines)):
        line = lines[index]
        match = FENCE_RE.match(line)
        if opened is None:
            if match is None:
                continue
            marker, info = match.group(1), match.group(2)
            if marker[0] == "`" and "`" in info:
                continue
            opened = (index, marker)
            continue
        start, marker = opened
        if (
            match is not None
            and match.group(1)[0] == marker[0]
            and len(match.group(1)) >= len(marker)
            and not match.group(2).strip()
        ):
            blocks.append(FenceBlock(start=start, end=index, marker=marker))
            opened = None
    if opened is not None:
        blocks.append(FenceBlock(start=opened[0], end=None, marker=opened[1]))
    return blocks


def mask_non_prose(text: str) -> str:
    """Blank out the metadata header, fenced code and inline code spans."""

    lines = text.split("\n")
    masked = list(lines)
    hidden: set[int] = set()
    header_end = frontmatter_end(lines)
    if header_end is not None:
        hidden.update(range(0, header_end + 1))
    for block in scan_fences(lines):
        last = block.end if block.end is not None else len(lines) - 1
        hidden.update(range(block.start, last + 1))
    for index, line in enumerate(lines):
        if index in hidden:
            masked[index] = " " * len(line)
        elif "`" in line:
            masked[index] = INLINE_CODE_RE.sub(lambda m: " " * len(m.group(0)), line)
    return "\n".join(masked)


def line_number(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def sub_outside_code(
    pattern: re.Pattern[str],
    replace: Callable[[re.Match[str]], str | None],
    text: str,
    masked: str | None = None,
) -> tuple[str, int]:
    """Apply ``replace`` to matches found in prose; ``None`` keeps a match as-is."""

    masked = mask_non_prose(text) if masked is None else masked
    pieces: list[str] = []
    last = 0
    count = 0
    for match in pattern.finditer(masked):
        replacement = replace(match)
        if replacement is None:
            continue
        pieces.append(text[last : match.start()])
        pieces.append(replacement)
        last = match.end()
        count += 1
    pieces.append(text[last:])
    return "".join(pieces), count


def iter_headings(text: str, masked: str | None = None) -> Iterator[Heading]:
    masked_lines = (mask_non_prose(text) if masked is None else masked).split("\n")
    for index, line in enumerate(masked_lines):
        match = ATX_HEADING_RE.match(line)
        if match is None:
            continue
        content = _heading_content(text.split("\n")[index]) if "`" in line else _strip_closing(match.group(3))
        yield Heading(index=index, level=len(match.group(2)), text=content)


def _strip_closing(content: str | None) -> str:
    if not content:
        return ""
    content = re.sub(r"(^|[ \t]+)#+$", "", content)
    return content.strip()


def _heading_content(line: str) -> str:
    match = ATX_HEADING_RE.match(line)
    return _strip_closing(match.group(3)) if match else line.strip()


def split_table_cells(line: str) -> list[str]:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in re.split(r"(?<!\\)\|", stripped)]


# -- destinations -------------------------------------------------------------


def parse_destination(raw: str) -> str:
    """Extract the path from a Markdown link destination, dropping any title."""

    raw = raw.strip()
    if raw.startswith("<"):
        end = raw.find(">")
        value = raw[1:end] if end != -1 else raw[1:]
    else:
        value = raw.split()[0] if raw.split() else ""
    return unquote(value)


def format_destination(path: str) -> str:
    if any(char.isspace() for char in path) or "(" in path or ")" in path:
        return f"<{path}>"
    return path


def is_remote(destination: str) -> bool:
    return bool(REMOTE_RE.match(destination))


def heading_anchor(text: str) -> str:
    """Approximate the identifier pandoc assigns to a heading."""

    value = text.strip().lower()
    value = re.sub(r"[^\w\s.-]", "", value)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"^[\W\d_]+", "", value)
    return value or "section"


# -- obsidian syntax ----------------------------------------------------------


def parse_wiki_target(inner: str) -> WikiTarget:
    target, _, alias = inner.partition("|")
    note, _, anchor = target.partition("#")
    return WikiTarget(
        target=note.strip(),
        anchor=anchor.strip() or None,
        alias=alias.strip() or None,
    )


def image_alt(target: WikiTarget) -> str:
    if target.alias and target.size == (None, None):
        return target.alias
    stem = PurePosixPath(target.target).stem
    return stem or "image"


def size_attributes(width: int | None, height: int | None) -> str:
    parts = []
    if width is not None:
        parts.append(f"width={width}px")
    if height is not None:
        parts.append(f"height={height}px")
    return "{" + " ".join(parts) + "}" if parts else ""


def embed_to_markdown(inner: str, destination: str | None = None) -> str:
    target = parse_wiki_target(inner)
    path = destination if destination is not None else target.target
    width, height = target.size
    return f"![{image_alt(target)}]({format_destination(path)}){size_attributes(width, height)}"


def wiki_link_to_markdown(inner: str) -> str:
    target = parse_wiki_target(inner)
    anchor = target.anchor if target.anchor and not target.anchor.startswith("^") else None
    if target.alias:
        label = target.alias
    elif target.target and anchor:
        label = f"{target.target} > {anchor}"
    else:
        label = target.target or anchor or inner
    destination = ""
    if target.target:
        destination = target.target if PurePosixPath(target.target).suffix else f"{target.target}.md"
    if anchor:
        destination += f"#{heading_anchor(anchor)}"
    if not destination:
        destination = f"#{heading_anchor(label)}"
    return f"[{label}]({format_destination(destination)})"


def rewrite_embeds(text: str, masked: str | None = None) -> tuple[str, int]:
    return sub_outside_code(OBSIDIAN_EMBED_RE, lambda m: embed_to_markdown(m.group(1)), text, masked)


def rewrite_wiki_links(text: str, masked: str | None = None) -> tuple[str, int]:
    return sub_outside_code(WIKI_LINK_RE, lambda m: wiki_link_to_markdown(m.group(1)), text, masked)


def strip_comments(text: str, masked: str | None = None) -> tuple[str, int]:
    return sub_outside_code(OBSIDIAN_COMMENT_RE, lambda m: "", text, masked)


def rewrite_highlights(text: str, target_format: TargetFormat) -> tuple[str, int]:
    if target_format == "pdf":
        template = '<span class="highlight">{}</span>'
    else:
        template = "<mark>{}</mark>"
    return sub_outside_code(HIGHLIGHT_SPAN_RE, lambda m: template.format(m.group(1)), text)


def rewrite_callouts(text: str, target_format: TargetFormat) -> tuple[str, int]:
    """Turn ``> [!type] Title`` blocks into titled blockquotes."""

    lines = text.split("\n")
    masked_lines = mask_non_prose(text).split("\n")
    output: list[str] = []
    count = 0
    index = 0
    while index < len(lines):
        match = CALLOUT_LINE_RE.match(masked_lines[index])
        if match is None:
            output.append(lines[index])
            index += 1
            continue
        indent, kind = match.group(1), match.group(2).lower()
        title = match.group(4).strip() or kind.capitalize()
        body: list[str] = []
        index += 1
        while index < len(lines) and masked_lines[index].lstrip().startswith(">"):
            body.append(re.sub(r"^\s*>[ ]?", "", lines[index]))
            index += 1
        quoted = [f"{indent}> **{title}**"]
        if any(line.strip() for line in body):
            quoted.append(f"{indent}>")
            quoted.extend(f"{indent}> {line}".rstrip() for line in body)
        if target_format == "pdf":
            if output and output[-1].strip():
                output.append("")
            output.append(f"{indent}::: {{.callout .callout-{kind}}}")
            output.extend(quoted)
            output.append(f"{indent}:::")
            if index < len(lines) and lines[index].strip():
                output.append("")
        else:
            output.extend(quoted)
        count += 1
    return "\n".join(output), count


# -- headings -----------------------------------------------------------------


def find_heading_skips(text: str, masked: str | None = None) -> list[tuple[Heading, int]]:
    """Headings whose level jumps more than one below the previous heading."""

    skips: list[tuple[Heading, int]] = []
    previous: int | None = None
    for heading in iter_headings(text, masked):
        if not heading.text:
            continue
        if previous is not None and heading.level > previous + 1:
            skips.append((heading, previous + 1))
            previous = previous + 1
        else:
            previous = heading.level
    return skips


def normalize_heading_levels(text: str) -> tuple[str, int]:
    skips = find_heading_skips(text)
    if not skips:
        return text, 0
    lines = text.split("\n")
    for heading, expected in skips:
        line = lines[heading.index]
        match = ATX_HEADING_RE.match(line)
        if match is None:
            continue
        rest = line[match.end(2) :]
        lines[heading.index] = f"{match.group(1)}{'#' * expected}{rest}"
    return "\n".join(lines), len(skips)


def remove_empty_headings(text: str) -> tuple[str, int]:
    empty = {heading.index for heading in iter_headings(text) if not heading.text}
    if not empty:
        return text, 0
    lines = [line for index, line in enumerate(text.split("\n")) if index not in empty]
    return "\n".join(lines), len(empty)


# -- fences -------------------------------------------------------------------


def find_unclosed_fence(text: str) -> FenceBlock | None:
    for block in scan_fences(text.split("\n")):
        if not block.closed:
            return block
    return None


def close_unclosed_fence(text: str) -> tuple[str, int]:
    block = find_unclosed_fence(text)
    if block is None:
        return text, 0
    closing = block.marker
    if text.endswith("\n"):
        return f"{text}{closing}\n", 1
    return f"{text}\n{closing}\n", 1
