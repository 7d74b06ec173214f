"""Individual validation rules for Markdown documents."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from ..images import locate_image
from ..models import IssueCategory, Severity, ValidationIssue
from ..syntax import (
    CALLOUT_RE,
    HIGHLIGHT_SPAN_RE,
    OBSIDIAN_COMMENT_RE,
    OBSIDIAN_EMBED_RE,
    STANDARD_IMAGE_RE,
    STANDARD_LINK_RE,
    TABLE_SEPARATOR_RE,
    WIKI_LINK_RE,
    close_unclosed_fence,
    find_heading_skips,
    find_unclosed_fence,
    is_remote,
    iter_headings,
    normalize_heading_levels,
    parse_destination,
    remove_empty_headings,
    rewrite_embeds,
    rewrite_wiki_links,
    split_table_cells,
    strip_comments,
    sub_outside_code,
)
from .base import ValidationContext, ValidationRule


class UnclosedFrontmatterRule(ValidationRule):
    rule_id = "unclosed_frontmatter"
    category = IssueCategory.METADATA_HEADER
    severity = Severity.ERROR
    description = "Metadata header opened with --- but never closed"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        if context.frontmatter.status != "unclosed":
            return []
        return [
            self.issue(
                "Metadata header starts on line 1 but has no closing '---' line",
                line=1,
                suggestion="Add a '---' line after the last metadata entry",
            )
        ]


class InvalidFrontmatterRule(ValidationRule):
    rule_id = "invalid_frontmatter"
    category = IssueCategory.METADATA_HEADER
    severity = Severity.ERROR
    description = "Metadata header is not a valid YAML mapping"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        if context.frontmatter.status != "invalid":
            return []
        return [
            self.issue(
                f"Metadata header could not be parsed: {context.frontmatter.error}",
                line=1,
                suggestion="Use 'key: value' pairs inside the metadata header",
            )
        ]


class MissingFrontmatterRule(ValidationRule):
    rule_id = "missing_frontmatter"
    category = IssueCategory.METADATA_HEADER
    severity = Severity.INFO
    description = "Document has no metadata header"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        if context.frontmatter.status != "missing":
            return []
        return [
            self.issue(
                "Document has no metadata header; the title will be derived from the file name",
                suggestion="Add a metadata header with at least a title",
            )
        ]


class MissingTitleRule(ValidationRule):
    rule_id = "missing_title"
    category = IssueCategory.METADATA_HEADER
    severity = Severity.WARNING
    description = "Metadata header without a title"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        frontmatter = context.frontmatter
        if frontmatter.status != "ok":
            return []
        title = frontmatter.data.get("title")
        if title is not None and str(title).strip():
            return []
        return [
            self.issue(
                "Metadata header has no title",
                line=1,
                suggestion="Add 'title: ...' to the metadata header",
            )
        ]


class UnclosedCodeFenceRule(ValidationRule):
    rule_id = "unclosed_code_fence"
    category = IssueCategory.SYNTAX
    severity = Severity.ERROR
    fixable = True
    description = "Fenced code block never closed"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        block = find_unclosed_fence(text)
        if block is None:
            return []
        return [
            self.issue(
                f"Code fence '{block.marker}' opened on line {block.start + 1} is never closed",
                line=block.start + 1,
                suggestion=f"Close the block with '{block.marker}'",
            )
        ]

    def fix(self, text: str) -> tuple[str, int]:
        return close_unclosed_fence(text)


class ObsidianCommentRule(ValidationRule):
    rule_id = "obsidian_comment"
    category = IssueCategory.SYNTAX
    severity = Severity.WARNING
    fixable = True
    description = "Obsidian %% comments are not rendered"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                "Obsidian comment will be dropped from the output",
                line=context.line_at(match.start()),
            )
            for match in OBSIDIAN_COMMENT_RE.finditer(context.masked)
        ]

    def fix(self, text: str) -> tuple[str, int]:
        return strip_comments(text)


class HighlightRule(ValidationRule):
    rule_id = "highlight"
    category = IssueCategory.SYNTAX
    severity = Severity.INFO
    description = "Highlight spans are rendered during preprocessing"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Highlight '=={match.group(1)}==' will be rendered as marked text",
                line=context.line_at(match.start()),
            )
            for match in HIGHLIGHT_SPAN_RE.finditer(context.masked)
        ]


class CalloutRule(ValidationRule):
    rule_id = "callout"
    category = IssueCategory.SYNTAX
    severity = Severity.INFO
    description = "Callouts are rendered as titled blockquotes"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Callout '{match.group(1).lower()}' will be rendered as a titled blockquote",
                line=context.line_at(match.start()),
            )
            for match in CALLOUT_RE.finditer(context.masked)
        ]


class ObsidianEmbedRule(ValidationRule):
    rule_id = "obsidian_embed"
    category = IssueCategory.IMAGE
    severity = Severity.WARNING
    fixable = True
    description = "Obsidian image embeds need standard image syntax"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Obsidian embed '{match.group(0)}' is not standard Markdown",
                line=context.line_at(match.start()),
                suggestion="Use ![alt](path) image syntax",
            )
            for match in OBSIDIAN_EMBED_RE.finditer(context.masked)
        ]

    def fix(self, text: str) -> tuple[str, int]:
        return rewrite_embeds(text)


class MissingImageRule(ValidationRule):
    rule_id = "missing_image"
    category = IssueCategory.IMAGE
    severity = Severity.WARNING
    description = "Local image file cannot be found"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        source_dir = context.source_dir
        if source_dir is None:
            return []
        issues = []
        for match in STANDARD_IMAGE_RE.finditer(context.masked):
            destination = parse_destination(match.group(2))
            if not destination or is_remote(destination):
                continue
            if locate_image(destination, source_dir, context.attachment_folders) is None:
                issues.append(
                    self.issue(
                        f"Image file not found: {destination}",
                        line=context.line_at(match.start()),
                        suggestion="Check the path or move the file into an attachments folder",
                    )
                )
        return issues


class MissingAltTextRule(ValidationRule):
    rule_id = "missing_alt_text"
    category = IssueCategory.ACCESSIBILITY
    severity = Severity.INFO
    fixable = True
    description = "Images should carry alternative text"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Image '{parse_destination(match.group(2))}' has no alt text",
                line=context.line_at(match.start()),
                suggestion="Describe the image between the brackets",
            )
            for match in STANDARD_IMAGE_RE.finditer(context.masked)
            if not match.group(1).strip()
        ]

    def fix(self, text: str) -> tuple[str, int]:
        def _replace(match: re.Match[str]) -> str | None:
            if match.group(1).strip():
                return None
            stem = PurePosixPath(parse_destination(match.group(2)).split("?", 1)[0]).stem or "image"
            return f"![{stem}]({match.group(2)})"

        return sub_outside_code(STANDARD_IMAGE_RE, _replace, text)


class WikiLinkRule(ValidationRule):
    rule_id = "wiki_link"
    category = IssueCategory.LINK
    severity = Severity.WARNING
    fixable = True
    description = "Wiki-links need standard link syntax"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Wiki-link '{match.group(0)}' is not standard Markdown",
                line=context.line_at(match.start()),
                suggestion="Use [text](target) link syntax",
            )
            for match in WIKI_LINK_RE.finditer(context.masked)
        ]

    def fix(self, text: str) -> tuple[str, int]:
        return rewrite_wiki_links(text)


class EmptyLinkRule(ValidationRule):
    rule_id = "empty_link"
    category = IssueCategory.LINK
    severity = Severity.WARNING
    description = "Links without a target"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Link '[{match.group(1)}]' has no target",
                line=context.line_at(match.start()),
            )
            for match in STANDARD_LINK_RE.finditer(context.masked)
            if match.group(1).strip() and not match.group(2).strip()
        ]


class EmptyLinkTextRule(ValidationRule):
    rule_id = "empty_link_text"
    category = IssueCategory.ACCESSIBILITY
    severity = Severity.WARNING
    description = "Links without visible text"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Link to '{match.group(2).strip()}' has no text",
                line=context.line_at(match.start()),
                suggestion="Put a description between the brackets",
            )
            for match in STANDARD_LINK_RE.finditer(context.masked)
            if not match.group(1).strip() and match.group(2).strip()
        ]


class EmptyHeadingRule(ValidationRule):
    rule_id = "empty_heading"
    category = IssueCategory.HEADING
    severity = Severity.WARNING
    fixable = True
    description = "Headings without text"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue("Heading has no text", line=heading.index + 1)
            for heading in iter_headings(text, context.masked)
            if not heading.text
        ]

    def fix(self, text: str) -> tuple[str, int]:
        return remove_empty_headings(text)


class HeadingLevelSkipRule(ValidationRule):
    rule_id = "heading_level_skip"
    category = IssueCategory.HEADING
    severity = Severity.WARNING
    fixable = True
    description = "Heading levels should increase one step at a time"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        return [
            self.issue(
                f"Heading level jumps from h{expected - 1} to h{heading.level}",
                line=heading.index + 1,
                suggestion=f"Use an h{expected} heading",
            )
            for heading, expected in find_heading_skips(text, context.masked)
        ]

    def fix(self, text: str) -> tuple[str, int]:
        return normalize_heading_levels(text)


class MultipleH1Rule(ValidationRule):
    rule_id = "multiple_h1"
    category = IssueCategory.HEADING
    severity = Severity.INFO
    description = "More than one top-level heading"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        top = [heading for heading in iter_headings(text, context.masked) if heading.level == 1 and heading.text]
        if len(top) <= 1:
            return []
        return [
            self.issue(
                f"Found {len(top)} level-1 headings; each starts a new chapter",
                line=top[1].index + 1,
                suggestion="Keep a single level-1 heading unless the document has chapters",
            )
        ]


class TableColumnMismatchRule(ValidationRule):
    rule_id = "table_column_mismatch"
    category = IssueCategory.TABLE
    severity = Severity.WARNING
    description = "Table rows with a different cell count than the header"

    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        lines = text.split("\n")
        masked_lines = context.masked.split("\n")
        issues: list[ValidationIssue] = []
        index = 0
        while index < len(lines) - 1:
            header = masked_lines[index]
            separator = masked_lines[index + 1]
            if "|" not in header or "|" not in separator or not TABLE_SEPARATOR_RE.match(separator):
                index += 1
                continue
            expected = len(split_table_cells(lines[index]))
            row = index + 2
            while row < len(lines) and "|" in masked_lines[row] and masked_lines[row].strip():
                cells = len(split_table_cells(lines[row]))
                if cells != expected:
                    issues.append(
                        self.issue(
                            f"Table row has {cells} cell(s) but the header has {expected}",
                            line=row + 1,
                        )
                    )
                row += 1
            index = row
        return issues


DEFAULT_RULES: tuple[type[ValidationRule], ...] = (
    UnclosedFrontmatterRule,
    InvalidFrontmatterRule,
    MissingFrontmatterRule,
    MissingTitleRule,
    UnclosedCodeFenceRule,
    ObsidianCommentRule,
    HighlightRule,
    CalloutRule,
    ObsidianEmbedRule,
    MissingImageRule,
    WikiLinkRule,
    MissingAltTextRule,
    EmptyLinkRule,
    EmptyLinkTextRule,
    EmptyHeadingRule,
    HeadingLevelSkipRule,
    MultipleH1Rule,
    TableColumnMismatchRule,
)
