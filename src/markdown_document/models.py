"""Domain models for the markdown-to-document pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Literal

from .constants import WORDS_PER_MINUTE

TargetFormat = Literal["epub", "pdf"]


class OutputFormat(str, Enum):
    EPUB = "epub"
    PDF = "pdf"
    BOTH = "both"

    @property
    def targets(self) -> tuple[TargetFormat, ...]:
        if self is OutputFormat.BOTH:
            return ("epub", "pdf")
        return (self.value,)  # type: ignore[return-value]


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    METADATA_HEADER = "metadata-header"
    HEADING = "heading"
    LINK = "link"
    IMAGE = "image"
    TABLE = "table"
    SYNTAX = "syntax"
    ACCESSIBILITY = "accessibility"


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Read-only summary of one document's dialect constructs and statistics."""

    has_obsidian_images: bool = False
    has_obsidian_links: bool = False
    has_highlights: bool = False
    has_callouts: bool = False
    has_long_code_lines: bool = False
    has_complex_tables: bool = False
    has_multiple_h1: bool = False
    has_frontmatter: bool = False
    image_count: int = 0
    table_count: int = 0
    code_block_count: int = 0
    word_count: int = 0
    recommend_preprocess: bool = False
    recommended_preset: str = "balanced"
    issues: tuple[str, ...] = ()

    @property
    def estimated_reading_minutes(self) -> int:
        if self.word_count <= 0:
            return 0
        return max(1, math.ceil(self.word_count / WORDS_PER_MINUTE))


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    severity: Severity
    category: IssueCategory
    message: str
    rule: str
    line: int | None = None
    fixed: bool = False
    suggestion: str | None = None


@dataclass(frozen=True, slots=True)
class ValidationReport:
    total_issues: int
    fixed_issues: int
    warnings: int
    errors: int
    details: tuple[ValidationIssue, ...] = ()
    # fixable issues resolved by the auto-fix pass that preceded this report
    applied_fixes: int = 0

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> ValidationReport:
        details = tuple(issues)
        return cls(
            total_issues=len(details),
            fixed_issues=sum(1 for issue in details if issue.fixed),
            warnings=sum(1 for issue in details if issue.severity is Severity.WARNING),
            errors=sum(1 for issue in details if issue.severity is Severity.ERROR),
            details=details,
        )

    @property
    def fixable_rules(self) -> frozenset[str]:
        return frozenset(issue.rule for issue in self.details if issue.fixed)


@dataclass(frozen=True, slots=True)
class DocumentMetadata:
    title: str
    subtitle: str | None = None
    author: str | None = None
    language: str | None = None
    date: str | None = None
    description: str | None = None
    publisher: str | None = None
    isbn: str | None = None
    chapter_count: int = 0
    word_count: int = 0
    image_count: int = 0


@dataclass(frozen=True, slots=True)
class ResolvedImage:
    original_syntax: str
    standard_syntax: str
    absolute_path: Path
    found: bool
    alt: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class PreprocessResult:
    content: str
    metadata: DocumentMetadata
    resolved_images: tuple[ResolvedImage, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def missing_images(self) -> tuple[ResolvedImage, ...]:
        return tuple(image for image in self.resolved_images if not image.found)


@dataclass(frozen=True, slots=True)
class CoverArtifact:
    output_format: TargetFormat
    theme_id: str
    path: Path | None = None
    html: str | None = None
    css: str | None = None


@dataclass(slots=True)
class PreparedDocument:
    """Every intermediate artifact handed to the conversion engine."""

    run_id: str
    source_path: Path
    markdown_paths: dict[str, Path]
    preset_id: str
    metadata: DocumentMetadata
    analysis: AnalysisResult
    validation_report: ValidationReport | None = None
    stylesheets: dict[str, Path] = field(default_factory=dict)
    covers: dict[str, CoverArtifact] = field(default_factory=dict)
    cover_fragment_path: Path | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def artifact_paths(self) -> list[Path]:
        paths = [*self.markdown_paths.values(), *self.stylesheets.values()]
        paths.extend(cover.path for cover in self.covers.values() if cover.path is not None)
        if self.cover_fragment_path is not None:
            paths.append(self.cover_fragment_path)
        return paths


@dataclass(slots=True)
class ConversionResult:
    """Outcome of a full conversion run."""

    success: bool
    epub_path: Path | None = None
    pdf_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    validation_report: ValidationReport | None = None
    artifacts: PreparedDocument | None = None


__all__ = [
    "AnalysisResult",
    "ConversionResult",
    "CoverArtifact",
    "DocumentMetadata",
    "IssueCategory",
    "OutputFormat",
    "PreparedDocument",
    "PreprocessResult",
    "ResolvedImage",
    "Severity",
    "TargetFormat",
    "ValidationIssue",
    "ValidationReport",
]
