"""Base class for validation rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..constants import ATTACHMENT_FOLDERS
from ..metadata import Frontmatter, split_frontmatter
from ..models import IssueCategory, Severity, ValidationIssue
from ..syntax import line_number, mask_non_prose


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Everything a rule needs besides the text itself."""

    text: str
    masked: str
    frontmatter: Frontmatter
    source_path: Path | None = None
    attachment_folders: tuple[str, ...] = ATTACHMENT_FOLDERS

    @classmethod
    def build(
        cls,
        text: str,
        source_path: Path | None = None,
        attachment_folders: tuple[str, ...] = ATTACHMENT_FOLDERS,
    ) -> ValidationContext:
        return cls(
            text=text,
            masked=mask_non_prose(text),
            frontmatter=split_frontmatter(text),
            source_path=source_path,
            attachment_folders=attachment_folders,
        )

    @property
    def source_dir(self) -> Path | None:
        return self.source_path.parent if self.source_path is not None else None

    def line_at(self, offset: int) -> int:
        return line_number(self.text, offset)


class ValidationRule(ABC):
    """A single check over a Markdown document, optionally with a fixer."""

    rule_id: str = "unknown"
    category: IssueCategory = IssueCategory.SYNTAX
    severity: Severity = Severity.WARNING
    fixable: bool = False
    description: str = "Unknown rule"

    @abstractmethod
    def detect(self, text: str, context: ValidationContext) -> list[ValidationIssue]:
        """Return the issues this rule finds in ``text``."""

    def fix(self, text: str) -> tuple[str, int]:
        """Rewrite ``text`` and return it with the number of changes made.

        Fixers re-scan the text they are given rather than trusting offsets
        from an earlier report.
        """

        return text, 0

    def issue(self, message: str, line: int | None = None, suggestion: str | None = None) -> ValidationIssue:
        return ValidationIssue(
            severity=self.severity,
            category=self.category,
            message=message,
            rule=self.rule_id,
            line=line,
            fixed=self.fixable,
            suggestion=suggestion,
        )


__all__ = ["ValidationContext", "ValidationRule"]
