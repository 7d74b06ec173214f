"""Registry that runs validation rules and their fixers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..constants import ATTACHMENT_FOLDERS
from ..models import ValidationIssue, ValidationReport
from .base import ValidationContext, ValidationRule
from .rules import DEFAULT_RULES

logger = logging.getLogger(__name__)


class ContentValidator:
    """Runs every registered rule over a document.

    Rules are kept in a fixed order; ``auto_fix`` applies fixers in that same
    order so that earlier rewrites (closing a fence, dropping comments) are
    visible to later ones.
    """

    def __init__(
        self,
        rules: Iterable[ValidationRule] | None = None,
        attachment_folders: tuple[str, ...] = ATTACHMENT_FOLDERS,
    ) -> None:
        selected = list(rules) if rules is not None else [rule() for rule in DEFAULT_RULES]
        self._rules: dict[str, ValidationRule] = {rule.rule_id: rule for rule in selected}
        self.attachment_folders = attachment_folders

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        return tuple(self._rules.values())

    def validate(self, text: str, source_path: Path | None = None) -> ValidationReport:
        context = ValidationContext.build(text, source_path, self.attachment_folders)
        issues: list[ValidationIssue] = []
        for rule_id, rule in self._rules.items():
            try:
                found = rule.detect(text, context)
            except Exception:
                logger.warning("Validation rule %s failed", rule_id, exc_info=True)
                continue
            if found:
                logger.debug("Rule %s reported %d issue(s)", rule_id, len(found))
            issues.extend(found)
        issues.sort(key=lambda issue: issue.line if issue.line is not None else 0)
        return ValidationReport.from_issues(issues)

    def auto_fix(self, text: str, report: ValidationReport) -> str:
        """Apply the fixer of every rule with a fixable issue in ``report``."""

        pending = report.fixable_rules
        for rule_id, rule in self._rules.items():
            if rule_id not in pending:
                continue
            try:
                text, changes = rule.fix(text)
            except Exception:
                logger.warning("Fixer for %s failed", rule_id, exc_info=True)
                continue
            logger.debug("Fixer %s applied %d change(s)", rule_id, changes)
        return text


__all__ = ["ContentValidator"]
