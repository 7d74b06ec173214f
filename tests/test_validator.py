import logging
from pathlib import Path

from markdown_document.models import IssueCategory, Severity
from markdown_document.validation import ContentValidator, ValidationContext, ValidationRule
from markdown_document.validation.rules import MultipleH1Rule

MESSY = (
    "# Intro\n"
    "\n"
    "%% private note %%\n"
    "\n"
    "![[diagram.png]]\n"
    "\n"
    "See [[Other Note]].\n"
    "\n"
    "![](pic.png)\n"
    "\n"
    "#### Deep\n"
    "\n"
    "#\n"
    "\n"
    "```python\n"
    "print('unterminated')\n"
)


def rules_of(text: str, source_path: Path | None = None) -> list[str]:
    return [issue.rule for issue in ContentValidator().validate(text, source_path).details]


def test_clean_document_has_no_issues() -> None:
    report = ContentValidator().validate("---\ntitle: Book\n---\n\n# Book\n\nPlain text.\n")
    assert report.total_issues == 0
    assert report.details == ()


def test_messy_document_reports_fixable_issues() -> None:
    report = ContentValidator().validate(MESSY)
    found = {issue.rule for issue in report.details}
    assert {
        "missing_frontmatter",
        "obsidian_comment",
        "obsidian_embed",
        "wiki_link",
        "missing_alt_text",
        "heading_level_skip",
        "empty_heading",
        "unclosed_code_fence",
    } <= found
    assert report.errors == 1
    assert report.fixed_issues == 7


def test_auto_fix_reaches_fixed_point() -> None:
    validator = ContentValidator()
    fixed = validator.auto_fix(MESSY, validator.validate(MESSY))
    again = validator.validate(fixed)
    assert again.fixed_issues == 0
    assert again.errors == 0
    assert "%%" not in fixed
    assert "![diagram](diagram.png)" in fixed
    assert "[Other Note](<Other Note.md>)" in fixed
    assert "![pic](pic.png)" in fixed
    assert "## Deep" in fixed
    assert "\n#\n" not in fixed
    assert fixed.endswith("print('unterminated')\n```\n")


def test_auto_fix_without_fixable_issues_is_identity() -> None:
    validator = ContentValidator()
    text = "# One\n\n# Two\n"
    assert validator.auto_fix(text, validator.validate(text)) == text


def test_code_is_ignored_and_lines_are_exact() -> None:
    text = "Intro\n```\n[[inside]]\n%% not a comment %%\n```\n[[outside]]\n"
    report = ContentValidator().validate(text)
    links = [issue for issue in report.details if issue.rule == "wiki_link"]
    assert [issue.line for issue in links] == [6]
    assert "obsidian_comment" not in {issue.rule for issue in report.details}


def test_frontmatter_rules() -> None:
    assert "unclosed_frontmatter" in rules_of("---\ntitle: x\n\nbody\n")
    assert "invalid_frontmatter" in rules_of("---\ntitle: [oops\n---\nbody\n")
    assert "missing_title" in rules_of("---\nauthor: Ann\n---\nbody\n")
    assert "missing_frontmatter" in rules_of("body\n")
    unclosed = ContentValidator().validate("---\ntitle: x\n")
    assert unclosed.errors == 1
    assert unclosed.details[0].category is IssueCategory.METADATA_HEADER


def test_multiple_h1_reported_once() -> None:
    report = ContentValidator().validate("---\ntitle: x\n---\n# One\n\n# Two\n\n# Three\n")
    issues = [issue for issue in report.details if issue.category is IssueCategory.HEADING]
    assert len(issues) == 1
    assert issues[0].rule == "multiple_h1"
    assert issues[0].severity is Severity.INFO
    assert issues[0].message == "Found 3 level-1 headings; each starts a new chapter"
    assert issues[0].line == 6


def test_heading_skip_message() -> None:
    report = ContentValidator().validate("# A\n\n### C\n")
    skip = [issue for issue in report.details if issue.rule == "heading_level_skip"][0]
    assert skip.message == "Heading level jumps from h1 to h3"
    assert skip.line == 3
    assert skip.fixed


def test_table_column_mismatch() -> None:
    text = "| a | b |\n|---|---|\n| 1 | 2 |\n| 1 | 2 | 3 |\n"
    report = ContentValidator().validate(text)
    mismatches = [issue for issue in report.details if issue.rule == "table_column_mismatch"]
    assert len(mismatches) == 1
    assert mismatches[0].line == 4
    assert mismatches[0].message == "Table row has 3 cell(s) but the header has 2"


def test_link_rules() -> None:
    assert "empty_link" in rules_of("[text]()\n")
    assert "empty_link_text" in rules_of("[](https://example.com)\n")
    assert "empty_link_text" not in rules_of("![](pic.png)\n")


def test_highlight_rule_stays_on_one_line() -> None:
    assert "highlight" not in rules_of("If a == b then\n\nwe know c == d.\n")
    assert "highlight" in rules_of("Some ==marked== text\n")


def test_missing_image_needs_source_path(tmp_path: Path) -> None:
    source = tmp_path / "doc.md"
    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "found.png").write_bytes(b"png")
    text = "![a](found.png)\n\n![b](lost.png)\n\n![c](https://example.com/x.png)\n"
    report = ContentValidator().validate(text, source)
    missing = [issue for issue in report.details if issue.rule == "missing_image"]
    assert [issue.message for issue in missing] == ["Image file not found: lost.png"]
    assert "missing_image" not in rules_of(text)


def test_issues_sorted_by_line() -> None:
    report = ContentValidator().validate("# A\n\n### B\n\n[[x]]\n\n==y==\n")
    lines = [issue.line or 0 for issue in report.details]
    assert lines == sorted(lines)


class ExplodingRule(ValidationRule):
    rule_id = "exploding"

    def detect(self, text: str, context: ValidationContext) -> list:
        raise RuntimeError("boom")


def test_failing_rule_is_logged_and_skipped(caplog) -> None:
    validator = ContentValidator(rules=[ExplodingRule(), MultipleH1Rule()])
    with caplog.at_level(logging.WARNING):
        report = validator.validate("# A\n# B\n")
    assert [issue.rule for issue in report.details] == ["multiple_h1"]
    assert "Validation rule exploding failed" in caplog.text


def test_validator_exposes_rules_in_order() -> None:
    rule_ids = [rule.rule_id for rule in ContentValidator().rules]
    assert rule_ids[:4] == ["unclosed_frontmatter", "invalid_frontmatter", "missing_frontmatter", "missing_title"]
    assert rule_ids.index("unclosed_code_fence") < rule_ids.index("obsidian_comment")
    assert len(rule_ids) == len(set(rule_ids)) == 18
