import pytest

from markdown_document.css import (
    build_body_styles,
    build_common_element_styles,
    build_heading_styles,
    build_paragraph_styles,
    build_pdf_page_rules,
)
from markdown_document.styles import build_stylesheet
from markdown_document.typography import PageMargins, UnknownPresetError


def test_epub_stylesheet_has_no_page_rules() -> None:
    css = build_stylesheet("ebook", "epub", cover_css=".pdf-cover-page { color: red; }")
    assert "@page" not in css
    assert "/* Cover */" not in css
    assert "mark {" in css
    assert css.startswith("/* Typography preset: E-book */")


def test_pdf_stylesheet_sections() -> None:
    css = build_stylesheet("balanced", "pdf", paper_size="letter", cover_css="@page cover { margin: 0; }")
    assert "size: letter;" in css
    assert "margin: 20mm 20mm 20mm 20mm;" in css
    assert "content: counter(page);" in css
    assert "@page :first {" in css
    assert "@page :blank {" in css
    assert "blockquote, pre, table, figure { break-inside: avoid; }" in css
    assert "#title-block-header { display: none; }" in css
    assert "word-break: keep-all;" in css
    assert ".highlight {" in css
    assert ".callout-warning blockquote" in css
    assert css.index("/* PDF page rules */") < css.index("/* Cover */")


def test_custom_css_comes_last() -> None:
    css = build_stylesheet("novel", "pdf", cover_css=".x {}", custom_css="\nbody { color: red; }\n")
    assert css.endswith("/* Custom CSS */\nbody { color: red; }\n")
    assert build_stylesheet("novel", "epub", custom_css="   ") == build_stylesheet("novel", "epub")


def test_stylesheet_is_deterministic() -> None:
    assert build_stylesheet("manual", "pdf") == build_stylesheet("manual", "pdf")


def test_unknown_preset_raises() -> None:
    with pytest.raises(UnknownPresetError):
        build_stylesheet("auto", "epub")


def test_common_styles_per_format() -> None:
    epub = "\n".join(build_common_element_styles("epub"))
    pdf = "\n".join(build_common_element_styles("pdf"))
    assert "break-inside: avoid" not in epub
    assert "break-inside: avoid" in pdf
    assert "mark {" in epub and ".highlight {" not in epub


def test_fragment_builders() -> None:
    headings = "\n".join(build_heading_styles((2.0, 1.5, 1.25, 1.1, 1.0, 1.0), "pdf"))
    assert headings.count("break-before: page;") == 1
    assert "h3 {\n  font-size: 1.25em;" in headings
    body = "\n".join(build_body_styles("serif", "12pt", 1.5, "justify", True, "pdf"))
    assert "  word-break: keep-all;" in body
    assert "  hyphens: auto;" in body
    assert "text-indent: 2em;" in "\n".join(build_paragraph_styles("1em", "2em"))
    page = build_pdf_page_rules(PageMargins("1mm", "2mm", "3mm", "4mm"), "a4")
    assert "  margin: 1mm 4mm 2mm 3mm;" in page
    assert "  size: A4;" in page
