"""Reusable CSS fragments shared by the EPUB and PDF stylesheets."""

from __future__ import annotations

from typing import Sequence

from .models import TargetFormat
from .typography import HEADING_LEVELS, MONO_STACK, PageMargins, format_number

PAPER_SIZES = {"a4": "A4", "letter": "letter"}

CALLOUT_COLORS = {
    "note": "#448aff",
    "info": "#00b8d4",
    "tip": "#00bfa5",
    "success": "#00c853",
    "question": "#64dd17",
    "warning": "#ff9100",
    "failure": "#ff5252",
    "danger": "#ff1744",
    "bug": "#f50057",
    "example": "#7c4dff",
    "quote": "#9e9e9e",
}


def build_image_styles() -> list[str]:
    return [
        "img { max-width: 100%; height: auto; display: block; margin: 1em auto; }",
        "figure { margin: 1.5em 0; text-align: center; }",
        "figcaption { font-size: 0.9em; color: #666; margin-top: 0.5em; font-style: italic; }",
    ]


def build_table_styles() -> list[str]:
    return [
        "table { width: 100%; border-collapse: collapse; margin: 1.5em 0; }",
        "th, td { border: 1px solid #ddd; padding: 0.5em; text-align: left; }",
        "th { background-color: #f9f9f9; }",
    ]


def build_code_styles(monospace: str = MONO_STACK) -> list[str]:
    return [
        f"code {{ font-family: {monospace}; background-color: #f4f4f4; padding: 0.2em 0.4em; "
        "border-radius: 3px; font-size: 0.9em; }",
        "pre { background-color: #f4f4f4; padding: 1em; border-radius: 5px; overflow-x: auto; margin: 1.5em 0; }",
        "pre code { background-color: transparent; padding: 0; font-size: 0.85em; }",
    ]


def build_blockquote_styles() -> str:
    return "blockquote { margin: 1.5em 0; padding: 0.5em 1em; border-left: 4px solid #ddd; color: #666; font-style: italic; }"


def build_highlight_styles(output_format: TargetFormat) -> str:
    if output_format == "pdf":
        return ".highlight { background-color: #fff3a3; padding: 0 0.1em; }"
    return "mark { background-color: #fff3a3; color: inherit; padding: 0 0.1em; }"


def build_callout_styles(output_format: TargetFormat) -> list[str]:
    """Callouts render as blockquotes; PDF output also gets per-type accents."""

    if output_format != "pdf":
        return ["blockquote > p:first-child > strong:only-child { font-style: normal; }"]
    css = [
        ".callout blockquote { font-style: normal; color: #333; background-color: #f7f9fc; "
        "border-left: 4px solid #448aff; border-radius: 3px; }",
        ".callout blockquote > p:first-child strong { display: block; margin-bottom: 0.3em; }",
    ]
    css.extend(
        f".callout-{kind} blockquote {{ border-left-color: {color}; }}" for kind, color in CALLOUT_COLORS.items()
    )
    return css


def build_heading_styles(scale: Sequence[float], output_format: TargetFormat = "epub") -> list[str]:
    css: list[str] = []
    for index, (level, size) in enumerate(zip(HEADING_LEVELS, scale)):
        css += [
            f"{level} {{",
            f"  font-size: {format_number(size)}em;",
            "  margin-top: 1.5em;",
            "  margin-bottom: 0.5em;",
            "  font-weight: bold;",
            "  line-height: 1.2;",
            "  color: #1a1a1a;",
        ]
        if output_format == "pdf":
            if index == 0:
                css.append("  break-before: page;")
            if index < 3:
                css += ["  page-break-after: avoid;", "  break-after: avoid;"]
        css += ["}", ""]
    return css


def build_pdf_body_extras() -> list[str]:
    return [
        "word-break: keep-all;",
        "overflow-wrap: break-word;",
        "orphans: 3;",
        "widows: 3;",
    ]


def build_body_styles(
    font_family: str,
    font_size: str,
    line_height: float,
    justification: str,
    hyphenation: bool,
    output_format: TargetFormat,
) -> list[str]:
    css = [
        "body {",
        f"  font-family: {font_family};",
        f"  font-size: {font_size};",
        f"  line-height: {format_number(line_height)};",
        f"  text-align: {justification};",
        "  color: #333;",
        "  margin: 0;",
    ]
    if output_format == "pdf":
        css.extend(f"  {rule}" for rule in build_pdf_body_extras())
    if hyphenation:
        css += ["  hyphens: auto;", "  -webkit-hyphens: auto;", "  -ms-hyphens: auto;"]
    css.append("}")
    return css


def build_paragraph_styles(spacing: str, text_indent: str | None = None) -> list[str]:
    css = ["p {", "  margin-top: 0;", f"  margin-bottom: {spacing};"]
    if text_indent:
        css.append(f"  text-indent: {text_indent};")
    css.append("}")
    return css


def build_pdf_page_rules(margins: PageMargins, paper_size: str = "a4") -> list[str]:
    size = PAPER_SIZES.get(paper_size.lower(), paper_size)
    return [
        "/* PDF page rules */",
        "@page {",
        f"  size: {size};",
        f"  margin: {margins.top} {margins.right} {margins.bottom} {margins.left};",
        "",
        "  @bottom-center {",
        "    content: counter(page);",
        "    font-size: 10pt;",
        "    color: #666;",
        "  }",
        "}",
        "",
        "/* Cover page: no margins, no page number */",
        "@page :first {",
        "  margin: 0;",
        "  @top-center { content: none; }",
        "  @bottom-center { content: none; }",
        "}",
        "",
        "/* Blank pages: no page number */",
        "@page :blank {",
        "  @bottom-center { content: none; }",
        "}",
    ]


def build_pdf_break_rules() -> str:
    return "blockquote, pre, table, figure { break-inside: avoid; }"


def build_pdf_title_block_hide() -> str:
    return "#title-block-header { display: none; }"


def build_common_element_styles(output_format: TargetFormat = "epub") -> list[str]:
    css = [
        "/* Common element styles */",
        *build_image_styles(),
        build_blockquote_styles(),
    ]
    if output_format == "pdf":
        css.append(build_pdf_break_rules())
    css.extend(build_code_styles())
    css.extend(build_table_styles())
    css.append(build_highlight_styles(output_format))
    css.extend(build_callout_styles(output_format))
    return css


__all__ = [
    "CALLOUT_COLORS",
    "PAPER_SIZES",
    "build_blockquote_styles",
    "build_body_styles",
    "build_callout_styles",
    "build_code_styles",
    "build_common_element_styles",
    "build_heading_styles",
    "build_highlight_styles",
    "build_image_styles",
    "build_paragraph_styles",
    "build_pdf_body_extras",
    "build_pdf_break_rules",
    "build_pdf_page_rules",
    "build_pdf_title_block_hide",
    "build_table_styles",
]
