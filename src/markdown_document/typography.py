"""Typography presets and the CSS they generate."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping

from .models import TargetFormat

SERIF_STACK = '"Noto Serif CJK KR", "Noto Serif KR", "Batang", serif'
SANS_STACK = '"Noto Sans CJK KR", "Noto Sans KR", "Malgun Gothic", sans-serif'
MONO_STACK = '"Noto Sans Mono CJK KR", "D2Coding", monospace'

HEADING_LEVELS = ("h1", "h2", "h3", "h4", "h5", "h6")


class UnknownPresetError(KeyError):
    """Raised when a typography preset id is not registered."""

    def __init__(self, preset_id: str) -> None:
        super().__init__(preset_id)
        self.preset_id = preset_id

    def __str__(self) -> str:
        return f"Typography preset not found: {self.preset_id}"


@dataclass(frozen=True, slots=True)
class PageMargins:
    top: str
    bottom: str
    left: str
    right: str


@dataclass(frozen=True, slots=True)
class TypographySettings:
    font_size: str
    line_height: float
    paragraph_spacing: str
    page_margins: PageMargins
    font_family: str
    heading_scale: tuple[float, float, float, float, float, float]
    text_indent: str | None = None
    hyphenation: bool = False
    justification: Literal["left", "justify"] = "left"


@dataclass(frozen=True, slots=True)
class TypographyPreset:
    id: str
    name: str
    description: str
    settings: TypographySettings
    css_rules: str = ""


@dataclass(frozen=True, slots=True)
class CSSGenerationOptions:
    output_format: TargetFormat = "epub"
    include_page_breaks: bool = True
    additional_css: str | None = None


def _rules(css: str) -> str:
    return textwrap.dedent(css).strip()


_PRESETS = (
    TypographyPreset(
        id="novel",
        name="Novel",
        description="Serif body text with indented paragraphs for fiction and essays",
        settings=TypographySettings(
            font_size="16pt",
            line_height=1.8,
            text_indent="2em",
            paragraph_spacing="0.5em",
            page_margins=PageMargins(top="25mm", bottom="25mm", left="20mm", right="20mm"),
            font_family=SERIF_STACK,
            hyphenation=True,
            justification="justify",
            heading_scale=(1.8, 1.6, 1.4, 1.2, 1.1, 1.0),
        ),
        css_rules=_rules(
            """
            p:first-of-type::first-letter {
              font-size: 3em;
              float: left;
              line-height: 1;
              margin-right: 0.1em;
              font-weight: bold;
            }
            hr {
              margin: 2em auto;
              width: 50%;
              border: none;
              border-top: 1px solid #999;
            }
            """
        ),
    ),
    TypographyPreset(
        id="presentation",
        name="Presentation",
        description="Large type and accented headings for slides and handouts",
        settings=TypographySettings(
            font_size="18pt",
            line_height=1.6,
            paragraph_spacing="1em",
            page_margins=PageMargins(top="30mm", bottom="30mm", left="25mm", right="25mm"),
            font_family=SANS_STACK,
            heading_scale=(2.0, 1.8, 1.6, 1.4, 1.2, 1.1),
        ),
        css_rules=_rules(
            """
            h1, h2, h3 {
              color: #2c3e50;
              border-bottom: 2px solid #3498db;
              padding-bottom: 0.3em;
            }
            """
        ),
    ),
    TypographyPreset(
        id="review",
        name="Review",
        description="Compact layout for reviews and technical notes",
        settings=TypographySettings(
            font_size="15pt",
            line_height=1.7,
            paragraph_spacing="0.8em",
            page_margins=PageMargins(top="22mm", bottom="22mm", left="22mm", right="22mm"),
            font_family=SANS_STACK,
            heading_scale=(1.9, 1.7, 1.5, 1.3, 1.1, 1.0),
        ),
        css_rules=_rules(
            f"""
            blockquote {{
              border-left: 4px solid #3498db;
              padding-left: 1em;
              margin: 1.5em 0;
              color: #555;
            }}
            code {{
              background-color: #f4f4f4;
              padding: 0.2em 0.4em;
              border-radius: 3px;
              font-family: {MONO_STACK};
            }}
            """
        ),
    ),
    TypographyPreset(
        id="ebook",
        name="E-book",
        description="General purpose settings for e-book readers",
        settings=TypographySettings(
            font_size="14pt",
            line_height=1.6,
            paragraph_spacing="0.6em",
            page_margins=PageMargins(top="20mm", bottom="20mm", left="18mm", right="18mm"),
            font_family=SANS_STACK,
            heading_scale=(1.7, 1.5, 1.3, 1.2, 1.1, 1.0),
        ),
        css_rules=_rules(
            """
            body {
              orphans: 2;
              widows: 2;
            }
            h1, h2, h3 {
              page-break-after: avoid;
            }
            figure figcaption {
              font-size: 0.9em;
              text-align: center;
              font-style: italic;
              margin-top: 0.5em;
            }
            """
        ),
    ),
    TypographyPreset(
        id="balanced",
        name="Balanced",
        description="Default for mixed documents with some images, tables and code",
        settings=TypographySettings(
            font_size="14pt",
            line_height=1.65,
            paragraph_spacing="0.7em",
            page_margins=PageMargins(top="20mm", bottom="20mm", left="20mm", right="20mm"),
            font_family=SANS_STACK,
            heading_scale=(1.8, 1.5, 1.3, 1.15, 1.05, 1.0),
        ),
        css_rules=_rules(
            """
            body {
              orphans: 2;
              widows: 2;
            }
            """
        ),
    ),
    TypographyPreset(
        id="text_heavy",
        name="Text heavy",
        description="Long-form reading with serif type and justified paragraphs",
        settings=TypographySettings(
            font_size="15pt",
            line_height=1.75,
            paragraph_spacing="0.6em",
            page_margins=PageMargins(top="25mm", bottom="25mm", left="22mm", right="22mm"),
            font_family=SERIF_STACK,
            hyphenation=True,
            justification="justify",
            heading_scale=(1.7, 1.5, 1.3, 1.15, 1.05, 1.0),
        ),
        css_rules=_rules(
            """
            body {
              orphans: 3;
              widows: 3;
            }
            hr {
              margin: 2em auto;
              width: 40%;
              border: none;
              border-top: 1px solid #aaa;
            }
            """
        ),
    ),
    TypographyPreset(
        id="image_heavy",
        name="Image heavy",
        description="Keeps figures whole and limits image height for illustrated documents",
        settings=TypographySettings(
            font_size="14pt",
            line_height=1.6,
            paragraph_spacing="0.6em",
            page_margins=PageMargins(top="18mm", bottom="18mm", left="15mm", right="15mm"),
            font_family=SANS_STACK,
            heading_scale=(1.7, 1.5, 1.3, 1.2, 1.1, 1.0),
        ),
        css_rules=_rules(
            """
            img {
              max-height: 80vh;
              object-fit: contain;
            }
            figure {
              break-inside: avoid;
              page-break-inside: avoid;
              margin: 1.5em 0;
            }
            """
        ),
    ),
    TypographyPreset(
        id="table_heavy",
        name="Table heavy",
        description="Smaller table type and unbroken rows for data-rich documents",
        settings=TypographySettings(
            font_size="13pt",
            line_height=1.5,
            paragraph_spacing="0.6em",
            page_margins=PageMargins(top="18mm", bottom="18mm", left="12mm", right="12mm"),
            font_family=SANS_STACK,
            heading_scale=(1.7, 1.5, 1.3, 1.2, 1.1, 1.0),
        ),
        css_rules=_rules(
            """
            table {
              font-size: 0.85em;
            }
            tr {
              break-inside: avoid;
              page-break-inside: avoid;
            }
            """
        ),
    ),
    TypographyPreset(
        id="manual",
        name="Manual",
        description="Wrapped code blocks and tight spacing for technical manuals",
        settings=TypographySettings(
            font_size="13pt",
            line_height=1.55,
            paragraph_spacing="0.6em",
            page_margins=PageMargins(top="20mm", bottom="20mm", left="18mm", right="18mm"),
            font_family=SANS_STACK,
            heading_scale=(1.7, 1.45, 1.25, 1.1, 1.05, 1.0),
        ),
        css_rules=_rules(
            f"""
            pre {{
              white-space: pre-wrap;
              word-wrap: break-word;
            }}
            code {{
              font-family: {MONO_STACK};
              font-size: 0.9em;
            }}
            """
        ),
    ),
)

PRESETS: Mapping[str, TypographyPreset] = MappingProxyType({preset.id: preset for preset in _PRESETS})


def get_preset(preset_id: str) -> TypographyPreset | None:
    return PRESETS.get(preset_id)


def all_presets() -> tuple[TypographyPreset, ...]:
    return tuple(PRESETS.values())


def format_number(value: float) -> str:
    """Render a CSS number rounded to three decimals without trailing zeros."""

    text = f"{round(value, 3):.3f}".rstrip("0").rstrip(".")
    return text or "0"


def generate_preset_css(preset_id: str, options: CSSGenerationOptions | None = None) -> str:
    """Render a preset as a stylesheet.

    The output depends only on the preset and ``options``; the same inputs
    always produce byte-identical CSS.
    """

    preset = get_preset(preset_id)
    if preset is None:
        raise UnknownPresetError(preset_id)
    options = options or CSSGenerationOptions()
    settings = preset.settings
    is_pdf = options.output_format == "pdf"

    css = [f"/* Typography preset: {preset.name} */", ""]
    css += [
        ":root {",
        f"  font-size: {settings.font_size};",
        f"  line-height: {format_number(settings.line_height)};",
        "}",
        "",
    ]

    css += [
        "body {",
        f"  font-family: {settings.font_family};",
        "  font-size: 1rem;",
        f"  line-height: {format_number(settings.line_height)};",
        f"  text-align: {settings.justification};",
    ]
    if settings.hyphenation:
        css += ["  hyphens: auto;", "  -webkit-hyphens: auto;", "  -ms-hyphens: auto;"]
    css += ["}", ""]

    if is_pdf and options.include_page_breaks:
        margins = settings.page_margins
        css += [
            "@page {",
            f"  margin-top: {margins.top};",
            f"  margin-bottom: {margins.bottom};",
            f"  margin-left: {margins.left};",
            f"  margin-right: {margins.right};",
            "}",
            "",
        ]

    css += [
        "p {",
        f"  margin-top: {settings.paragraph_spacing};",
        f"  margin-bottom: {settings.paragraph_spacing};",
    ]
    if settings.text_indent:
        css.append(f"  text-indent: {settings.text_indent};")
    css += ["}", ""]

    for index, (level, scale) in enumerate(zip(HEADING_LEVELS, settings.heading_scale)):
        css += [
            f"{level} {{",
            f"  font-size: {format_number(scale)}em;",
            f"  margin-top: {format_number(1 / scale)}em;",
            f"  margin-bottom: {format_number(0.5 / scale)}em;",
            "  font-weight: bold;",
            "  line-height: 1.2;",
        ]
        if is_pdf and index < 3:
            css += ["  page-break-after: avoid;", "  break-after: avoid;"]
        css += ["}", ""]

    if preset.css_rules:
        css += ["/* Custom styles */", preset.css_rules, ""]

    if options.additional_css:
        css += ["/* Additional styles */", options.additional_css.strip(), ""]

    return "\n".join(css)


__all__ = [
    "CSSGenerationOptions",
    "PRESETS",
    "PageMargins",
    "TypographyPreset",
    "TypographySettings",
    "UnknownPresetError",
    "all_presets",
    "format_number",
    "generate_preset_css",
    "get_preset",
]
