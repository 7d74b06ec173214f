"""Cover themes and the SVG / HTML covers rendered from them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Literal, Mapping

from .css import PAPER_SIZES
from .models import CoverArtifact, TargetFormat
from .utils import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_THEME = "apple"
DEFAULT_AUTHOR = "Unknown Author"
WRAP_WIDTH = 15
SVG_LINE_HEIGHT = 160

_ESCAPES = {"<": "&lt;", ">": "&gt;", "&": "&amp;", '"': "&quot;", "'": "&apos;"}


@dataclass(frozen=True, slots=True)
class ThemeColors:
    primary: str
    secondary: str
    accent: str
    background: str
    text: str


@dataclass(frozen=True, slots=True)
class CoverTheme:
    id: str
    name: str
    description: str
    colors: ThemeColors
    style: Literal["minimal", "gradient", "dark", "modern"]
    category: Literal["basic", "extended"] = "basic"

    @property
    def is_gradient(self) -> bool:
        return self.style == "gradient"


_THEMES = (
    CoverTheme(
        id="apple",
        name="Apple Style",
        description="Minimalist design inspired by Apple",
        colors=ThemeColors("#ffffff", "#f5f5f7", "#0071e3", "#000000", "#ffffff"),
        style="minimal",
    ),
    CoverTheme(
        id="modern_gradient",
        name="Modern Gradient",
        description="Vivid purple gradient with a bright accent",
        colors=ThemeColors("#667eea", "#764ba2", "#f093fb", "#1a1a2e", "#ffffff"),
        style="gradient",
    ),
    CoverTheme(
        id="dark_tech",
        name="Dark Tech",
        description="Dark background with a neon green accent",
        colors=ThemeColors("#0a0a0a", "#1a1a1a", "#00ff88", "#000000", "#ffffff"),
        style="dark",
    ),
    CoverTheme(
        id="nature",
        name="Nature",
        description="Deep greens for calm, organic topics",
        colors=ThemeColors("#2d5016", "#4a7c23", "#8bc34a", "#1b2e0d", "#ffffff"),
        style="modern",
    ),
    CoverTheme(
        id="classic_book",
        name="Classic Book",
        description="Warm browns reminiscent of a leather-bound book",
        colors=ThemeColors("#8b4513", "#d2691e", "#f4a460", "#2f1810", "#f5deb3"),
        style="minimal",
    ),
    CoverTheme(
        id="minimalist",
        name="Minimalist",
        description="Black type on a plain white page",
        colors=ThemeColors("#ffffff", "#f8f8f8", "#333333", "#ffffff", "#000000"),
        style="minimal",
    ),
)

THEMES: Mapping[str, CoverTheme] = MappingProxyType({theme.id: theme for theme in _THEMES})


def get_theme(theme_id: str | None) -> CoverTheme:
    """Return the named theme, falling back to the default one."""

    if theme_id and theme_id in THEMES:
        return THEMES[theme_id]
    if theme_id:
        logger.debug("Unknown cover theme %r, using %s", theme_id, DEFAULT_THEME)
    return THEMES[DEFAULT_THEME]


def all_themes() -> tuple[CoverTheme, ...]:
    return tuple(THEMES.values())


def escape_markup(value: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in value)


def wrap_title(title: str, width: int = WRAP_WIDTH) -> list[str]:
    """Greedy word wrap by character count.

    Titles shorter than ``width`` stay on one line; a word longer than
    ``width`` gets a line of its own.
    """

    title = " ".join(title.split())
    if len(title) < width:
        return [title]
    lines: list[str] = []
    current = ""
    for word in title.split(" "):
        candidate = f"{current} {word}" if current else word
        if current and len(candidate) > width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def _background(theme: CoverTheme) -> str:
    return "url(#bgGrad)" if theme.is_gradient else theme.colors.background


def render_svg_cover(title: str, author: str | None, theme: CoverTheme) -> str:
    colors = theme.colors
    tspans = "".join(
        f'<tspan x="800" dy="{0 if index == 0 else SVG_LINE_HEIGHT}">{escape_markup(line)}</tspan>'
        for index, line in enumerate(wrap_title(title))
    )
    author_line = escape_markup((author or DEFAULT_AUTHOR).upper())
    return f"""<svg width="1600" height="2400" viewBox="0 0 1600 2400" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="bgGrad" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{colors.primary};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{colors.secondary};stop-opacity:1" />
    </linearGradient>
    <filter id="shadow" x="-20%" y="-20%" width="140%" height="140%">
      <feGaussianBlur in="SourceAlpha" stdDeviation="20" />
      <feOffset dx="10" dy="10" result="offsetblur" />
      <feComponentTransfer>
        <feFuncA type="linear" slope="0.5" />
      </feComponentTransfer>
      <feMerge>
        <feMergeNode />
        <feMergeNode in="SourceGraphic" />
      </feMerge>
    </filter>
  </defs>
  <rect width="100%" height="100%" fill="{_background(theme)}" />
  <rect x="80" y="80" width="1440" height="2240" fill="none" stroke="{colors.accent}" stroke-width="4" opacity="0.5" />
  <g filter="url(#shadow)">
    <text x="800" y="800" font-family="'Noto Sans KR', sans-serif" font-size="140" font-weight="900" fill="{colors.text}" text-anchor="middle">{tspans}</text>
  </g>
  <line x1="400" y1="1200" x2="1200" y2="1200" stroke="{colors.accent}" stroke-width="2" opacity="0.8" />
  <text x="800" y="2100" font-family="'Noto Sans KR', sans-serif" font-size="80" font-weight="300" fill="{colors.text}" text-anchor="middle" letter-spacing="10">{author_line}</text>
</svg>
"""


def render_pdf_cover(title: str, author: str | None, theme: CoverTheme, paper_size: str = "a4") -> tuple[str, str]:
    """Return the ``(html, css)`` pair for a PDF cover page."""

    colors = theme.colors
    if theme.is_gradient:
        background = f"linear-gradient(135deg, {colors.primary}, {colors.secondary})"
    else:
        background = colors.background
    size = PAPER_SIZES.get(paper_size.lower(), paper_size)
    css = f""".pdf-cover-page {{
  page: cover;
  width: 100%;
  height: 100%;
  background: {background};
  color: {colors.text};
  display: flex;
  flex-direction: column;
  justify-content: center;
  align-items: center;
  text-align: center;
  position: relative;
  break-after: page;
}}
.pdf-cover-frame {{
  width: 80%;
  height: 90%;
  border: 1px solid {colors.accent}66;
  display: flex;
  flex-direction: column;
  justify-content: space-between;
  padding: 40px;
  box-sizing: border-box;
}}
.pdf-cover-title-group h1 {{
  font-size: 48pt;
  font-weight: 900;
  margin: 0;
  color: {colors.text} !important;
  border: none !important;
  padding: 0 !important;
}}
.pdf-cover-divider {{
  width: 60px;
  height: 2px;
  background: {colors.accent};
  margin: 30px auto;
}}
.pdf-cover-author {{
  font-size: 24pt;
  font-weight: 300;
  letter-spacing: 0.2em;
}}
@page cover {{
  margin: 0;
  size: {size};
}}
"""
    html = f"""<div class="pdf-cover-page">
  <div class="pdf-cover-frame">
    <div class="pdf-cover-title-group">
      <h1>{escape_markup(title)}</h1>
      <div class="pdf-cover-divider"></div>
    </div>
    <div class="pdf-cover-author">{escape_markup(author or DEFAULT_AUTHOR)}</div>
  </div>
</div>
"""
    return html, css


def generate_cover_artifact(
    title: str,
    author: str | None,
    theme_id: str | None,
    output_format: TargetFormat,
    *,
    output_path: Path | None = None,
    paper_size: str = "a4",
) -> CoverArtifact:
    """Build the cover for one format.

    EPUB covers are SVG files and need ``output_path``; PDF covers are
    returned as an HTML fragment plus the CSS that lays it out.
    """

    theme = get_theme(theme_id)
    if output_format == "epub":
        if output_path is None:
            raise ValueError("An output path is required for EPUB covers")
        atomic_write(output_path, render_svg_cover(title, author, theme))
        logger.debug("Wrote EPUB cover %s with theme %s", output_path, theme.id)
        return CoverArtifact(output_format="epub", theme_id=theme.id, path=output_path)
    html, css = render_pdf_cover(title, author, theme, paper_size)
    return CoverArtifact(output_format="pdf", theme_id=theme.id, html=html, css=css)


__all__ = [
    "CoverTheme",
    "DEFAULT_THEME",
    "THEMES",
    "ThemeColors",
    "all_themes",
    "escape_markup",
    "generate_cover_artifact",
    "get_theme",
    "render_pdf_cover",
    "render_svg_cover",
    "wrap_title",
]
