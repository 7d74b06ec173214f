from pathlib import Path

import pytest

from markdown_document.covers import (
    all_themes,
    escape_markup,
    generate_cover_artifact,
    get_theme,
    render_svg_cover,
    wrap_title,
)


def test_wrap_title() -> None:
    assert wrap_title("Short") == ["Short"]
    assert wrap_title("The Quick Brown Fox Jumps") == ["The Quick Brown", "Fox Jumps"]
    assert wrap_title("Supercalifragilistic is long") == ["Supercalifragilistic", "is long"]


def test_escape_markup() -> None:
    assert escape_markup("<b>&\"'") == "&lt;b&gt;&amp;&quot;&apos;"


def test_theme_registry_and_fallback() -> None:
    ids = [theme.id for theme in all_themes()]
    assert ids == ["apple", "modern_gradient", "dark_tech", "nature", "classic_book", "minimalist"]
    assert get_theme("nope").id == "apple"
    assert get_theme(None).id == "apple"
    assert get_theme("nature").colors.accent == "#8bc34a"


def test_epub_cover_is_escaped_svg(tmp_path: Path) -> None:
    target = tmp_path / "cover.svg"
    artifact = generate_cover_artifact("Tom & Jerry <3", "ann lee", "apple", "epub", output_path=target)
    assert artifact.path == target
    assert artifact.theme_id == "apple"
    svg = target.read_text(encoding="utf-8")
    assert 'width="1600" height="2400"' in svg
    assert "Tom &amp; Jerry &lt;3" in svg
    assert "<3" not in svg
    assert "ANN LEE" in svg
    assert '<rect width="100%" height="100%" fill="#000000" />' in svg


def test_svg_lines_and_gradient() -> None:
    svg = render_svg_cover("A Rather Long Title Indeed", None, get_theme("modern_gradient"))
    assert svg.count("<tspan") == 2
    assert 'dy="0"' in svg and 'dy="160"' in svg
    assert 'fill="url(#bgGrad)"' in svg
    assert "UNKNOWN AUTHOR" in svg


def test_epub_cover_needs_path() -> None:
    with pytest.raises(ValueError):
        generate_cover_artifact("T", None, "apple", "epub")


def test_pdf_cover_fragment() -> None:
    artifact = generate_cover_artifact("A <Title>", "Ann", "modern_gradient", "pdf", paper_size="letter")
    assert artifact.path is None
    assert artifact.html is not None and artifact.css is not None
    assert '<div class="pdf-cover-page">' in artifact.html
    assert "<h1>A &lt;Title&gt;</h1>" in artifact.html
    assert "linear-gradient(135deg, #667eea, #764ba2)" in artifact.css
    assert "@page cover {\n  margin: 0;\n  size: letter;\n}" in artifact.css
    plain = generate_cover_artifact("T", None, "dark_tech", "pdf")
    assert "size: A4;" in plain.css
    assert "Unknown Author" in plain.html
