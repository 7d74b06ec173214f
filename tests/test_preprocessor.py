from pathlib import Path

from PIL import Image

from markdown_document.preprocessor import MarkdownPreprocessor, generate_clean_markdown, preprocess

NOTE = """---
title: My Book
author: Jane Doe
lang: en
description: A short book
---

# Chapter One

%% drafting note %%
![[photo.png|200]]

See [[Other]] and ==this part==.

> [!tip] Remember
> Keep going.

### Skipped level

```
[[kept]] ==kept==
```
"""


def write_note(tmp_path: Path, text: str = NOTE) -> Path:
    (tmp_path / "images").mkdir(exist_ok=True)
    Image.new("RGB", (20, 10)).save(tmp_path / "images" / "photo.png")
    source = tmp_path / "note.md"
    source.write_text(text, encoding="utf-8")
    return source


def test_preprocess_epub(tmp_path: Path) -> None:
    source = write_note(tmp_path)
    result = MarkdownPreprocessor().preprocess(NOTE, source, "epub")
    content = result.content
    assert not content.startswith("---")
    assert "%%" not in content
    assert "![[" not in content
    assert "[Other](Other.md)" in content
    assert "<mark>this part</mark>" in content
    assert "> **Remember**" in content
    assert "## Skipped level" in content
    assert "[[kept]] ==kept==" in content
    assert "{width=200px}" in content

    assert result.metadata.title == "My Book"
    assert result.metadata.author == "Jane Doe"
    assert result.metadata.language == "en"
    assert result.metadata.chapter_count == 1
    assert result.metadata.image_count == 1
    assert result.resolved_images[0].found
    assert result.resolved_images[0].width == 200
    assert result.missing_images == ()
    assert result.warnings == (
        "Removed 1 Obsidian comment(s)",
        "Converted 1 Obsidian embed(s) to standard images",
        "Converted 1 wiki-link(s) to standard links",
        "Rendered 1 highlight span(s)",
        "Rendered 1 callout block(s)",
        "Normalized 1 heading level(s)",
    )


def test_preprocess_pdf_uses_spans_and_divs(tmp_path: Path) -> None:
    source = write_note(tmp_path)
    result = preprocess(NOTE, source, "pdf")
    assert '<span class="highlight">this part</span>' in result.content
    assert "::: {.callout .callout-tip}" in result.content
    assert "<mark>" not in result.content


def test_missing_image_warning(tmp_path: Path) -> None:
    source = tmp_path / "note.md"
    result = preprocess("Text\n\n![[nope.png]]\n", source, "epub")
    assert "Image not found: nope.png" in result.warnings
    assert len(result.missing_images) == 1
    assert result.missing_images[0].absolute_path == tmp_path / "nope.png"
    assert f"![nope]({(tmp_path / 'nope.png').as_posix()})" in result.content


def test_overrides_and_filename_title(tmp_path: Path) -> None:
    source = tmp_path / "reading_notes.md"
    plain = preprocess("## One\n\n## Two\n", source, "epub")
    assert plain.metadata.title == "reading notes"
    assert plain.metadata.chapter_count == 2
    custom = preprocess("## One\n", source, "epub", title="Custom", author="Me")
    assert (custom.metadata.title, custom.metadata.author) == ("Custom", "Me")


def test_invalid_header_is_dropped_with_warning(tmp_path: Path) -> None:
    result = preprocess("---\ntitle: [broken\n---\nBody\n", tmp_path / "x.md", "epub")
    assert result.content.startswith("Body")
    assert result.metadata.title == "x"
    assert any(warning.startswith("Invalid metadata header ignored") for warning in result.warnings)


def test_crlf_input(tmp_path: Path) -> None:
    result = preprocess("---\r\ntitle: Win\r\n---\r\n\r\nLine\r\n", tmp_path / "w.md", "epub")
    assert result.metadata.title == "Win"
    assert "\r" not in result.content


def test_clean_markdown_layout(tmp_path: Path) -> None:
    source = write_note(tmp_path)
    epub = generate_clean_markdown(preprocess(NOTE, source, "epub"), "epub")
    pdf = generate_clean_markdown(preprocess(NOTE, source, "pdf"), "pdf")
    assert epub.startswith("---\ntitle: My Book\nauthor: Jane Doe\nlang: en\n")
    assert "description: A short book" in epub
    assert "description" not in pdf
    assert "---\n\n# Chapter One" in epub
    assert epub.endswith("```\n")
    assert not epub.endswith("\n\n")


def test_clean_markdown_for_empty_body(tmp_path: Path) -> None:
    result = preprocess("---\ntitle: Empty\n---\n", tmp_path / "e.md", "pdf")
    assert generate_clean_markdown(result, "pdf") == "---\ntitle: Empty\n---\n"


def test_comparisons_in_separate_paragraphs_stay_plain(tmp_path: Path) -> None:
    result = MarkdownPreprocessor().preprocess("# T\n\nIf a == b then\n\nwe know c == d.\n", tmp_path / "t.md", "epub")
    assert result.content == "# T\n\nIf a == b then\n\nwe know c == d.\n"
    assert not any(warning.startswith("Rendered") for warning in result.warnings)


def test_word_count_skips_metadata_header(tmp_path: Path) -> None:
    text = "---\ntitle: Alpha Beta\nauthor: Gamma Delta\n---\n\nOne two three.\n"
    result = preprocess(text, tmp_path / "w.md", "epub")
    assert result.metadata.word_count == 3
