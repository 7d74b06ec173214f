import datetime as dt
from pathlib import Path

from markdown_document.metadata import render_header, resolve_metadata, split_frontmatter
from markdown_document.models import DocumentMetadata


def test_split_valid_header() -> None:
    header = split_frontmatter("---\ntitle: Hello\nauthor: [Ann, Bob]\n---\n\nBody text")
    assert header.status == "ok"
    assert header.body == "Body text"
    assert header.data["title"] == "Hello"
    assert header.end_line == 3
    assert header.warning is None


def test_invalid_header_is_stripped_with_warning() -> None:
    header = split_frontmatter("---\ntitle: [unclosed\n---\nBody")
    assert header.status == "invalid"
    assert header.body == "Body"
    assert header.data == {}
    assert header.warning is not None
    assert header.warning.startswith("Invalid metadata header ignored")


def test_non_mapping_header_is_invalid() -> None:
    header = split_frontmatter("---\n- a\n- b\n---\nBody")
    assert header.status == "invalid"
    assert "expected a mapping" in (header.error or "")


def test_unclosed_header_stays_in_body() -> None:
    text = "---\ntitle: x\nbody"
    header = split_frontmatter(text)
    assert header.status == "unclosed"
    assert header.body == text
    assert header.warning == "Metadata header is not closed; treated as body text"


def test_missing_and_empty_header() -> None:
    assert split_frontmatter("plain").status == "missing"
    empty = split_frontmatter("---\n---\nbody")
    assert empty.status == "ok"
    assert empty.data == {}
    assert empty.body == "body"


def test_resolve_metadata_from_header() -> None:
    data = {
        "title": "Book",
        "authors": ["Ann", "Bob"],
        "language": "ko",
        "date": dt.date(2024, 5, 1),
        "isbn": 9781234567897,
    }
    metadata = resolve_metadata(data, Path("notes.md"), chapter_count=3)
    assert metadata.title == "Book"
    assert metadata.author == "Ann, Bob"
    assert metadata.language == "ko"
    assert metadata.date == "2024-05-01"
    assert metadata.isbn == "9781234567897"
    assert metadata.chapter_count == 3


def test_overrides_win_over_header() -> None:
    data = {"title": "Header", "author": "Header Author", "lang": "en"}
    metadata = resolve_metadata(data, Path("x.md"), title="Override", author="Me", language="fr")
    assert (metadata.title, metadata.author, metadata.language) == ("Override", "Me", "fr")


def test_title_falls_back_to_filename() -> None:
    assert resolve_metadata({}, Path("my_great-note.md")).title == "my great note"
    assert resolve_metadata({"title": "  "}, None).title == "Untitled"
    assert resolve_metadata({}, Path("x.md")).author is None


def test_render_header_per_format() -> None:
    metadata = DocumentMetadata(title="T", author="A", description="About", isbn="123")
    epub = render_header(metadata, extended=True)
    pdf = render_header(metadata, extended=False)
    assert epub.startswith("---\ntitle: T\nauthor: A\n")
    assert "description: About" in epub
    assert "identifier:" in epub
    assert pdf == "---\ntitle: T\nauthor: A\n---\n"


def test_render_header_quotes_yaml_specials() -> None:
    header = render_header(DocumentMetadata(title="Part: One"), extended=False)
    assert split_frontmatter(header + "body").data == {"title": "Part: One"}
