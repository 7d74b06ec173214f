from pathlib import Path

from markdown_document.logging import RunLogEntry, RunLogger, StageTimings, read_run_log
from markdown_document.utils import (
    atomic_write,
    ensure_artifact_paths,
    generate_run_id,
    normalize_line_endings,
    remove_files,
    title_from_filename,
)


def test_normalize_line_endings() -> None:
    assert normalize_line_endings("a\r\nb\rc\n") == "a\nb\nc\n"


def test_generate_run_id_unique() -> None:
    first = generate_run_id()
    second = generate_run_id()
    assert first != second
    assert first.startswith("run-")


def test_title_from_filename() -> None:
    assert title_from_filename(Path("my_first-book.md")) == "my first book"
    assert title_from_filename(Path("__.md")) == "Untitled"


def test_artifact_paths(tmp_path: Path) -> None:
    paths = ensure_artifact_paths(tmp_path / "work", "run-1")
    assert paths.base_dir.is_dir()
    assert paths.markdown("pdf") == tmp_path / "work" / "run-1-pdf.md"
    assert paths.stylesheet("epub") == tmp_path / "work" / "run-1-epub.css"
    assert paths.cover_svg.name == "run-1-cover.svg"
    assert paths.cover_fragment.name == "run-1-cover.html"
    assert sorted(path.name for path in paths.for_formats(["epub"])) == [
        "run-1-cover.html",
        "run-1-cover.svg",
        "run-1-epub.css",
        "run-1-epub.md",
    ]


def test_atomic_write_and_remove(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "file.md"
    atomic_write(target, "content")
    assert target.read_text(encoding="utf-8") == "content"
    assert remove_files([target, tmp_path / "never-existed.md"]) == []
    assert not target.exists()


def test_run_logger_appends_json_lines(tmp_path: Path) -> None:
    log_file = tmp_path / "runs" / "log.jsonl"
    logger = RunLogger(log_file)
    for status in ("success", "failure"):
        logger.append(
            RunLogEntry(
                run_id=f"run-{status}",
                source="note.md",
                status=status,
                formats=["epub"],
                preset="balanced",
                warnings=[],
                error_code=None if status == "success" else "NOT_FOUND",
                timings=StageTimings(analyze_ms=1.5),
            )
        )
    entries = read_run_log(log_file)
    assert [entry["status"] for entry in entries] == ["success", "failure"]
    assert entries[0]["timings"]["analyze_ms"] == 1.5
    assert entries[1]["error_code"] == "NOT_FOUND"


def test_disabled_run_logger(tmp_path: Path) -> None:
    logger = RunLogger(None)
    logger.append(
        RunLogEntry("run-x", "a.md", "success", ["pdf"], None, [], None, StageTimings())
    )
    assert read_run_log(tmp_path / "log.jsonl") == []
