from pathlib import Path

from typer.testing import CliRunner

from markdown_document.cli import app

runner = CliRunner()


def write_config(tmp_path: Path) -> Path:
    config = tmp_path / "config.toml"
    config.write_text(
        f'[runtime]\nrun_log = false\ntemp_dir = "{(tmp_path / "tmp").as_posix()}"\n',
        encoding="utf-8",
    )
    return config


def test_presets_lists_registry() -> None:
    result = runner.invoke(app, ["presets"])
    assert result.exit_code == 0
    assert "novel" in result.output


def test_themes_lists_registry() -> None:
    result = runner.invoke(app, ["themes"])
    assert result.exit_code == 0
    assert "apple" in result.output


def test_analyze_reports_issues(tmp_path: Path) -> None:
    note = tmp_path / "note.md"
    note.write_text("# Note\n\nSee [[Other]].\n", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(note), "--config", str(write_config(tmp_path))])
    assert result.exit_code == 0
    assert "Found 1 Obsidian wiki-link(s)" in result.output
    assert "Recommended preset" in result.output
    assert "balanced" in result.output


def test_analyze_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", str(tmp_path / "gone.md"), "--config", str(write_config(tmp_path))])
    assert result.exit_code == 1
    assert "NOT_FOUND" in result.output


def test_validate_exit_code_and_write(tmp_path: Path) -> None:
    note = tmp_path / "note.md"
    note.write_text("# Title\n\n```\ncode\n", encoding="utf-8")
    config = str(write_config(tmp_path))

    failed = runner.invoke(app, ["validate", str(note), "--config", config])
    assert failed.exit_code == 1

    fixed = runner.invoke(app, ["validate", str(note), "--fix", "--write", "--config", config])
    assert fixed.exit_code == 0
    assert note.read_text(encoding="utf-8") == "# Title\n\n```\ncode\n```\n"


def test_prepare_writes_artifacts(tmp_path: Path) -> None:
    note = tmp_path / "note.md"
    note.write_text("---\ntitle: Prepared\n---\n\n# Prepared\n", encoding="utf-8")
    out_dir = tmp_path / "out"
    result = runner.invoke(
        app,
        ["prepare", str(note), "--output-dir", str(out_dir), "--format", "both", "--config", str(write_config(tmp_path))],
    )
    assert result.exit_code == 0
    names = sorted(path.name.split("-", 3)[-1] for path in out_dir.iterdir())
    assert names == ["cover.html", "cover.svg", "epub.css", "epub.md", "pdf.css", "pdf.md"]


def test_prepare_unknown_preset(tmp_path: Path) -> None:
    note = tmp_path / "note.md"
    note.write_text("text\n", encoding="utf-8")
    result = runner.invoke(
        app,
        ["prepare", str(note), "-o", str(tmp_path / "out"), "--preset", "fancy", "--config", str(write_config(tmp_path))],
    )
    assert result.exit_code == 1
    assert "UNKNOWN_PRESET" in result.output


def test_convert_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["convert", str(tmp_path / "gone.md"), "--config", str(write_config(tmp_path))])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_convert_rejects_invalid_options(tmp_path: Path) -> None:
    note = tmp_path / "note.md"
    note.write_text("text\n", encoding="utf-8")
    result = runner.invoke(
        app,
        ["convert", str(note), "--paper-size", "a3", "--config", str(write_config(tmp_path))],
    )
    assert result.exit_code == 1
    assert "Invalid options" in result.output


def test_config_prints_effective_settings(tmp_path: Path) -> None:
    result = runner.invoke(app, ["config", "--config", str(write_config(tmp_path))])
    assert result.exit_code == 0
    assert '"run_log": false' in result.output
    assert '"typography_preset": "auto"' in result.output
