from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..config import AppConfig, dump_config
from ..core import ConversionError, ConversionService
from ..covers import all_themes
from ..models import OutputFormat, Severity
from ..schemas import ConversionOptions
from ..settings import get_settings, load_effective_config
from ..typography import all_presets
from ..utils import atomic_write

console = Console()

app = typer.Typer(help="Convert Markdown and Obsidian notes into EPUB and PDF")

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(path: Path | None) -> AppConfig:
    return load_effective_config(path)


def _read(service: ConversionService, file: Path) -> str:
    try:
        return service.read_source(file).text
    except ConversionError as exc:
        console.print(f"[red]Error[/red]: {exc.code} - {escape(exc.message)}")
        raise typer.Exit(1) from exc


@app.command()
def analyze(
    file: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Report dialect constructs, statistics and the recommended preset."""

    _configure_logging(verbose)
    service = ConversionService(_load_config(config))
    result = service.analyze(_read(service, file))

    table = Table(title=f"Analysis of {file.name}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Words", f"{result.word_count:,}")
    table.add_row("Reading time", f"{result.estimated_reading_minutes} min")
    table.add_row("Images", str(result.image_count))
    table.add_row("Tables", str(result.table_count))
    table.add_row("Code blocks", str(result.code_block_count))
    table.add_row("Metadata header", "yes" if result.has_frontmatter else "no")
    console.print(table)

    if result.issues:
        console.print("[yellow]Issues found:[/yellow]")
        for issue in result.issues:
            console.print(f"  - {escape(issue)}")
    else:
        console.print("[green]No dialect issues, standard Markdown[/green]")
    if result.recommend_preprocess:
        console.print("Obsidian syntax will be normalized during conversion.")
    console.print(f"Recommended preset: [bold]{result.recommended_preset}[/bold]")


@app.command()
def validate(
    file: Path,
    fix: bool = typer.Option(False, "--fix", help="Apply automatic fixes"),
    write: bool = typer.Option(False, "--write", help="Write fixed text back to the file"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Check a document and optionally fix what can be fixed."""

    _configure_logging(verbose)
    service = ConversionService(_load_config(config))
    text = _read(service, file)
    validator = service.validator
    report = validator.validate(text, file.resolve())

    table = Table(title=f"Validation of {file.name}")
    table.add_column("Line", justify="right")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Message")
    table.add_column("Fixable")
    for issue in report.details:
        style = _SEVERITY_STYLES[issue.severity]
        table.add_row(
            str(issue.line) if issue.line is not None else "-",
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.category.value,
            escape(issue.message),
            "yes" if issue.fixed else "",
        )
    console.print(table)
    console.print(
        f"{report.total_issues} issue(s): {report.errors} error(s), "
        f"{report.warnings} warning(s), {report.fixed_issues} fixable"
    )

    if fix or write:
        fixed_text = validator.auto_fix(text, report)
        remaining = validator.validate(fixed_text, file.resolve())
        console.print(f"After fixing: {remaining.total_issues} issue(s) remain, {remaining.fixed_issues} fixable")
        if write and fixed_text != text:
            atomic_write(file, fixed_text)
            console.print(f"[green]Wrote fixes to {file}[/green]")
        report = remaining

    if report.errors:
        raise typer.Exit(1)


@app.command()
def prepare(
    file: Path,
    output_dir: Path = typer.Option(..., "--output-dir", "-o", help="Directory for intermediate artifacts"),
    output_format: OutputFormat | None = typer.Option(None, "--format", "-f", help="epub, pdf or both"),
    preset: str | None = typer.Option(None, "--preset", help="Typography preset id or 'auto'"),
    theme: str | None = typer.Option(None, "--theme", help="Cover theme id"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Write clean Markdown, stylesheets and covers without running the engine."""

    _configure_logging(verbose)
    cfg = _load_config(config)
    service = ConversionService(cfg)
    options = ConversionOptions.from_defaults(
        file,
        cfg.conversion,
        format=output_format,
        typography_preset=preset,
        cover_theme=theme,
    )
    try:
        prepared = service.prepare(options, artifact_dir=output_dir)
    except ConversionError as exc:
        console.print(f"[red]Preparation failed[/red]: {exc.code} - {escape(exc.message)}")
        raise typer.Exit(1) from exc

    console.print(f"[green]Prepared[/green] {file.name} with preset [bold]{prepared.preset_id}[/bold]")
    for path in prepared.artifact_paths:
        console.print(f"  {path}")
    for warning in prepared.warnings:
        console.print(f"[yellow]Warning[/yellow]: {escape(warning)}")


@app.command()
def convert(
    file: Path,
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Where to write the documents"),
    output_format: OutputFormat | None = typer.Option(None, "--format", "-f", help="epub, pdf or both"),
    preset: str | None = typer.Option(None, "--preset", help="Typography preset id or 'auto'"),
    theme: str | None = typer.Option(None, "--theme", help="Cover theme id"),
    css: Path | None = typer.Option(None, "--css", help="Extra stylesheet appended last"),
    title: str | None = typer.Option(None, "--title", help="Override the document title"),
    author: str | None = typer.Option(None, "--author", help="Override the author"),
    toc_depth: int | None = typer.Option(None, "--toc-depth", min=1, max=6, help="Table of contents depth"),
    no_toc: bool = typer.Option(False, "--no-toc", help="Omit the table of contents"),
    paper_size: str | None = typer.Option(None, "--paper-size", help="a4 or letter"),
    pdf_engine: str | None = typer.Option(None, "--pdf-engine", help="weasyprint, xelatex, pdflatex or auto"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Skip content validation"),
    no_fix: bool = typer.Option(False, "--no-fix", help="Do not apply automatic fixes"),
    no_cover: bool = typer.Option(False, "--no-cover", help="Do not generate a cover"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Convert a Markdown file to EPUB and/or PDF."""

    _configure_logging(verbose)
    cfg = _load_config(config)
    service = ConversionService(cfg)
    try:
        options = ConversionOptions.from_defaults(
            file,
            cfg.conversion,
            output_dir=output_dir,
            format=output_format,
            typography_preset=preset,
            cover_theme=theme,
            css_path=css,
            title=title,
            author=author,
            toc_depth=toc_depth,
            include_toc=False if no_toc else None,
            paper_size=paper_size,
            pdf_engine=pdf_engine,
            validate_content=False if no_validate else None,
            auto_fix=False if no_fix else None,
            generate_cover=False if no_cover else None,
        )
    except ValueError as exc:
        console.print(f"[red]Invalid options[/red]: {escape(str(exc))}")
        raise typer.Exit(1) from exc

    result = service.convert(options)
    for warning in result.warnings:
        console.print(f"[yellow]Warning[/yellow]: {escape(warning)}")
    if not result.success:
        for error in result.errors:
            console.print(f"[red]Error[/red]: {escape(error)}")
        raise typer.Exit(1)
    for path in (result.epub_path, result.pdf_path):
        if path is not None:
            console.print(f"[green]Created[/green] {path}")


@app.command()
def presets() -> None:
    """List typography presets."""

    table = Table(title="Typography presets")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Description")
    for preset in all_presets():
        table.add_row(preset.id, preset.name, preset.description)
    console.print(table)


@app.command()
def themes() -> None:
    """List cover themes."""

    table = Table(title="Cover themes")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Style")
    table.add_column("Description")
    for theme in all_themes():
        table.add_row(theme.id, theme.name, theme.style, theme.description)
    console.print(table)


@app.command("config")
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Print the effective configuration as JSON."""

    console.print_json(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()
