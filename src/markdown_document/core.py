from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from pathlib import Path

from .analyzer import analyze
from .config import AppConfig
from .covers import generate_cover_artifact
from .detection import MARKDOWN_EXTENSIONS, DetectionError, SourceDocument, detect_source
from .engines import ConversionEngine, EngineRequest, get_engine
from .logging import RunLogEntry, RunLogger, StageTimings
from .models import (
    AnalysisResult,
    ConversionResult,
    CoverArtifact,
    DocumentMetadata,
    PreparedDocument,
    TargetFormat,
    ValidationReport,
)
from .preprocessor import MarkdownPreprocessor
from .schemas import ConversionOptions
from .styles import build_stylesheet
from .typography import get_preset
from .utils import ArtifactPaths, atomic_write, ensure_artifact_paths, generate_run_id, remove_files
from .validation import ContentValidator

logger = logging.getLogger(__name__)


class ConversionError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(slots=True)
class _Validated:
    text: str
    report: ValidationReport | None
    warnings: list[str] = field(default_factory=list)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ConversionService:
    """Runs the analyze, validate, preprocess and style stages, then the engine."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        engine: ConversionEngine | None = None,
        validator: ContentValidator | None = None,
    ) -> None:
        self._config = config or AppConfig()
        preprocess = self._config.preprocess
        self._engine = engine
        self._validator = validator or ContentValidator(attachment_folders=preprocess.attachment_folders)
        self._preprocessor = MarkdownPreprocessor(preprocess.attachment_folders, preprocess.resolve_workers)

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def validator(self) -> ContentValidator:
        return self._validator

    @property
    def engine(self) -> ConversionEngine:
        if self._engine is None:
            runtime = self._config.runtime
            self._engine = get_engine(runtime.engine, runtime.engine_path, float(runtime.engine_timeout_s))
        return self._engine

    def read_source(self, path: Path) -> SourceDocument:
        """Load a Markdown source, mapping every failure to a ``ConversionError``."""

        if not path.exists():
            raise ConversionError("NOT_FOUND", f"Source file does not exist: {path}")
        if not path.is_file():
            raise ConversionError("UNSUPPORTED_INPUT", f"Source is not a file: {path}")
        if path.suffix.lower() not in MARKDOWN_EXTENSIONS:
            raise ConversionError("UNSUPPORTED_INPUT", f"Not a Markdown file: {path.name}")
        try:
            return detect_source(path)
        except (DetectionError, OSError) as exc:
            raise ConversionError("UNREADABLE", f"Cannot read {path.name}: {exc}") from exc

    def analyze(self, text: str) -> AnalysisResult:
        preprocess = self._config.preprocess
        return analyze(
            text,
            long_code_line=preprocess.long_code_line,
            complex_table_columns=preprocess.complex_table_columns,
        )

    def prepare(
        self,
        options: ConversionOptions,
        *,
        run_id: str | None = None,
        artifact_dir: Path | None = None,
        timings: StageTimings | None = None,
    ) -> PreparedDocument:
        """Produce every intermediate artifact without invoking the engine.

        Raises ``ConversionError`` for unreadable sources, unknown presets and
        artifact write failures; partially written artifacts are removed first.
        """

        timings = timings if timings is not None else StageTimings()
        run_id = run_id or generate_run_id()
        source = self.read_source(options.input_path)

        start = time.perf_counter()
        analysis = self.analyze(source.text)
        timings.analyze_ms = _elapsed_ms(start)

        preset_id = self._resolve_preset(options.typography_preset, analysis)

        start = time.perf_counter()
        validated = self._validate(source, options)
        timings.validate_ms = _elapsed_ms(start)

        artifact_root = artifact_dir or self._config.runtime.temp_dir
        try:
            paths = ensure_artifact_paths(artifact_root, run_id)
        except OSError as exc:
            raise ConversionError("IO_ERROR", f"Cannot create artifact directory {artifact_root}: {exc}") from exc
        warnings = list(validated.warnings)
        custom_css = self._read_custom_css(options.css_path, warnings)

        prepared = PreparedDocument(
            run_id=run_id,
            source_path=source.path,
            markdown_paths={},
            preset_id=preset_id,
            metadata=DocumentMetadata(title=source.path.stem),
            analysis=analysis,
            validation_report=validated.report,
        )
        try:
            for output_format in options.format.targets:
                self._prepare_format(
                    prepared, validated.text, options, output_format, paths, custom_css, warnings, timings
                )
        except OSError as exc:
            remove_files(paths.for_formats(options.format.targets))
            raise ConversionError("IO_ERROR", f"Cannot write artifacts for {source.path.name}: {exc}") from exc

        prepared.warnings = list(dict.fromkeys(warnings))
        logger.debug("Prepared %s as run %s with preset %s", source.path.name, run_id, preset_id)
        return prepared

    def _prepare_format(
        self,
        prepared: PreparedDocument,
        text: str,
        options: ConversionOptions,
        output_format: TargetFormat,
        paths: ArtifactPaths,
        custom_css: str | None,
        warnings: list[str],
        timings: StageTimings,
    ) -> None:
        start = time.perf_counter()
        result = self._preprocessor.preprocess(
            text,
            prepared.source_path,
            output_format,
            title=options.title,
            author=options.author,
            language=options.language,
        )
        markdown_path = paths.markdown(output_format)
        atomic_write(markdown_path, MarkdownPreprocessor.generate_clean_markdown(result, output_format))
        prepared.markdown_paths[output_format] = markdown_path
        prepared.metadata = result.metadata
        warnings.extend(result.warnings)
        timings.preprocess_ms += _elapsed_ms(start)

        start = time.perf_counter()
        cover = self._build_cover(options, result.metadata, output_format, paths)
        if cover is not None:
            prepared.covers[output_format] = cover
            if cover.html is not None:
                atomic_write(paths.cover_fragment, cover.html)
                prepared.cover_fragment_path = paths.cover_fragment
        stylesheet = build_stylesheet(
            prepared.preset_id,
            output_format,
            paper_size=options.paper_size,
            cover_css=cover.css if cover is not None else None,
            custom_css=custom_css,
        )
        stylesheet_path = paths.stylesheet(output_format)
        atomic_write(stylesheet_path, stylesheet)
        prepared.stylesheets[output_format] = stylesheet_path
        timings.style_ms += _elapsed_ms(start)

    def convert(self, options: ConversionOptions) -> ConversionResult:
        """Prepare a document and hand it to the engine; input and I/O errors never raise."""

        run_id = generate_run_id()
        timings = StageTimings()
        formats = list(options.format.targets)
        try:
            prepared = self.prepare(options, run_id=run_id, timings=timings)
        except ConversionError as exc:
            self._log_run(run_id, options, formats, None, [], exc.code, timings, [])
            return ConversionResult(success=False, errors=[exc.message])

        output_dir = options.output_dir or prepared.source_path.parent
        outputs: dict[str, Path] = {}
        errors: list[str] = []
        error_code: str | None = None

        start = time.perf_counter()
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            for output_format in formats:
                output_path = output_dir / f"{prepared.source_path.stem}.{output_format}"
                error = self._run_engine(prepared, options, output_format, output_path)
                if error is None:
                    outputs[output_format] = output_path
                else:
                    errors.append(f"{output_format.upper()} conversion failed: {error}")
        except OSError as exc:
            error_code = "IO_ERROR"
            errors.append(f"Cannot write output to {output_dir}: {exc}")
        finally:
            timings.convert_ms = _elapsed_ms(start)
            if not self._config.runtime.keep_artifacts:
                remove_files(prepared.artifact_paths)

        if errors and error_code is None:
            error_code = "ENGINE_FAILED"
        self._log_run(
            run_id,
            options,
            formats,
            prepared.preset_id,
            prepared.warnings,
            error_code,
            timings,
            [str(path) for path in outputs.values()],
        )
        return ConversionResult(
            success=not errors,
            epub_path=outputs.get("epub"),
            pdf_path=outputs.get("pdf"),
            errors=errors,
            warnings=list(prepared.warnings),
            validation_report=prepared.validation_report,
            artifacts=prepared,
        )

    def _resolve_preset(self, requested: str, analysis: AnalysisResult) -> str:
        preset_id = analysis.recommended_preset if requested == "auto" else requested
        if get_preset(preset_id) is None:
            raise ConversionError("UNKNOWN_PRESET", f"Typography preset not found: {preset_id}")
        return preset_id

    def _validate(self, source: SourceDocument, options: ConversionOptions) -> _Validated:
        if not options.validate_content:
            return _Validated(text=source.text, report=None)
        text = source.text
        report = self._validator.validate(text, source.path)
        if options.auto_fix and report.fixed_issues:
            text = self._validator.auto_fix(text, report)
            report = replace(self._validator.validate(text, source.path), applied_fixes=report.fixed_issues)
        warnings = []
        if report.errors:
            warnings.append(f"Validation found {report.errors} error(s)")
        return _Validated(text=text, report=report, warnings=warnings)

    def _read_custom_css(self, css_path: Path | None, warnings: list[str]) -> str | None:
        if css_path is None:
            return None
        if not css_path.is_file():
            warnings.append(f"Custom CSS not found: {css_path}")
            return None
        try:
            return css_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            warnings.append(f"Custom CSS could not be read: {css_path} ({exc})")
            return None

    def _build_cover(
        self,
        options: ConversionOptions,
        metadata: DocumentMetadata,
        output_format: TargetFormat,
        paths: ArtifactPaths,
    ) -> CoverArtifact | None:
        if not options.generate_cover or not options.cover_theme:
            return None
        return generate_cover_artifact(
            metadata.title,
            metadata.author,
            options.cover_theme,
            output_format,
            output_path=paths.cover_svg if output_format == "epub" else None,
            paper_size=options.paper_size,
        )

    def _run_engine(
        self,
        prepared: PreparedDocument,
        options: ConversionOptions,
        output_format: TargetFormat,
        output_path: Path,
    ) -> str | None:
        cover = prepared.covers.get(output_format)
        request = EngineRequest(
            source_path=prepared.markdown_paths[output_format],
            output_path=output_path,
            output_format=output_format,
            title=prepared.metadata.title,
            author=prepared.metadata.author,
            language=prepared.metadata.language,
            css_path=prepared.stylesheets.get(output_format),
            cover_path=cover.path if cover is not None else None,
            cover_fragment_path=prepared.cover_fragment_path if output_format == "pdf" else None,
            toc_depth=options.toc_depth,
            include_toc=options.include_toc,
            options={
                "pdf_engine": options.pdf_engine,
                "paper_size": options.paper_size,
                "enable_font_subsetting": options.enable_font_subsetting,
            },
        )
        try:
            engine = self.engine
        except KeyError as exc:
            return str(exc.args[0]) if exc.args else "no conversion engine configured"
        response = engine.convert(request)
        if response.success:
            return None
        return response.error or "unknown error"

    def _log_run(
        self,
        run_id: str,
        options: ConversionOptions,
        formats: list[str],
        preset: str | None,
        warnings: list[str],
        error_code: str | None,
        timings: StageTimings,
        outputs: list[str],
    ) -> None:
        runtime = self._config.runtime
        run_logger = RunLogger(self._config.run_log_path if runtime.run_log else None)
        try:
            run_logger.append(
                RunLogEntry(
                    run_id=run_id,
                    source=str(options.input_path),
                    status="failure" if error_code else "success",
                    formats=formats,
                    preset=preset,
                    warnings=warnings,
                    error_code=error_code,
                    timings=timings,
                    outputs=outputs,
                )
            )
        except OSError as exc:
            logger.warning("Could not append to run log: %s", exc)


__all__ = ["ConversionError", "ConversionService"]
