from __future__ import annotations

import json
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .constants import (
    ATTACHMENT_FOLDERS,
    COMPLEX_TABLE_COLUMNS,
    DEFAULT_CONFIG_PATH,
    LONG_CODE_LINE,
    TEMP_DIR_NAME,
)


def _default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / TEMP_DIR_NAME


@dataclass(slots=True)
class ConversionDefaults:
    format: str = "epub"
    typography_preset: str = "auto"
    cover_theme: str = "apple"
    toc_depth: int = 2
    include_toc: bool = True
    enable_font_subsetting: bool = False
    validate_content: bool = True
    auto_fix: bool = True
    generate_cover: bool = True
    paper_size: str = "a4"
    pdf_engine: str = "weasyprint"


@dataclass(slots=True)
class RuntimeConfig:
    temp_dir: Path = field(default_factory=_default_temp_dir)
    log_dir: Path = Path("runs")
    log_file: str = "log.jsonl"
    run_log: bool = True
    keep_artifacts: bool = False
    engine: str = "pandoc"
    engine_path: str = "pandoc"
    engine_timeout_s: int = 120


@dataclass(slots=True)
class PreprocessConfig:
    attachment_folders: tuple[str, ...] = ATTACHMENT_FOLDERS
    resolve_workers: int = 4
    long_code_line: int = LONG_CODE_LINE
    complex_table_columns: int = COMPLEX_TABLE_COLUMNS


@dataclass(slots=True)
class AppConfig:
    conversion: ConversionDefaults = field(default_factory=ConversionDefaults)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)

    @property
    def run_log_path(self) -> Path:
        return self.runtime.log_dir / self.runtime.log_file


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name) if isinstance(raw, Mapping) else None
    return value if isinstance(value, Mapping) else None


def _build_conversion(data: Mapping[str, object] | None) -> ConversionDefaults:
    if not data:
        return ConversionDefaults()
    defaults = ConversionDefaults()
    return ConversionDefaults(
        format=str(data.get("format", defaults.format)),
        typography_preset=str(data.get("typography_preset", defaults.typography_preset)),
        cover_theme=str(data.get("cover_theme", defaults.cover_theme)),
        toc_depth=int(data.get("toc_depth", defaults.toc_depth)),
        include_toc=bool(data.get("include_toc", defaults.include_toc)),
        enable_font_subsetting=bool(
            data.get("enable_font_subsetting", defaults.enable_font_subsetting)
        ),
        validate_content=bool(data.get("validate_content", defaults.validate_content)),
        auto_fix=bool(data.get("auto_fix", defaults.auto_fix)),
        generate_cover=bool(data.get("generate_cover", defaults.generate_cover)),
        paper_size=str(data.get("paper_size", defaults.paper_size)),
        pdf_engine=str(data.get("pdf_engine", defaults.pdf_engine)),
    )


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    temp_dir = data.get("temp_dir")
    return RuntimeConfig(
        temp_dir=Path(str(temp_dir)) if temp_dir else _default_temp_dir(),
        log_dir=Path(str(data.get("log_dir", "runs"))),
        log_file=str(data.get("log_file", "log.jsonl")),
        run_log=bool(data.get("run_log", True)),
        keep_artifacts=bool(data.get("keep_artifacts", False)),
        engine=str(data.get("engine", "pandoc")),
        engine_path=str(data.get("engine_path", "pandoc")),
        engine_timeout_s=int(data.get("engine_timeout_s", 120)),
    )


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if not value:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported attachment_folders configuration: {value!r}")


def _build_preprocess(data: Mapping[str, object] | None) -> PreprocessConfig:
    if not data:
        return PreprocessConfig()
    return PreprocessConfig(
        attachment_folders=_tuple_of_strings(data.get("attachment_folders"), ATTACHMENT_FOLDERS),
        resolve_workers=max(1, int(data.get("resolve_workers", 4))),
        long_code_line=int(data.get("long_code_line", LONG_CODE_LINE)),
        complex_table_columns=int(data.get("complex_table_columns", COMPLEX_TABLE_COLUMNS)),
    )


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    return AppConfig(
        conversion=_build_conversion(_section(raw, "conversion")),
        runtime=_build_runtime(_section(raw, "runtime")),
        preprocess=_build_preprocess(_section(raw, "preprocess")),
    )


def dump_config(config: AppConfig) -> str:
    conversion = config.conversion
    runtime = config.runtime
    preprocess = config.preprocess
    payload = {
        "conversion": {
            "format": conversion.format,
            "typography_preset": conversion.typography_preset,
            "cover_theme": conversion.cover_theme,
            "toc_depth": conversion.toc_depth,
            "include_toc": conversion.include_toc,
            "enable_font_subsetting": conversion.enable_font_subsetting,
            "validate_content": conversion.validate_content,
            "auto_fix": conversion.auto_fix,
            "generate_cover": conversion.generate_cover,
            "paper_size": conversion.paper_size,
            "pdf_engine": conversion.pdf_engine,
        },
        "runtime": {
            "temp_dir": str(runtime.temp_dir),
            "log_dir": str(runtime.log_dir),
            "log_file": runtime.log_file,
            "run_log": runtime.run_log,
            "keep_artifacts": runtime.keep_artifacts,
            "engine": runtime.engine,
            "engine_path": runtime.engine_path,
            "engine_timeout_s": runtime.engine_timeout_s,
        },
        "preprocess": {
            "attachment_folders": list(preprocess.attachment_folders),
            "resolve_workers": preprocess.resolve_workers,
            "long_code_line": preprocess.long_code_line,
            "complex_table_columns": preprocess.complex_table_columns,
        },
    }
    return json.dumps(payload, indent=2)
