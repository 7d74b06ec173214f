"""Validated input contract for a conversion run."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import ConversionDefaults
from .models import OutputFormat


class ConversionOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    input_path: Path
    output_dir: Path | None = None
    format: OutputFormat = OutputFormat.EPUB
    cover_theme: str | None = "apple"
    generate_cover: bool = True
    typography_preset: str = "auto"
    enable_font_subsetting: bool = False
    toc_depth: int = Field(default=2, ge=1, le=6)
    include_toc: bool = True
    paper_size: Literal["a4", "letter"] = "a4"
    pdf_engine: Literal["pdflatex", "xelatex", "weasyprint", "auto"] = "weasyprint"
    validate_content: bool = True
    auto_fix: bool = True
    css_path: Path | None = None
    title: str | None = None
    author: str | None = None
    language: str | None = None

    @field_validator("typography_preset")
    @classmethod
    def _normalize_preset(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            return "auto"
        return value

    @field_validator("title", "author", "language")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @classmethod
    def from_defaults(cls, input_path: Path, defaults: ConversionDefaults, **overrides: object) -> ConversionOptions:
        """Build options from the configured defaults, letting non-None overrides win."""

        payload: dict[str, object] = {
            "input_path": input_path,
            "format": defaults.format,
            "cover_theme": defaults.cover_theme,
            "generate_cover": defaults.generate_cover,
            "typography_preset": defaults.typography_preset,
            "enable_font_subsetting": defaults.enable_font_subsetting,
            "toc_depth": defaults.toc_depth,
            "include_toc": defaults.include_toc,
            "paper_size": defaults.paper_size,
            "pdf_engine": defaults.pdf_engine,
            "validate_content": defaults.validate_content,
            "auto_fix": defaults.auto_fix,
        }
        payload.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(payload)


__all__ = ["ConversionOptions"]
