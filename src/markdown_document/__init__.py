"""Markdown and Obsidian note to EPUB/PDF conversion toolkit."""

from .analyzer import analyze, recommend_preset
from .config import AppConfig, load_config
from .core import ConversionError, ConversionService
from .covers import generate_cover_artifact, get_theme
from .models import (
    AnalysisResult,
    ConversionResult,
    OutputFormat,
    PreparedDocument,
    PreprocessResult,
    ValidationReport,
)
from .preprocessor import generate_clean_markdown, preprocess
from .schemas import ConversionOptions
from .styles import build_stylesheet
from .typography import CSSGenerationOptions, UnknownPresetError, all_presets, generate_preset_css, get_preset
from .validation import ContentValidator

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "AppConfig",
    "CSSGenerationOptions",
    "ContentValidator",
    "ConversionError",
    "ConversionOptions",
    "ConversionResult",
    "ConversionService",
    "OutputFormat",
    "PreparedDocument",
    "PreprocessResult",
    "UnknownPresetError",
    "ValidationReport",
    "all_presets",
    "analyze",
    "build_stylesheet",
    "generate_clean_markdown",
    "generate_cover_artifact",
    "generate_preset_css",
    "get_preset",
    "get_theme",
    "load_config",
    "preprocess",
    "recommend_preset",
]
