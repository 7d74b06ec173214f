from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol

from ..models import TargetFormat


@dataclass(frozen=True, slots=True)
class EngineRequest:
    source_path: Path
    output_path: Path
    output_format: TargetFormat
    title: str
    author: str | None = None
    language: str | None = None
    css_path: Path | None = None
    cover_path: Path | None = None
    cover_fragment_path: Path | None = None
    toc_depth: int = 2
    include_toc: bool = True
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class EngineResponse:
    success: bool
    error: str | None = None


class ConversionEngine(Protocol):
    name: str

    def convert(self, request: EngineRequest) -> EngineResponse:  # pragma: no cover - interface
        ...


__all__ = ["ConversionEngine", "EngineRequest", "EngineResponse"]
