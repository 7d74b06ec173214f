from __future__ import annotations

import hashlib
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ArtifactPaths:
    run_id: str
    base_dir: Path
    cover_svg: Path
    cover_fragment: Path

    def markdown(self, output_format: str) -> Path:
        return self.base_dir / f"{self.run_id}-{output_format}.md"

    def stylesheet(self, output_format: str) -> Path:
        return self.base_dir / f"{self.run_id}-{output_format}.css"

    def for_formats(self, output_formats: Iterable[str]) -> list[Path]:
        """Every artifact a run over ``output_formats`` may have written."""

        paths = [self.cover_svg, self.cover_fragment]
        for output_format in output_formats:
            paths += [self.markdown(output_format), self.stylesheet(output_format)]
        return paths


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def ensure_artifact_paths(temp_dir: Path, run_id: str) -> ArtifactPaths:
    temp_dir.mkdir(parents=True, exist_ok=True)
    return ArtifactPaths(
        run_id=run_id,
        base_dir=temp_dir,
        cover_svg=temp_dir / f"{run_id}-cover.svg",
        cover_fragment=temp_dir / f"{run_id}-cover.html",
    )


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def remove_files(paths: Iterable[Path]) -> list[Path]:
    """Delete temporary artifacts, returning the ones that could not be removed."""

    leftovers: list[Path] = []
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove temporary artifact %s: %s", path, exc)
            leftovers.append(path)
    return leftovers


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def title_from_filename(path: Path) -> str:
    stem = re.sub(r"[_-]+", " ", path.stem).strip()
    return stem or "Untitled"
