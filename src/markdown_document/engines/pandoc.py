from __future__ import annotations

import logging
import subprocess

from .base import EngineRequest, EngineResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120


class PandocEngine:
    """Runs the pandoc binary to produce EPUB or PDF files."""

    name = "pandoc"

    def __init__(self, binary: str = "pandoc", timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.binary = binary
        self.timeout_s = timeout_s

    def build_args(self, request: EngineRequest) -> list[str]:
        options = request.options
        args: list[str] = []
        if request.output_format == "pdf" and request.cover_fragment_path is not None:
            args += ["--include-before-body", str(request.cover_fragment_path)]
        args += [str(request.source_path), "-o", str(request.output_path)]
        args += ["--metadata", f"title={request.title}"]
        if request.author:
            args += ["--metadata", f"author={request.author}"]
        if request.language:
            args += ["--metadata", f"lang={request.language}"]

        if request.output_format == "epub":
            if request.cover_path is not None:
                args.append(f"--epub-cover-image={request.cover_path}")
        else:
            pdf_engine = str(options.get("pdf_engine", "weasyprint"))
            if pdf_engine != "auto":
                args.append(f"--pdf-engine={pdf_engine}")
            if pdf_engine != "weasyprint":
                args += ["-V", f"papersize:{options.get('paper_size', 'a4')}"]

        if request.css_path is not None:
            args.append(f"--css={request.css_path}")
        if request.include_toc:
            args += ["--toc", "--toc-depth", str(request.toc_depth)]
        args.append("--standalone")
        return args

    def convert(self, request: EngineRequest) -> EngineResponse:
        command = [self.binary, *self.build_args(request)]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError:
            return EngineResponse(success=False, error=f"{self.binary} executable not found")
        except subprocess.TimeoutExpired:
            return EngineResponse(
                success=False,
                error=f"{self.binary} did not finish within {self.timeout_s:g} seconds",
            )
        except OSError as exc:
            return EngineResponse(success=False, error=f"Could not run {self.binary}: {exc}")

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            message = f"{self.binary} exited with status {completed.returncode}"
            return EngineResponse(success=False, error=f"{message}: {detail}" if detail else message)
        if completed.stderr.strip():
            logger.debug("%s reported: %s", self.binary, completed.stderr.strip())
        return EngineResponse(success=True)


__all__ = ["DEFAULT_TIMEOUT_S", "PandocEngine"]
