"""Locate image references on disk and rewrite them to absolute paths."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from PIL import Image

from .constants import ATTACHMENT_FOLDERS
from .models import ResolvedImage
from .syntax import (
    OBSIDIAN_EMBED_RE,
    STANDARD_IMAGE_RE,
    embed_to_markdown,
    format_destination,
    image_alt,
    is_remote,
    mask_non_prose,
    parse_destination,
    parse_wiki_target,
    sub_outside_code,
)

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r"""\s+("[^"]*"|'[^']*')\s*$""")
ANY_IMAGE_RE = re.compile(f"{OBSIDIAN_EMBED_RE.pattern}|{STANDARD_IMAGE_RE.pattern}")


@dataclass(frozen=True, slots=True)
class ImageReference:
    syntax: str
    target: str
    offset: int
    alt: str | None = None
    width: int | None = None
    height: int | None = None
    embed: bool = False
    inner: str = ""


@dataclass(frozen=True, slots=True)
class ImageLocation:
    path: Path
    found: bool
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class ImageRewrite:
    text: str
    images: tuple[ResolvedImage, ...] = ()
    embeds_converted: int = 0
    missing: tuple[str, ...] = ()


def candidate_paths(reference: str, source_dir: Path, folders: Sequence[str] = ATTACHMENT_FOLDERS) -> list[Path]:
    relative = Path(reference)
    if relative.is_absolute():
        return [relative]
    candidates = [source_dir / relative]
    candidates.extend(source_dir / folder / relative for folder in folders)
    if relative.name != reference:
        candidates.append(source_dir / relative.name)
        candidates.extend(source_dir / folder / relative.name for folder in folders)
    return candidates


def locate_image(reference: str, source_dir: Path, folders: Sequence[str] = ATTACHMENT_FOLDERS) -> Path | None:
    for candidate in candidate_paths(reference, source_dir, folders):
        if candidate.is_file():
            return candidate.resolve()
    return None


def image_dimensions(path: Path) -> tuple[int | None, int | None]:
    try:
        with Image.open(path) as image:
            width, height = image.size
    except (OSError, Image.DecompressionBombError) as exc:
        logger.debug("Could not read dimensions of %s: %s", path, exc)
        return None, None
    return width, height


def collect_references(text: str, masked: str | None = None) -> list[ImageReference]:
    """Image references found in prose, in document order, remote URLs excluded."""

    masked = mask_non_prose(text) if masked is None else masked
    references: list[ImageReference] = []
    for match in OBSIDIAN_EMBED_RE.finditer(masked):
        target = parse_wiki_target(match.group(1))
        if not target.target:
            continue
        width, height = target.size
        references.append(
            ImageReference(
                syntax=match.group(0),
                target=target.target,
                offset=match.start(),
                alt=image_alt(target),
                width=width,
                height=height,
                embed=True,
                inner=match.group(1),
            )
        )
    for match in STANDARD_IMAGE_RE.finditer(masked):
        destination = parse_destination(match.group(2))
        if not destination or is_remote(destination):
            continue
        references.append(
            ImageReference(
                syntax=match.group(0),
                target=destination,
                offset=match.start(),
                alt=match.group(1) or None,
            )
        )
    references.sort(key=lambda reference: reference.offset)
    return references


class ImageResolver:
    """Resolves image references relative to a source document."""

    def __init__(
        self,
        source_dir: Path,
        folders: Sequence[str] = ATTACHMENT_FOLDERS,
        workers: int = 4,
    ) -> None:
        self.source_dir = source_dir
        self.folders = tuple(folders)
        self.workers = max(1, workers)

    def locate(self, reference: str) -> ImageLocation:
        path = locate_image(reference, self.source_dir, self.folders)
        if path is None:
            return ImageLocation(path=(self.source_dir / reference), found=False)
        width, height = image_dimensions(path)
        return ImageLocation(path=path, found=True, width=width, height=height)

    def locate_all(self, targets: Iterable[str]) -> dict[str, ImageLocation]:
        unique = list(dict.fromkeys(targets))
        if not unique:
            return {}
        if len(unique) == 1 or self.workers == 1:
            return {target: self.locate(target) for target in unique}
        with ThreadPoolExecutor(max_workers=min(self.workers, len(unique))) as pool:
            locations = list(pool.map(self.locate, unique))
        return dict(zip(unique, locations))

    def rewrite(self, text: str) -> ImageRewrite:
        """Point every local image at its resolved file, keeping document order."""

        masked = mask_non_prose(text)
        references = collect_references(text, masked)
        locations = self.locate_all(reference.target for reference in references)
        resolved: list[ResolvedImage] = []
        missing: list[str] = []
        replacements: dict[int, str] = {}
        for reference in references:
            location = locations[reference.target]
            destination = location.path.as_posix()
            if reference.embed:
                standard = embed_to_markdown(reference.inner, destination)
            else:
                standard = _repoint_standard(reference.syntax, destination)
            replacements[reference.offset] = standard
            explicit = reference.width is not None or reference.height is not None
            resolved.append(
                ResolvedImage(
                    original_syntax=reference.syntax,
                    standard_syntax=standard,
                    absolute_path=location.path,
                    found=location.found,
                    alt=reference.alt,
                    width=reference.width if explicit else location.width,
                    height=reference.height if explicit else location.height,
                )
            )
            if not location.found:
                logger.debug("Image %s not found under %s", reference.target, self.source_dir)
                missing.append(reference.target)

        rewritten, _ = sub_outside_code(ANY_IMAGE_RE, lambda match: replacements.get(match.start()), text, masked)
        return ImageRewrite(
            text=rewritten,
            images=tuple(resolved),
            embeds_converted=sum(1 for reference in references if reference.embed),
            missing=tuple(missing),
        )


def _repoint_standard(syntax: str, destination: str) -> str:
    match = STANDARD_IMAGE_RE.fullmatch(syntax)
    if match is None:
        return syntax
    title = TITLE_RE.search(match.group(2))
    suffix = f" {title.group(1)}" if title else ""
    return f"![{match.group(1)}]({format_destination(destination)}{suffix})"


__all__ = [
    "ImageLocation",
    "ImageReference",
    "ImageResolver",
    "ImageRewrite",
    "candidate_paths",
    "collect_references",
    "image_dimensions",
    "locate_image",
]
