from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
ENV_PREFIX = "M2D_"
TEMP_DIR_NAME = "markdown-to-document"

WORDS_PER_MINUTE = 200

ATTACHMENT_FOLDERS: tuple[str, ...] = ("attachments", "images", "assets", "media")

LONG_CODE_LINE = 100
COMPLEX_TABLE_COLUMNS = 5

__all__ = [
    "ATTACHMENT_FOLDERS",
    "COMPLEX_TABLE_COLUMNS",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "LONG_CODE_LINE",
    "TEMP_DIR_NAME",
    "WORDS_PER_MINUTE",
]
