from __future__ import annotations

from functools import lru_cache
from typing import Dict, Type

from .base import ConversionEngine, EngineRequest, EngineResponse
from .pandoc import DEFAULT_TIMEOUT_S, PandocEngine

_ENGINE_CLASSES: Dict[str, Type[PandocEngine]] = {
    "pandoc": PandocEngine,
}


@lru_cache(maxsize=8)
def get_engine(name: str, binary: str | None = None, timeout_s: float = DEFAULT_TIMEOUT_S) -> ConversionEngine:
    engine_cls = _ENGINE_CLASSES.get(name)
    if not engine_cls:
        raise KeyError(f"No conversion engine registered for {name!r}")
    return engine_cls(binary or name, timeout_s)


__all__ = [
    "ConversionEngine",
    "EngineRequest",
    "EngineResponse",
    "PandocEngine",
    "get_engine",
]
