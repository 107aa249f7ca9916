"""Language → chunking strategy registry and the file-level chunking entry point.

Source dispatch by language tag (derived from the file extension):
  javascript / typescript → JavaScriptChunker
  python                  → PythonChunker
  java                    → JavaChunker
  go                      → GoChunker
  c / cpp                 → CFamilyChunker
  rust                    → RustChunker
  anything else           → SizeChunker (html, css, text, …)
"""

from __future__ import annotations

import logging

from repoqa.ingest.base import BaseChunker, language_for_path
from repoqa.ingest.c_family import CFamilyChunker
from repoqa.ingest.go import GoChunker
from repoqa.ingest.java import JavaChunker
from repoqa.ingest.javascript import JavaScriptChunker
from repoqa.ingest.plaintext import SizeChunker
from repoqa.ingest.python import PythonChunker
from repoqa.ingest.rust import RustChunker
from repoqa.models import Chunk

logger = logging.getLogger(__name__)

_STRATEGIES: dict[str, type[BaseChunker]] = {
    "javascript": JavaScriptChunker,
    "typescript": JavaScriptChunker,
    "python": PythonChunker,
    "java": JavaChunker,
    "go": GoChunker,
    "c": CFamilyChunker,
    "cpp": CFamilyChunker,
    "rust": RustChunker,
}

FALLBACK_STRATEGY: type[BaseChunker] = SizeChunker


def register(language: str, chunker_cls: type[BaseChunker]) -> None:
    """Register (or replace) the strategy used for *language*."""
    _STRATEGIES[language] = chunker_cls


def strategy_for(language: str) -> type[BaseChunker]:
    return _STRATEGIES.get(language, FALLBACK_STRATEGY)


def chunk_code_file(content: str, file_path: str, max_tokens: int = 400) -> list[Chunk]:
    """Split one file into ordered, named chunks. Never raises.

    If the structural strategy for the file's language fails, the file is
    re-chunked by size alone.
    """
    language = language_for_path(file_path)
    chunker = strategy_for(language)(max_tokens=max_tokens)
    try:
        return chunker.chunk(content, file_path)
    except Exception as exc:
        logger.debug(
            "ChunkingDegraded: %s chunker failed on %s (%s); using size fallback",
            language,
            file_path,
            exc,
        )
        return FALLBACK_STRATEGY(max_tokens=max_tokens).chunk(content, file_path)
