"""Size-only fallback chunker for languages without a structural strategy."""

from __future__ import annotations

from dataclasses import replace

from repoqa.ingest.base import BaseChunker
from repoqa.models import Chunk


class SizeChunker(BaseChunker):
    """Accumulate lines until the token estimate exceeds ``max_tokens``.

    Chunks are named ``Chunk 1``, ``Chunk 2`` … in file order. No preamble is
    extracted and no structure is recognised; this is also the strategy
    used when a structural chunker fails on a file.
    """

    def chunk(self, content: str, path: str = "") -> list[Chunk]:
        if not content.strip():
            return []
        metadata = self.metadata_for(path)
        chunks: list[Chunk] = []
        current = ""
        for line in content.split("\n"):
            current += f"{line}\n"
            if self.estimate_tokens(current) > self.max_tokens:
                chunks.append(self._make_chunk(current, metadata, len(chunks) + 1))
                current = ""
        if current.strip():
            chunks.append(self._make_chunk(current, metadata, len(chunks) + 1))
        return chunks

    @staticmethod
    def _make_chunk(text, metadata, number):
        return Chunk(content=text, metadata=replace(metadata, name=f"Chunk {number}"))
