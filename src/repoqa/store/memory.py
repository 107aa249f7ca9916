"""In-process vector store: brute-force cosine scan over Python lists."""

from __future__ import annotations

import math
from collections.abc import Sequence

from repoqa.errors import VectorIndexError
from repoqa.models import QueryResult, VectorRecord
from repoqa.store.base import Collection, VectorBackend


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*.

    Returns 0.0 for empty, zero-norm or mismatched-length inputs instead of
    raising. Symmetric in its arguments.
    """
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


class MemoryCollection(Collection):
    def __init__(self, name: str, metadata: dict | None = None) -> None:
        self.name = name
        self.metadata = dict(metadata or {})
        self._records: list[VectorRecord] = []

    async def insert_batch(self, ids, embeddings, documents, metadatas) -> None:
        if not (len(ids) == len(embeddings) == len(documents) == len(metadatas)):
            raise VectorIndexError(
                f"insert_batch length mismatch: ids={len(ids)} embeddings={len(embeddings)} "
                f"documents={len(documents)} metadatas={len(metadatas)}"
            )
        for record_id, embedding, document, metadata in zip(ids, embeddings, documents, metadatas):
            self._records.append(
                VectorRecord(
                    id=record_id,
                    embedding=list(embedding),
                    document=document,
                    metadata=dict(metadata),
                )
            )

    async def query(self, embedding: Sequence[float], k: int) -> list[QueryResult]:
        if k <= 0 or not self._records:
            return []
        scored = [
            QueryResult(
                content=record.document,
                metadata=dict(record.metadata),
                distance=1.0 - cosine_similarity(embedding, record.embedding),
            )
            for record in self._records
        ]
        # list.sort is stable: equal distances keep insertion order
        scored.sort(key=lambda r: r.distance)
        return scored[:k]

    async def count(self) -> int:
        return len(self._records)


class MemoryBackend(VectorBackend):
    """Collections live in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._collections: dict[str, MemoryCollection] = {}

    async def get_collection(self, name: str) -> MemoryCollection | None:
        return self._collections.get(name)

    async def create_collection(self, name: str, metadata: dict | None = None) -> MemoryCollection:
        if name not in self._collections:
            self._collections[name] = MemoryCollection(name, metadata)
        return self._collections[name]

    async def delete_collection(self, name: str) -> None:
        self._collections.pop(name, None)

    async def heartbeat(self) -> bool:
        return True
