"""Dense retriever: embed the question, return the nearest chunks of one repository."""

from __future__ import annotations

from typing import Protocol

from repoqa.models import QueryResult
from repoqa.store.service import VectorStoreService

DEFAULT_TOP_K = 5


class QueryEmbedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class Retriever:
    """Nearest-neighbour retrieval over a repository's collection.

    The question is embedded with the same model used at ingest time. Results
    come back closest first, exactly as the store returned them.
    """

    def __init__(self, embedder: QueryEmbedder, store: VectorStoreService) -> None:
        self._embedder = embedder
        self._store = store

    async def retrieve(self, repo_id: str, query: str, k: int = DEFAULT_TOP_K) -> list[QueryResult]:
        """Return up to *k* chunks of *repo_id* closest to *query*.

        Raises:
            EmbeddingError:   The question could not be embedded.
            VectorIndexError: The store query failed.
        """
        embedding = await self._embedder.embed(query)
        return await self._store.query(repo_id, embedding, k)
