"""Vector store service — per-repository collections on top of a backend.

One ``VectorStoreService`` is built per process and injected wherever the
index is needed. It maps repository ids (``owner/repo``) to collection
names, caches open collections, assigns record ids and wraps backend
failures in :class:`~repoqa.errors.VectorIndexError`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from repoqa.config import VectorStoreCfg
from repoqa.errors import VectorIndexError
from repoqa.models import EmbeddedChunk, QueryResult, collection_name
from repoqa.store.base import Collection, VectorBackend
from repoqa.store.chroma import ChromaBackend
from repoqa.store.memory import MemoryBackend

logger = logging.getLogger(__name__)

DEFAULT_INSERT_BATCH = 50


class VectorStoreService:
    def __init__(self, backend: VectorBackend) -> None:
        self.backend = backend
        self._collections: dict[str, Collection] = {}

    # ------------------------------------------------------------------
    # Collection lifecycle
    # ------------------------------------------------------------------

    async def get_or_create(self, repo_id: str) -> Collection:
        """Return the collection for *repo_id*, creating it if needed. Idempotent."""
        cached = self._collections.get(repo_id)
        if cached is not None:
            return cached
        try:
            collection = await self.backend.create_collection(
                collection_name(repo_id), {"repository": repo_id}
            )
        except VectorIndexError:
            raise
        except Exception as exc:
            raise VectorIndexError(f"Could not open collection for {repo_id}: {exc}") from exc
        self._collections[repo_id] = collection
        return collection

    async def _find(self, repo_id: str) -> Collection | None:
        cached = self._collections.get(repo_id)
        if cached is not None:
            return cached
        try:
            collection = await self.backend.get_collection(collection_name(repo_id))
        except Exception as exc:
            raise VectorIndexError(f"Could not look up collection for {repo_id}: {exc}") from exc
        if collection is not None:
            self._collections[repo_id] = collection
        return collection

    async def exists(self, repo_id: str) -> bool:
        return await self._find(repo_id) is not None

    async def delete(self, repo_id: str) -> None:
        """Drop the collection for *repo_id*. Deleting a missing collection is a no-op."""
        self._collections.pop(repo_id, None)
        try:
            await self.backend.delete_collection(collection_name(repo_id))
        except Exception as exc:
            raise VectorIndexError(f"Could not delete collection for {repo_id}: {exc}") from exc

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def add_chunks(
        self,
        repo_id: str,
        chunks: Sequence[EmbeddedChunk],
        batch_size: int = DEFAULT_INSERT_BATCH,
    ) -> int:
        """Insert *chunks* in batches; record ids are ``chunk_<offset>``.

        Returns the number of records inserted.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        collection = await self.get_or_create(repo_id)
        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            try:
                await collection.insert_batch(
                    ids=[f"chunk_{start + i}" for i in range(len(batch))],
                    embeddings=[c.embedding for c in batch],
                    documents=[c.content for c in batch],
                    metadatas=[c.metadata.as_dict() for c in batch],
                )
            except VectorIndexError:
                raise
            except Exception as exc:
                raise VectorIndexError(f"Insert into {repo_id} failed: {exc}") from exc
            logger.debug("Inserted %d records into %s", start + len(batch), repo_id)
        return len(chunks)

    async def query(self, repo_id: str, embedding: Sequence[float], k: int) -> list[QueryResult]:
        """Nearest *k* records for *embedding*; ``[]`` if the repository is not indexed."""
        collection = await self._find(repo_id)
        if collection is None:
            return []
        try:
            return await collection.query(embedding, k)
        except Exception as exc:
            raise VectorIndexError(f"Query against {repo_id} failed: {exc}") from exc

    async def count(self, repo_id: str) -> int:
        collection = await self._find(repo_id)
        if collection is None:
            return 0
        try:
            return await collection.count()
        except Exception as exc:
            raise VectorIndexError(f"Count for {repo_id} failed: {exc}") from exc


async def build_backend(config: VectorStoreCfg) -> VectorBackend:
    """Return the configured backend.

    A Chroma server that does not answer its heartbeat is replaced by the
    in-memory store, with a warning.
    """
    if config.backend == "chroma":
        backend = ChromaBackend(host=config.host, port=config.port)
        if await backend.heartbeat():
            logger.info("Using Chroma at %s:%s", config.host, config.port)
            return backend
        logger.warning(
            "Chroma at %s:%s is unreachable; falling back to the in-memory store",
            config.host,
            config.port,
        )
    return MemoryBackend()
