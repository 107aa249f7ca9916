"""Chroma server backend.

Uses ``chromadb.HttpClient``. The client is synchronous, so every call is
moved off the event loop with ``asyncio.to_thread``. Collections are created
with the cosine metric; Chroma then reports ``1 - cosine similarity`` as the
distance, the same scale as the in-memory store. Embeddings are always
supplied by repoqa, never computed by Chroma.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import chromadb
from chromadb.errors import ChromaError

from repoqa.errors import VectorIndexError
from repoqa.models import QueryResult
from repoqa.store.base import Collection, VectorBackend

logger = logging.getLogger(__name__)

_COSINE_SPACE = {"hnsw:space": "cosine"}

# Raised by the client for a missing collection, depending on the chromadb version.
_NOT_FOUND = (ValueError, ChromaError)


class ChromaCollection(Collection):
    def __init__(self, collection: Any) -> None:
        self._collection = collection
        self.name = collection.name

    async def insert_batch(self, ids, embeddings, documents, metadatas) -> None:
        if not (len(ids) == len(embeddings) == len(documents) == len(metadatas)):
            raise VectorIndexError(
                f"insert_batch length mismatch: ids={len(ids)} embeddings={len(embeddings)} "
                f"documents={len(documents)} metadatas={len(metadatas)}"
            )
        if not ids:
            return
        await asyncio.to_thread(
            self._collection.add,
            ids=list(ids),
            embeddings=[list(e) for e in embeddings],
            documents=list(documents),
            metadatas=[dict(m) for m in metadatas],
        )

    async def query(self, embedding: Sequence[float], k: int) -> list[QueryResult]:
        if k <= 0:
            return []
        size = await self.count()
        if size == 0:
            return []
        raw = await asyncio.to_thread(
            self._collection.query,
            query_embeddings=[list(embedding)],
            n_results=min(k, size),
            include=["documents", "metadatas", "distances"],
        )
        documents = (raw.get("documents") or [[]])[0]
        metadatas = (raw.get("metadatas") or [[]])[0]
        distances = (raw.get("distances") or [[]])[0]
        return [
            QueryResult(content=doc or "", metadata=dict(meta or {}), distance=float(dist))
            for doc, meta, dist in zip(documents, metadatas, distances)
        ]

    async def count(self) -> int:
        return int(await asyncio.to_thread(self._collection.count))


class ChromaBackend(VectorBackend):
    """Collections stored on a Chroma server at *host*:*port*.

    The HTTP client is created on first use; pass *client* to inject one.
    """

    def __init__(self, host: str = "localhost", port: int = 8000, client: Any = None) -> None:
        self.host = host
        self.port = port
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = chromadb.HttpClient(host=self.host, port=self.port)
        return self._client

    async def get_collection(self, name: str) -> ChromaCollection | None:
        client = self._get_client()
        try:
            collection = await asyncio.to_thread(client.get_collection, name=name)
        except _NOT_FOUND:
            return None
        return ChromaCollection(collection)

    async def create_collection(self, name: str, metadata: dict | None = None) -> ChromaCollection:
        client = self._get_client()
        collection = await asyncio.to_thread(
            client.get_or_create_collection,
            name=name,
            metadata={**(metadata or {}), **_COSINE_SPACE},
            embedding_function=None,
        )
        return ChromaCollection(collection)

    async def delete_collection(self, name: str) -> None:
        client = self._get_client()
        try:
            await asyncio.to_thread(client.delete_collection, name=name)
        except _NOT_FOUND:
            logger.debug("Collection %s did not exist", name)

    async def heartbeat(self) -> bool:
        try:
            client = self._get_client()
            await asyncio.to_thread(client.heartbeat)
        except Exception as exc:
            logger.debug("Chroma heartbeat failed at %s:%s: %s", self.host, self.port, exc)
            return False
        return True
