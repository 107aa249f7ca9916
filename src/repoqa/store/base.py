"""Vector index interfaces.

A backend holds named collections. A collection stores records of
``(id, embedding, document, metadata)`` and answers nearest-neighbour
queries with cosine distance (``1 - cosine similarity``), closest first.

All methods are coroutines so that both the in-process store and remote
servers fit behind the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from repoqa.models import QueryResult


class Collection(ABC):
    """A single named set of vectors."""

    name: str

    @abstractmethod
    async def insert_batch(
        self,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str],
        metadatas: Sequence[dict],
    ) -> None:
        """Append records. All four sequences must have the same length.

        Raises:
            VectorIndexError: On mismatched lengths or a backend failure.
        """

    @abstractmethod
    async def query(self, embedding: Sequence[float], k: int) -> list[QueryResult]:
        """Return at most *k* results ordered by non-decreasing distance.

        An empty collection returns ``[]``.
        """

    @abstractmethod
    async def count(self) -> int:
        """Number of stored records."""


class VectorBackend(ABC):
    """Factory and registry for collections."""

    @abstractmethod
    async def get_collection(self, name: str) -> Collection | None:
        """Return the collection called *name*, or None if it does not exist."""

    @abstractmethod
    async def create_collection(self, name: str, metadata: dict | None = None) -> Collection:
        """Create (or open, if it already exists) the collection called *name*."""

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        """Delete *name*. Deleting a missing collection is not an error."""

    @abstractmethod
    async def heartbeat(self) -> bool:
        """True if the backend is reachable."""
