"""repoqa vector index — backends and the per-repository store service."""

from repoqa.store.base import Collection, VectorBackend
from repoqa.store.chroma import ChromaBackend
from repoqa.store.memory import MemoryBackend, cosine_similarity
from repoqa.store.service import VectorStoreService, build_backend

__all__ = [
    "ChromaBackend",
    "Collection",
    "MemoryBackend",
    "VectorBackend",
    "VectorStoreService",
    "build_backend",
    "cosine_similarity",
]
