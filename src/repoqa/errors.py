"""Exception taxonomy for the ingestion and question-answering pipeline.

Per-item failures (FetchError, EmbeddingError) are logged and absorbed by the
batch loops that raise them. Pipeline failures (ListingError, IngestionError,
VectorIndexError, GenerationError) propagate to the caller with the upstream
message attached.
"""

from __future__ import annotations


class RepoQAError(Exception):
    """Base class for all repoqa errors."""


class InvalidRepositoryError(RepoQAError, ValueError):
    """Raised when a URL or identifier does not name a GitHub repository."""


class ListingError(RepoQAError):
    """Repository or path could not be listed. Fatal to ingestion."""


class FetchError(RepoQAError):
    """A single file could not be downloaded. The file is skipped."""


class EmbeddingError(RepoQAError):
    """The embedding service rejected or failed a request."""


class VectorIndexError(RepoQAError):
    """Insert or query against the vector store failed."""


class IngestionError(RepoQAError):
    """Ingestion finished without producing any chunk."""


class GenerationError(RepoQAError):
    """The text-generation service failed. Never retried automatically."""


class NotIndexedError(RepoQAError):
    """The repository has no index yet; ingest it first."""
