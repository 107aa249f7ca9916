"""Ingestion orchestrator — list, fetch, chunk, embed and index one repository.

State machine::

    idle → listing → fetching → chunking → embedding ─┬→ indexed
                        ↑                             │
                        └──────── next window ────────┘
    (any state) → failed

Files are processed in windows of ``files_per_batch``: every file in the
window is downloaded and chunked, then all of the window's chunks are
embedded. The previous index for the repository is replaced only after at
least one chunk was embedded, so a failed re-ingest leaves the old index in
place.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from typing import Protocol

from repoqa.config import ChunkingCfg, IngestCfg
from repoqa.errors import FetchError, IngestionError, ListingError, VectorIndexError
from repoqa.ingest.registry import chunk_code_file
from repoqa.models import (
    Chunk,
    EmbeddedChunk,
    IngestResult,
    RepositoryInfo,
    SourceFile,
    repository_id,
)
from repoqa.store.service import VectorStoreService

logger = logging.getLogger(__name__)

NO_SUPPORTED_FILES = "No supported code files found in the repository"
NO_CHUNKS = "Failed to generate any code chunks from the repository"


class IngestState(str, enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    FETCHING = "fetching"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    INDEXED = "indexed"
    FAILED = "failed"


class RepositoryHost(Protocol):
    async def get_repository_info(self, owner: str, repo: str) -> RepositoryInfo: ...

    async def list_files(self, owner: str, repo: str, path: str = "") -> list[SourceFile]: ...

    async def get_file_content(self, download_url: str | None) -> str | None: ...


class ChunkEmbedder(Protocol):
    async def embed_batch(self, chunks: list[Chunk]) -> list[EmbeddedChunk]: ...


class IngestionOrchestrator:
    """Drive one repository through the ingestion state machine.

    Args:
        host:     Repository host (listing + raw file download).
        embedder: Batch embedder for chunks.
        store:    Vector store service the finished index is written to.
        ingest:   Batching configuration.
        chunking: Chunk size configuration.
        on_state: Called with ``(repo_id, state)`` on every transition.
    """

    def __init__(
        self,
        host: RepositoryHost,
        embedder: ChunkEmbedder,
        store: VectorStoreService,
        ingest: IngestCfg | None = None,
        chunking: ChunkingCfg | None = None,
        on_state: Callable[[str, IngestState], None] | None = None,
    ) -> None:
        self._host = host
        self._embedder = embedder
        self._store = store
        self._ingest = ingest or IngestCfg()
        self._chunking = chunking or ChunkingCfg()
        self._on_state = on_state
        self.state = IngestState.IDLE

    def _set(self, repo_id: str, state: IngestState) -> None:
        self.state = state
        logger.debug("%s: %s", repo_id, state.value)
        if self._on_state is not None:
            self._on_state(repo_id, state)

    async def ingest(self, owner: str, repo: str) -> IngestResult:
        """Build (or rebuild) the index for ``owner/repo``.

        Raises:
            ListingError:     The repository could not be read or listed.
            IngestionError:   No chunk survived fetching, chunking and embedding.
            VectorIndexError: Writing the index failed; the partial index is removed.
        """
        repo_id = repository_id(owner, repo)
        self.state = IngestState.IDLE

        self._set(repo_id, IngestState.LISTING)
        try:
            info = await self._host.get_repository_info(owner, repo)
            files = await self._host.list_files(owner, repo)
        except ListingError:
            self._set(repo_id, IngestState.FAILED)
            raise
        logger.info("Found %d supported files in %s", len(files), repo_id)

        if not files:
            await self._store.delete(repo_id)
            self._set(repo_id, IngestState.INDEXED)
            return IngestResult(
                repo_id=repo_id,
                state=IngestState.INDEXED.value,
                file_count=0,
                chunk_count=0,
                message=NO_SUPPORTED_FILES,
                repository=info,
            )

        if self._ingest.max_files is not None:
            files = files[: self._ingest.max_files]

        embedded = await self._process_windows(repo_id, files)

        if not embedded:
            self._set(repo_id, IngestState.FAILED)
            raise IngestionError(NO_CHUNKS)

        try:
            await self._store.delete(repo_id)
            await self._store.add_chunks(
                repo_id, embedded, batch_size=self._ingest.insert_batch_size
            )
        except VectorIndexError:
            self._set(repo_id, IngestState.FAILED)
            try:
                await self._store.delete(repo_id)
            except VectorIndexError as cleanup_exc:
                logger.warning("Could not remove partial index for %s: %s", repo_id, cleanup_exc)
            raise

        self._set(repo_id, IngestState.INDEXED)
        logger.info("Indexed %d chunks from %d files in %s", len(embedded), len(files), repo_id)
        return IngestResult(
            repo_id=repo_id,
            state=IngestState.INDEXED.value,
            file_count=len(files),
            chunk_count=len(embedded),
            repository=info,
        )

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    async def _process_windows(self, repo_id: str, files: list[SourceFile]) -> list[EmbeddedChunk]:
        size = self._ingest.files_per_batch
        windows = (len(files) + size - 1) // size
        embedded: list[EmbeddedChunk] = []
        for number, start in enumerate(range(0, len(files), size), start=1):
            window = files[start : start + size]
            logger.info("Processing batch %d/%d of %s", number, windows, repo_id)

            self._set(repo_id, IngestState.FETCHING)
            contents: list[tuple[SourceFile, str]] = []
            for source_file in window:
                try:
                    contents.append((source_file, await self._fetch(source_file)))
                except FetchError as exc:
                    logger.warning("Skipping %s: %s", source_file.path, exc)

            self._set(repo_id, IngestState.CHUNKING)
            chunks: list[Chunk] = []
            for source_file, content in contents:
                chunks.extend(
                    chunk_code_file(content, source_file.path, self._chunking.max_tokens)
                )

            if chunks:
                self._set(repo_id, IngestState.EMBEDDING)
                embedded.extend(await self._embedder.embed_batch(chunks))
        return embedded

    async def _fetch(self, source_file: SourceFile) -> str:
        content = await self._host.get_file_content(source_file.download_url)
        if content is None:
            raise FetchError(f"could not download {source_file.download_url}")
        return content
