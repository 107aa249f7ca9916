"""Embedder — LiteLLM embeddings for code chunks and queries.

What is embedded for a chunk::

    File: {path}
    Section: {name}

    {content}

The stored document is the chunk content unchanged.

Batch embedding is strictly sequential with a fixed gap between requests
(see :mod:`repoqa.ingest.pacing`). A failed chunk is logged and skipped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import litellm

from repoqa.config import EmbeddingCfg
from repoqa.errors import EmbeddingError
from repoqa.ingest.pacing import PacedRunner, PaceState
from repoqa.models import Chunk, EmbeddedChunk

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 10


def embedding_text(chunk: Chunk) -> str:
    return f"File: {chunk.metadata.path}\nSection: {chunk.metadata.name}\n\n{chunk.content}"


class Embedder:
    """Turn text into vectors through ``litellm.aembedding()``.

    Args:
        config:        Embedding configuration (model, input cap, request delay).
        sleep:         Injected into the :class:`PacedRunner` (tests pass a no-op).
        on_transition: Optional observer of pacing state changes.
    """

    def __init__(
        self,
        config: EmbeddingCfg | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        on_transition: Callable[[PaceState], None] | None = None,
    ) -> None:
        self._config = config or EmbeddingCfg()
        self._sleep = sleep
        self._on_transition = on_transition

    @property
    def model(self) -> str:
        return self._config.model

    async def embed(self, text: str) -> list[float]:
        """Embed a single text. Input longer than ``max_input_chars`` is truncated.

        Raises:
            EmbeddingError: On any upstream failure or malformed response.
        """
        text = text[: self._config.max_input_chars]
        try:
            response = await litellm.aembedding(model=self._config.model, input=[text])
            vector = response.data[0]["embedding"]
        except Exception as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
        if not vector:
            raise EmbeddingError("Embedding service returned an empty vector")
        return [float(v) for v in vector]

    async def embed_batch(self, chunks: list[Chunk]) -> list[EmbeddedChunk]:
        """Embed *chunks* one at a time. Failed chunks are logged and dropped.

        The result preserves input order among the chunks that succeeded.
        """
        runner = PacedRunner(
            self._config.request_delay,
            sleep=self._sleep or asyncio.sleep,
            on_transition=self._on_transition,
        )
        embedded: list[EmbeddedChunk] = []
        total = len(chunks)
        async for outcome in runner.run(chunks, lambda c: self.embed(embedding_text(c))):
            if outcome.ok:
                embedded.append(EmbeddedChunk.from_chunk(outcome.item, outcome.value))
            else:
                logger.warning(
                    "Skipping chunk %s (%s): %s",
                    outcome.item.metadata.path,
                    outcome.item.metadata.name,
                    outcome.error,
                )
            done = outcome.index + 1
            if done % _PROGRESS_EVERY == 0:
                logger.info("Embedded %d/%d chunks", done, total)

        logger.info("Embedded %d of %d chunks", len(embedded), total)
        return embedded
