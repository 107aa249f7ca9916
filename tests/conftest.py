"""Shared pytest fixtures: in-process fakes for GitHub, embeddings and generation."""

from __future__ import annotations

import asyncio
import logging

import pytest

from repoqa.errors import EmbeddingError, ListingError
from repoqa.models import Chunk, EmbeddedChunk, QueryResult, RepositoryInfo, SourceFile
from repoqa.store.memory import MemoryBackend
from repoqa.store.service import VectorStoreService

_VOCAB = ("import", "function", "class", "def", "return", "foo", "bar", "server", "test")


class FakeEmbedder:
    """Deterministic bag-of-words embedder; never calls the network."""

    model = "fake/embedding"

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.batches: list[list[Chunk]] = []
        self.queries: list[str] = []

    def vector(self, text: str) -> list[float]:
        lowered = text.lower()
        return [float(lowered.count(word)) for word in _VOCAB] + [1.0]

    async def embed(self, text: str) -> list[float]:
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError(f"upstream rejected input containing {self.fail_on!r}")
        self.queries.append(text)
        return self.vector(text)

    async def embed_batch(self, chunks: list[Chunk]) -> list[EmbeddedChunk]:
        self.batches.append(list(chunks))
        return [EmbeddedChunk.from_chunk(c, self.vector(c.content)) for c in chunks]


class FakeHost:
    """GitHub stand-in serving an in-memory file tree.

    ``files`` maps path → content; a content of None simulates a failed download.
    """

    def __init__(
        self,
        files: dict[str, str | None] | None = None,
        info: RepositoryInfo | None = None,
        listing_error: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.files = dict(files or {})
        self.info = info
        self.listing_error = listing_error
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.info_calls = 0
        self.closed = False

    async def get_repository_info(self, owner: str, repo: str) -> RepositoryInfo:
        self.info_calls += 1
        if self.listing_error:
            raise ListingError("Failed to fetch repository information: 404 Not Found")
        return self.info or RepositoryInfo(owner=owner, name=repo, language="Python")

    async def list_files(self, owner: str, repo: str, path: str = "") -> list[SourceFile]:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.listing_error:
                raise ListingError(f"Failed to list {owner}/{repo}/: 404 Not Found")
            return [SourceFile(path=p, download_url=f"https://raw.test/{p}") for p in self.files]
        finally:
            self.active -= 1

    async def get_file_content(self, download_url: str | None) -> str | None:
        if not download_url:
            return None
        return self.files.get(download_url.removeprefix("https://raw.test/"))

    async def aclose(self) -> None:
        self.closed = True


class FakeGenerator:
    """Records what it was asked and answers with a fixed text."""

    model = "fake/generation"

    def __init__(self, text: str = "It returns the configured server.", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def generate(
        self,
        question: str,
        results: list[QueryResult],
        repo_info: RepositoryInfo,
        history: list[dict] | None = None,
    ) -> str:
        self.calls.append(
            {
                "question": question,
                "results": list(results),
                "repo_info": repo_info,
                "history": list(history or []),
            }
        )
        if self.error is not None:
            raise self.error
        return self.text


class FakeDocsWriter:
    """Writes "<title> for <repo>" per section and records the chunks it was given."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[str, list[QueryResult]]] = []

    async def write_section(self, topic, results: list[QueryResult], repo_info: RepositoryInfo) -> str:
        self.calls.append((topic.key, list(results)))
        if topic.key == self.fail_on:
            return f"# {topic.title}\n\nUnable to generate documentation for this section due to an error."
        return f"{topic.title} for {repo_info.name}"


SAMPLE_FILES: dict[str, str | None] = {
    "src/server.js": (
        "import http from 'http';\n"
        "\n"
        "function startServer(port) {\n"
        "  return http.createServer().listen(port);\n"
        "}\n"
    ),
    "app/main.py": (
        "import os\n"
        "\n"
        "def foo():\n"
        "    return os.getcwd()\n"
        "\n"
        "class Bar:\n"
        "    pass\n"
    ),
}


@pytest.fixture(autouse=True)
def _restore_repoqa_logger():
    """setup_logging() reconfigures the 'repoqa' logger; undo it after each test."""
    logger = logging.getLogger("repoqa")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield
    logger.handlers, logger.level, logger.propagate = saved


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def make_embedder():
    return FakeEmbedder


@pytest.fixture
def make_host():
    return FakeHost


@pytest.fixture
def sample_files() -> dict[str, str | None]:
    return dict(SAMPLE_FILES)


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def make_generator():
    return FakeGenerator


@pytest.fixture
def fake_docs() -> FakeDocsWriter:
    return FakeDocsWriter()


@pytest.fixture
def memory_store() -> VectorStoreService:
    return VectorStoreService(MemoryBackend())
