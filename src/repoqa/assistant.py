"""CodebaseAssistant — the facade the CLI (and any other caller) talks to.

Wires the GitHub host, embedder, vector store and answer generator
together. One instance serves many repositories; ingestion of the same
repository is serialised by a per-repository lock, while different
repositories ingest concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from repoqa.config import RepoQAConfig
from repoqa.errors import (
    EmbeddingError,
    GenerationError,
    ListingError,
    NotIndexedError,
    VectorIndexError,
)
from repoqa.ingest.embedder import Embedder
from repoqa.ingest.orchestrator import IngestionOrchestrator, IngestState, RepositoryHost
from repoqa.models import (
    Answer,
    DocSection,
    Documentation,
    FileNode,
    IngestResult,
    QueryResult,
    RepositoryInfo,
    repository_id,
)
from repoqa.rag.answerer import AnswerGenerator
from repoqa.rag.docs import (
    DEPENDENCIES_QUERY,
    DOC_TOPICS,
    DOCS_TOP_K,
    DocsWriter,
    documentation_language,
)
from repoqa.rag.retriever import Retriever
from repoqa.sources.github import GitHubClient, parse_repo_ref
from repoqa.sources.tree import build_file_tree
from repoqa.store.service import VectorStoreService, build_backend

logger = logging.getLogger(__name__)

NOT_INDEXED = "Please process the repository first"
NO_RELEVANT_CODE = (
    "I couldn't find relevant code in the repository to answer your question. "
    "Could you please rephrase or ask about another aspect of the codebase?"
)


def failure_message(exc: Exception) -> str:
    return f"Sorry, something went wrong while answering your question: {exc}"


class CodebaseAssistant:
    """Ingest GitHub repositories and answer questions about them.

    Args:
        config:    Loaded configuration.
        host:      Repository host (GitHub client).
        embedder:  Embedding service used for chunks and questions alike.
        store:     Vector store service.
        generator: Answer generator; built from *config* when omitted.
        docs:      Documentation writer; built from *config* when omitted.
    """

    def __init__(
        self,
        config: RepoQAConfig,
        host: RepositoryHost,
        embedder: Embedder,
        store: VectorStoreService,
        generator: AnswerGenerator | None = None,
        docs: DocsWriter | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self.embedder = embedder
        self.store = store
        self.generator = generator or AnswerGenerator(
            config.generation, token_budget=config.retrieval.token_budget
        )
        self.docs = docs or DocsWriter(config.generation, token_budget=config.retrieval.token_budget)
        self.retriever = Retriever(embedder, store)
        self._repo_info: dict[str, RepositoryInfo] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @classmethod
    async def create(cls, config: RepoQAConfig) -> CodebaseAssistant:
        """Build an assistant with the configured backend and a GitHub client."""
        backend = await build_backend(config.vector_store)
        return cls(
            config=config,
            host=GitHubClient(),
            embedder=Embedder(config.embedding),
            store=VectorStoreService(backend),
        )

    async def aclose(self) -> None:
        aclose = getattr(self.host, "aclose", None)
        if aclose is not None:
            await aclose()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def _lock_for(self, repo_id: str) -> asyncio.Lock:
        return self._locks.setdefault(repo_id, asyncio.Lock())

    async def ingest(
        self,
        repo: str,
        on_state: Callable[[str, IngestState], None] | None = None,
    ) -> IngestResult:
        """Index *repo* (a GitHub URL or ``owner/repo``), replacing any previous index.

        Raises:
            InvalidRepositoryError, ListingError, IngestionError, VectorIndexError
        """
        owner, name = parse_repo_ref(repo)
        repo_id = repository_id(owner, name)
        async with self._lock_for(repo_id):
            orchestrator = IngestionOrchestrator(
                host=self.host,
                embedder=self.embedder,
                store=self.store,
                ingest=self.config.ingest,
                chunking=self.config.chunking,
                on_state=on_state,
            )
            result = await orchestrator.ingest(owner, name)
        if result.repository is not None:
            self._repo_info[repo_id] = result.repository
        return result

    async def is_indexed(self, repo: str) -> bool:
        owner, name = parse_repo_ref(repo)
        return await self.store.exists(repository_id(owner, name))

    async def purge(self, repo: str) -> None:
        """Delete the index and cached metadata for *repo*. Idempotent."""
        owner, name = parse_repo_ref(repo)
        repo_id = repository_id(owner, name)
        async with self._lock_for(repo_id):
            await self.store.delete(repo_id)
            self._repo_info.pop(repo_id, None)

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def _repository_info(self, owner: str, name: str) -> RepositoryInfo:
        repo_id = repository_id(owner, name)
        info = self._repo_info.get(repo_id)
        if info is None:
            try:
                info = await self.host.get_repository_info(owner, name)
            except ListingError as exc:
                logger.warning("No repository metadata for %s: %s", repo_id, exc)
                info = RepositoryInfo(owner=owner, name=name)
            self._repo_info[repo_id] = info
        return info

    async def ask(
        self,
        repo: str,
        question: str,
        history: list[dict] | None = None,
        k: int | None = None,
    ) -> Answer:
        """Answer *question* about an indexed repository.

        Query-time failures never raise: they are turned into an explanatory
        answer with ``retrieved_chunk_count == 0``.
        """
        owner, name = parse_repo_ref(repo)
        repo_id = repository_id(owner, name)
        top_k = k or self.config.retrieval.top_k
        try:
            if not await self.store.exists(repo_id):
                return Answer(text=NOT_INDEXED)
            results = await self.retriever.retrieve(repo_id, question, top_k)
            if not results:
                return Answer(text=NO_RELEVANT_CODE)
            info = await self._repository_info(owner, name)
            text = await self.generator.generate(question, results, info, history)
        except (EmbeddingError, VectorIndexError, GenerationError) as exc:
            logger.warning("Question about %s failed: %s", repo_id, exc)
            return Answer(text=failure_message(exc))
        return Answer(text=text, retrieved_chunk_count=len(results))

    async def embed_text(self, text: str) -> list[float]:
        """Embed arbitrary text with the configured embedding model.

        Raises:
            EmbeddingError: On upstream failure.
        """
        return await self.embedder.embed(text)

    # ------------------------------------------------------------------
    # Documentation and file tree
    # ------------------------------------------------------------------

    async def generate_docs(self, repo: str) -> Documentation:
        """Write Markdown documentation for an indexed repository.

        Every topic in :data:`~repoqa.rag.docs.DOC_TOPICS` becomes one
        section, in order. A section whose completion fails holds a
        placeholder text; retrieval failures abort the whole document.

        Raises:
            NotIndexedError:  *repo* has not been ingested.
            EmbeddingError:   A topic query could not be embedded.
            VectorIndexError: A store query failed.
        """
        owner, name = parse_repo_ref(repo)
        repo_id = repository_id(owner, name)
        if not await self.store.exists(repo_id):
            raise NotIndexedError(NOT_INDEXED)

        topic_results: list[list[QueryResult]] = []
        for topic in DOC_TOPICS:
            topic_results.append(await self.retriever.retrieve(repo_id, topic.query, DOCS_TOP_K))
        dependency_results = await self.retriever.retrieve(repo_id, DEPENDENCIES_QUERY, DOCS_TOP_K)

        info = await self._repository_info(owner, name)
        sections = []
        for topic, results in zip(DOC_TOPICS, topic_results):
            content = await self.docs.write_section(topic, results, info)
            sections.append(DocSection(key=topic.key, title=topic.title, content=content))

        all_results = [r for results in topic_results for r in results] + dependency_results
        return Documentation(
            title=f"{info.name} Documentation",
            language=documentation_language(all_results, info),
            sections=sections,
        )

    async def file_tree(self, repo: str) -> FileNode:
        """List *repo* on GitHub and return its supported files as a sorted tree.

        Raises:
            InvalidRepositoryError, ListingError
        """
        owner, name = parse_repo_ref(repo)
        files = await self.host.list_files(owner, name)
        return build_file_tree((f.path for f in files), name)
