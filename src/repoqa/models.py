"""Domain models shared by the ingest, store and RAG layers."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field

UNNAMED_SECTION = "Unnamed section"

_COLLECTION_NAME_RE = re.compile(r"[^a-zA-Z0-9_]")


@dataclass
class SourceFile:
    """A file entry produced by repository listing."""

    path: str
    download_url: str | None


@dataclass
class ChunkMetadata:
    path: str
    language: str
    extension: str
    chunk_type: str = "code"
    name: str = UNNAMED_SECTION

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class Chunk:
    """A named slice of one source file; ``content`` includes the file preamble."""

    content: str
    metadata: ChunkMetadata


@dataclass
class EmbeddedChunk:
    content: str
    metadata: ChunkMetadata
    embedding: list[float] = field(default_factory=list)

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> EmbeddedChunk:
        return cls(content=chunk.content, metadata=chunk.metadata, embedding=embedding)


@dataclass
class VectorRecord:
    id: str
    embedding: list[float]
    document: str
    metadata: dict


@dataclass
class QueryResult:
    """One nearest-neighbour hit. ``distance`` is 1 - cosine similarity (0 = same direction)."""

    content: str
    metadata: dict
    distance: float

    @property
    def path(self) -> str:
        return str(self.metadata.get("path", ""))

    @property
    def name(self) -> str:
        return str(self.metadata.get("name") or UNNAMED_SECTION)


@dataclass
class RepositoryInfo:
    owner: str
    name: str
    description: str | None = None
    language: str | None = None
    stars: int = 0

    @property
    def repo_id(self) -> str:
        return repository_id(self.owner, self.name)


@dataclass
class IngestResult:
    repo_id: str
    state: str
    file_count: int = 0
    chunk_count: int = 0
    message: str = ""
    repository: RepositoryInfo | None = None


@dataclass
class Answer:
    text: str
    retrieved_chunk_count: int = 0


@dataclass
class DocSection:
    key: str
    title: str
    content: str


@dataclass
class Documentation:
    """Generated documentation for one repository, one section per topic."""

    title: str
    language: str
    sections: list[DocSection] = field(default_factory=list)

    def to_markdown(self) -> str:
        parts = [f"# {self.title}\n\n**Language:** {self.language}\n"]
        for section in self.sections:
            parts.append(f"\n## {section.title}\n\n{section.content.strip()}\n")
        return "".join(parts)


@dataclass
class FileNode:
    """A directory or file in a repository tree. Only files carry a ``path``."""

    name: str
    type: str = "directory"
    path: str = ""
    children: list[FileNode] = field(default_factory=list)

    @property
    def is_dir(self) -> bool:
        return self.type == "directory"

    def as_dict(self) -> dict:
        if self.is_dir:
            return {
                "name": self.name,
                "type": self.type,
                "children": [child.as_dict() for child in self.children],
            }
        return {"name": self.name, "type": self.type, "path": self.path}


def repository_id(owner: str, repo: str) -> str:
    """Return the ``owner/repo`` identifier used to key collections."""
    return f"{owner}/{repo}"


def collection_name(repo_id: str) -> str:
    """Convert a repository identifier to a safe collection name.

    Examples:
        "octocat/Hello-World" -> "repo_octocat_Hello_World"
    """
    return f"repo_{_COLLECTION_NAME_RE.sub('_', repo_id)}"
