"""repoqa ingest pipeline — code chunkers, embedder, ingestion orchestrator."""

from repoqa.ingest.base import BaseChunker, estimate_tokens
from repoqa.ingest.c_family import CFamilyChunker
from repoqa.ingest.go import GoChunker
from repoqa.ingest.java import JavaChunker
from repoqa.ingest.javascript import JavaScriptChunker
from repoqa.ingest.plaintext import SizeChunker
from repoqa.ingest.python import PythonChunker
from repoqa.ingest.registry import chunk_code_file, register
from repoqa.ingest.rust import RustChunker

__all__ = [
    "BaseChunker",
    "CFamilyChunker",
    "GoChunker",
    "JavaChunker",
    "JavaScriptChunker",
    "PythonChunker",
    "RustChunker",
    "SizeChunker",
    "chunk_code_file",
    "estimate_tokens",
    "register",
]
