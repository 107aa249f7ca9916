"""repoqa configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (REPOQA_EMBEDDING_MODEL, REPOQA_GENERATION_MODEL,
                             REPOQA_VECTOR_BACKEND, CHROMA_HOST, CHROMA_PORT,
                             REPOQA_LOG_LEVEL)
  3. Per-project repoqa.yaml  (current working directory)
  4. Global ~/.repoqa/config.yaml  (defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys or tokens; GITHUB_TOKEN and the
provider keys are read from the environment only.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".repoqa"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "repoqa.yaml"

# Matches api_key, github_token, secret, password, credentials...
# Does NOT match max_tokens or token_budget.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "retrieval", "chunking", "ingest", "vector_store", "logging"]
)

_BACKENDS: frozenset[str] = frozenset(["memory", "chroma"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding service configuration (repoqa.yaml: embedding:)."""

    model: str = "huggingface/sentence-transformers/all-MiniLM-L6-v2"
    max_input_chars: int = 8_192
    request_delay: float = 0.1


@dataclass
class GenerationCfg:
    """Answer generation configuration (repoqa.yaml: generation:)."""

    model: str = "groq/llama3-8b-8192"
    temperature: float = 0.2
    max_tokens: int = 4_096
    top_p: float = 0.95


@dataclass
class RetrievalCfg:
    """Retrieval configuration (repoqa.yaml: retrieval:).

    Attributes:
        top_k: Number of nearest chunks passed to the generator.
        token_budget: Upper bound on context tokens; 0 disables the budget.
    """

    top_k: int = 5
    token_budget: int = 0


@dataclass
class ChunkingCfg:
    max_tokens: int = 400


@dataclass
class IngestCfg:
    """Ingestion batching (repoqa.yaml: ingest:).

    Attributes:
        files_per_batch: Files fetched and chunked before their chunks are embedded.
        insert_batch_size: Records per vector-store insert call.
        max_files: Cap on the number of listed files processed; None = all.
    """

    files_per_batch: int = 20
    insert_batch_size: int = 50
    max_files: int | None = None


@dataclass
class VectorStoreCfg:
    """Vector index backend (repoqa.yaml: vector_store:).

    ``backend: chroma`` connects to a Chroma server at host:port and falls
    back to the in-memory store if the server does not answer.
    """

    backend: str = "memory"
    host: str = "localhost"
    port: int = 8_000


@dataclass
class LoggingCfg:
    level: str = "WARNING"


@dataclass
class RepoQAConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    vector_store: VectorStoreCfg = field(default_factory=VectorStoreCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  Secrets must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: RepoQAConfig) -> None:
    if cfg.vector_store.backend not in _BACKENDS:
        raise ConfigError(
            f"vector_store.backend must be one of {sorted(_BACKENDS)}, "
            f"got '{cfg.vector_store.backend}'"
        )
    if cfg.chunking.max_tokens < 1:
        raise ConfigError("chunking.max_tokens must be >= 1")
    if cfg.ingest.files_per_batch < 1 or cfg.ingest.insert_batch_size < 1:
        raise ConfigError("ingest.files_per_batch and ingest.insert_batch_size must be >= 1")
    if cfg.ingest.max_files is not None and cfg.ingest.max_files < 1:
        raise ConfigError("ingest.max_files must be >= 1")
    if cfg.retrieval.top_k < 1:
        raise ConfigError("retrieval.top_k must be >= 1")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RepoQAConfig:
    """Build a *RepoQAConfig* from a merged raw YAML dict."""
    cfg = RepoQAConfig()

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            max_input_chars=int(e.get("max_input_chars", cfg.embedding.max_input_chars)),
            request_delay=float(e.get("request_delay", cfg.embedding.request_delay)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
            top_p=float(g.get("top_p", cfg.generation.top_p)),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", cfg.retrieval.top_k)),
            token_budget=int(r.get("token_budget", cfg.retrieval.token_budget)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(max_tokens=int(c.get("max_tokens", cfg.chunking.max_tokens)))

    if "ingest" in data:
        i = data["ingest"] or {}
        max_files = i.get("max_files", cfg.ingest.max_files)
        cfg.ingest = IngestCfg(
            files_per_batch=int(i.get("files_per_batch", cfg.ingest.files_per_batch)),
            insert_batch_size=int(i.get("insert_batch_size", cfg.ingest.insert_batch_size)),
            max_files=int(max_files) if max_files is not None else None,
        )

    if "vector_store" in data:
        v = data["vector_store"] or {}
        cfg.vector_store = VectorStoreCfg(
            backend=str(v.get("backend", cfg.vector_store.backend)).lower(),
            host=str(v.get("host", cfg.vector_store.host)),
            port=int(v.get("port", cfg.vector_store.port)),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper())

    return cfg


def _apply_env_overrides(cfg: RepoQAConfig) -> RepoQAConfig:
    """Apply REPOQA_* / CHROMA_* environment variable overrides."""
    if model := os.environ.get("REPOQA_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("REPOQA_GENERATION_MODEL"):
        cfg.generation.model = model
    if backend := os.environ.get("REPOQA_VECTOR_BACKEND"):
        cfg.vector_store.backend = backend.lower()
    if host := os.environ.get("CHROMA_HOST"):
        cfg.vector_store.host = host
    if port := os.environ.get("CHROMA_PORT"):
        try:
            cfg.vector_store.port = int(port)
        except ValueError:
            raise ConfigError(f"CHROMA_PORT must be an integer, got '{port}'") from None
    if level := os.environ.get("REPOQA_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RepoQAConfig:
    """Load and return a merged *RepoQAConfig*.

    Applies layers in order: global → per-project → env vars.

    Args:
        project_dir: Directory to search for *repoqa.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains secret-like fields or a value
            is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.repoqa/config.yaml`` with defaults if it does not exist.

    The directory is created with mode 0o700 and the file with 0o600.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# repoqa global configuration — defaults only.\n"
            "# NEVER store API keys or tokens here — use environment variables:\n"
            "#   export GITHUB_TOKEN=ghp_...\n"
            "#   export GROQ_API_KEY=gsk_...\n"
            "#   export HUGGINGFACE_API_KEY=hf_...\n"
            "\n"
            "embedding:\n"
            "  model: huggingface/sentence-transformers/all-MiniLM-L6-v2\n"
            "\n"
            "generation:\n"
            "  model: groq/llama3-8b-8192\n"
            "\n"
            "vector_store:\n"
            "  backend: memory\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
