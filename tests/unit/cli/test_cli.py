"""Tests for the repoqa CLI (typer CliRunner, fake services behind CodebaseAssistant)."""

from __future__ import annotations

import json
import stat
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from repoqa.assistant import CodebaseAssistant
from repoqa.cli.main import app
from repoqa.config import ConfigError, RepoQAConfig, load_config
from repoqa.store.memory import MemoryBackend
from repoqa.store.service import VectorStoreService

runner = CliRunner()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def services(make_host, fake_embedder, fake_generator, fake_docs, sample_files, monkeypatch):
    """Patch config loading and assistant construction; return the shared fakes."""
    monkeypatch.setenv("HUGGINGFACE_API_KEY", "hf_test")
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")
    host = make_host(sample_files)

    async def factory(config: RepoQAConfig) -> CodebaseAssistant:
        return CodebaseAssistant(
            config=config,
            host=host,
            embedder=fake_embedder,
            store=VectorStoreService(MemoryBackend()),
            generator=fake_generator,
            docs=fake_docs,
        )

    with (
        patch("repoqa.cli.common.load_config", return_value=RepoQAConfig()),
        patch.object(CodebaseAssistant, "create", new=AsyncMock(side_effect=factory)),
    ):
        yield {"host": host, "generator": fake_generator, "docs": fake_docs}


# ---------------------------------------------------------------------------
# repoqa --version / version
# ---------------------------------------------------------------------------


def test_version_flag_exits_zero() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "repoqa" in result.output


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("repoqa ")


# ---------------------------------------------------------------------------
# repoqa ingest
# ---------------------------------------------------------------------------


def test_ingest_success(services) -> None:
    result = runner.invoke(app, ["ingest", "https://github.com/octo/demo"])
    assert result.exit_code == 0, result.output
    assert "octo/demo: 2 files, 3 chunks indexed" in result.output


def test_ingest_invalid_repository(services) -> None:
    result = runner.invoke(app, ["ingest", "https://gitlab.com/octo/demo"])
    assert result.exit_code == 1
    assert "Not a GitHub repository" in result.output


def test_ingest_listing_failure(services) -> None:
    services["host"].listing_error = True
    result = runner.invoke(app, ["ingest", "octo/missing"])
    assert result.exit_code == 1
    assert "Could not read repository" in result.output


def test_ingest_all_downloads_fail(services) -> None:
    services["host"].files = {"a.py": None}
    result = runner.invoke(app, ["ingest", "octo/demo"])
    assert result.exit_code == 1
    assert "Failed to generate any code chunks" in result.output


def test_ingest_empty_repository(services) -> None:
    services["host"].files = {}
    result = runner.invoke(app, ["ingest", "octo/empty"])
    assert result.exit_code == 0
    assert "No supported code files" in result.output


def test_ingest_missing_api_key(services, monkeypatch) -> None:
    monkeypatch.delenv("HUGGINGFACE_API_KEY")
    result = runner.invoke(app, ["ingest", "octo/demo"])
    assert result.exit_code == 1
    assert "HUGGINGFACE_API_KEY" in result.output


def test_invalid_config_exits_one() -> None:
    with patch("repoqa.cli.common.load_config", side_effect=ConfigError("retrieval.top_k must be >= 1")):
        result = runner.invoke(app, ["ingest", "octo/demo"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# ---------------------------------------------------------------------------
# repoqa ask / chat
# ---------------------------------------------------------------------------


def test_ask_ingests_then_answers(services) -> None:
    result = runner.invoke(app, ["ask", "octo/demo", "How is the server started?", "-k", "2"])
    assert result.exit_code == 0, result.output
    assert "3 chunks indexed" in result.output
    assert "It returns the configured server." in result.output
    assert "(2 code sections used)" in result.output


def test_ask_missing_generation_key(services, monkeypatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY")
    result = runner.invoke(app, ["ask", "octo/demo", "foo?"])
    assert result.exit_code == 1
    assert "GROQ_API_KEY" in result.output


def test_ask_invalid_repository(services) -> None:
    result = runner.invoke(app, ["ask", "nope", "foo?"])
    assert result.exit_code == 1
    assert "Not a GitHub repository" in result.output


def test_chat_keeps_history_until_exit(services) -> None:
    result = runner.invoke(app, ["chat", "octo/demo"], input="what is foo\nand bar\nexit\n")
    assert result.exit_code == 0, result.output

    calls = services["generator"].calls
    assert [c["question"] for c in calls] == ["what is foo", "and bar"]
    assert calls[0]["history"] == []
    assert calls[1]["history"] == [
        {"role": "user", "content": "what is foo"},
        {"role": "assistant", "content": "It returns the configured server."},
    ]


def test_chat_empty_line_quits(services) -> None:
    result = runner.invoke(app, ["chat", "octo/demo"], input="\n")
    assert result.exit_code == 0
    assert services["generator"].calls == []


# ---------------------------------------------------------------------------
# repoqa purge
# ---------------------------------------------------------------------------


def test_purge_with_yes(services) -> None:
    result = runner.invoke(app, ["purge", "octo/demo", "--yes"])
    assert result.exit_code == 0
    assert "Removed index for octo/demo" in result.output


def test_purge_cancelled(services) -> None:
    result = runner.invoke(app, ["purge", "octo/demo"], input="n\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output


# ---------------------------------------------------------------------------
# repoqa init
# ---------------------------------------------------------------------------


def test_init_writes_global_and_project_config(tmp_path: Path, monkeypatch) -> None:
    global_cfg = tmp_path / "home" / ".repoqa" / "config.yaml"
    monkeypatch.setattr("repoqa.config._GLOBAL_CONFIG_PATH", global_cfg)
    project = tmp_path / "proj"

    result = runner.invoke(app, ["init", str(project)])

    assert result.exit_code == 0, result.output
    assert global_cfg.exists()
    assert stat.S_IMODE(global_cfg.stat().st_mode) == 0o600
    assert (project / "repoqa.yaml").exists()
    cfg = load_config(project_dir=project, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 5
    assert cfg.chunking.max_tokens == 400


def test_init_leaves_existing_project_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("repoqa.config._GLOBAL_CONFIG_PATH", tmp_path / "g" / "config.yaml")
    (tmp_path / "repoqa.yaml").write_text("retrieval:\n  top_k: 9\n", encoding="utf-8")

    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert "top_k: 9" in (tmp_path / "repoqa.yaml").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# repoqa docs
# ---------------------------------------------------------------------------


def test_docs_prints_every_section(services) -> None:
    result = runner.invoke(app, ["docs", "octo/demo"])
    assert result.exit_code == 0, result.output
    assert "3 chunks indexed" in result.output
    assert "Overview for demo" in result.output
    assert "Setup & Installation for demo" in result.output
    assert [key for key, _ in services["docs"].calls] == ["overview", "structure", "architecture", "api", "setup"]


def test_docs_written_to_file(services, tmp_path: Path) -> None:
    target = tmp_path / "DOCS.md"
    result = runner.invoke(app, ["docs", "octo/demo", "--output", str(target)])
    assert result.exit_code == 0, result.output
    text = target.read_text(encoding="utf-8")
    assert text.startswith("# demo Documentation\n")
    assert "## Setup & Installation\n\nSetup & Installation for demo\n" in text


def test_docs_invalid_repository(services) -> None:
    result = runner.invoke(app, ["docs", "nope"])
    assert result.exit_code == 1
    assert "Not a GitHub repository" in result.output


# ---------------------------------------------------------------------------
# repoqa tree
# ---------------------------------------------------------------------------


def test_tree_renders_directories_and_files(services) -> None:
    result = runner.invoke(app, ["tree", "octo/demo"])
    assert result.exit_code == 0, result.output
    assert "src/" in result.output
    assert "server.js" in result.output
    assert "main.py" in result.output


def test_tree_json(services) -> None:
    result = runner.invoke(app, ["tree", "octo/demo", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["name"] == "demo"
    assert [c["name"] for c in data["children"]] == ["app", "src"]


def test_tree_empty_repository(services) -> None:
    services["host"].files = {}
    result = runner.invoke(app, ["tree", "octo/empty"])
    assert result.exit_code == 0
    assert "No supported code files found" in result.output


def test_tree_listing_failure(services) -> None:
    services["host"].listing_error = True
    result = runner.invoke(app, ["tree", "octo/missing"])
    assert result.exit_code == 1
    assert "Could not read repository" in result.output
