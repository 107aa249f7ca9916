"""repoqa ingest — index a GitHub repository for question answering.

Pipeline (live state shown in a spinner):
  listing → fetching → chunking → embedding → indexed
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.progress import Progress, SpinnerColumn, TextColumn

from repoqa.assistant import CodebaseAssistant
from repoqa.cli.common import console, load_settings, require_api_keys
from repoqa.cli.errors import err_invalid_repo, err_listing, err_no_chunks, err_vector_store
from repoqa.config import RepoQAConfig
from repoqa.errors import IngestionError, InvalidRepositoryError, ListingError, VectorIndexError
from repoqa.ingest.orchestrator import IngestState
from repoqa.models import IngestResult

_STATE_LABELS: dict[IngestState, str] = {
    IngestState.IDLE: "Starting…",
    IngestState.LISTING: "Listing repository files…",
    IngestState.FETCHING: "Downloading files…",
    IngestState.CHUNKING: "Chunking code…",
    IngestState.EMBEDDING: "Embedding chunks…",
    IngestState.INDEXED: "Indexed",
    IngestState.FAILED: "Failed",
}


async def run_ingest(assistant: CodebaseAssistant, repo: str) -> IngestResult:
    """Ingest *repo* with a transient spinner. Errors are printed and exit 1."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task(f"{repo}: starting…", total=None)

        def on_state(repo_id: str, state: IngestState) -> None:
            prog.update(task, description=f"{repo_id}: {_STATE_LABELS[state]}")

        try:
            return await assistant.ingest(repo, on_state=on_state)
        except InvalidRepositoryError:
            console.print(err_invalid_repo(repo))
        except ListingError as exc:
            console.print(err_listing(repo, str(exc)))
        except IngestionError:
            console.print(err_no_chunks(repo))
        except VectorIndexError as exc:
            console.print(err_vector_store(str(exc)))
    raise typer.Exit(1)


def print_ingest_result(result: IngestResult) -> None:
    if result.file_count == 0:
        console.print(f"[yellow]{result.message}[/] ({result.repo_id})")
        return
    console.print(
        f"[green]✓[/] {result.repo_id}: {result.file_count} files, "
        f"{result.chunk_count} chunks indexed"
    )


async def ensure_indexed(assistant: CodebaseAssistant, repo: str) -> None:
    """Reuse an existing index for *repo*, or ingest it now. Exits 1 on a bad reference."""
    try:
        indexed = await assistant.is_indexed(repo)
    except InvalidRepositoryError:
        console.print(err_invalid_repo(repo))
        raise typer.Exit(1) from None
    if indexed:
        console.print(f"[dim]Using existing index for {repo}[/]")
        return
    print_ingest_result(await run_ingest(assistant, repo))


async def _ingest(config: RepoQAConfig, repo: str) -> IngestResult:
    assistant = await CodebaseAssistant.create(config)
    try:
        return await run_ingest(assistant, repo)
    finally:
        await assistant.aclose()


def ingest_cmd(
    ctx: typer.Context,
    repo: Annotated[str, typer.Argument(help="GitHub URL or owner/repo.")],
) -> None:
    """Index a GitHub repository."""
    config = load_settings(ctx)
    require_api_keys(config.embedding.model)
    result = asyncio.run(_ingest(config, repo))
    print_ingest_result(result)
