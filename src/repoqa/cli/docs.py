"""repoqa docs — generate Markdown documentation for a repository.

The repository is ingested first unless an index already exists. One
completion is made per documentation topic, so this takes several model
calls.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn

from repoqa.assistant import CodebaseAssistant
from repoqa.cli.common import console, load_settings, require_api_keys
from repoqa.cli.errors import err_docs
from repoqa.cli.ingest import ensure_indexed
from repoqa.config import RepoQAConfig
from repoqa.errors import EmbeddingError, NotIndexedError, VectorIndexError
from repoqa.models import Documentation


async def _docs(config: RepoQAConfig, repo: str) -> Documentation:
    assistant = await CodebaseAssistant.create(config)
    try:
        await ensure_indexed(assistant, repo)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task(f"{repo}: writing documentation…", total=None)
            return await assistant.generate_docs(repo)
    except (NotIndexedError, EmbeddingError, VectorIndexError) as exc:
        console.print(err_docs(repo, str(exc)))
        raise typer.Exit(1) from None
    finally:
        await assistant.aclose()


def docs_cmd(
    ctx: typer.Context,
    repo: Annotated[str, typer.Argument(help="GitHub URL or owner/repo.")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the Markdown to this file instead of the terminal."),
    ] = None,
) -> None:
    """Generate documentation for a repository."""
    config = load_settings(ctx)
    require_api_keys(config.embedding.model, config.generation.model)
    documentation = asyncio.run(_docs(config, repo))
    markdown = documentation.to_markdown()
    if output is None:
        console.print(Markdown(markdown))
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markdown, encoding="utf-8")
    console.print(f"[green]✓[/] Written to [bold]{output}[/]")
