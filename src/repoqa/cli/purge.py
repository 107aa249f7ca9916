"""repoqa purge — delete a repository's index."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer

from repoqa.assistant import CodebaseAssistant
from repoqa.cli.common import console, load_settings
from repoqa.cli.errors import err_invalid_repo, err_vector_store
from repoqa.config import RepoQAConfig
from repoqa.errors import InvalidRepositoryError, VectorIndexError


async def _purge(config: RepoQAConfig, repo: str) -> None:
    assistant = await CodebaseAssistant.create(config)
    try:
        await assistant.purge(repo)
    finally:
        await assistant.aclose()


def purge_cmd(
    ctx: typer.Context,
    repo: Annotated[str, typer.Argument(help="GitHub URL or owner/repo.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete the stored index for a repository."""
    config = load_settings(ctx)
    if not yes:
        if not typer.confirm(f"Delete the index for {repo}?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)
    try:
        asyncio.run(_purge(config, repo))
    except InvalidRepositoryError:
        console.print(err_invalid_repo(repo))
        raise typer.Exit(1) from None
    except VectorIndexError as exc:
        console.print(err_vector_store(str(exc)))
        raise typer.Exit(1) from None
    console.print(f"[green]✓[/] Removed index for {repo}")
