"""repoqa tree — show a repository's supported files as a directory tree."""

from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer
from rich.markup import escape
from rich.tree import Tree

from repoqa.assistant import CodebaseAssistant
from repoqa.cli.common import console, load_settings
from repoqa.cli.errors import err_invalid_repo, err_listing
from repoqa.config import RepoQAConfig
from repoqa.errors import InvalidRepositoryError, ListingError
from repoqa.models import FileNode


def _add_children(branch: Tree, node: FileNode) -> None:
    for child in node.children:
        if child.is_dir:
            _add_children(branch.add(f"[bold blue]{escape(child.name)}/[/]"), child)
        else:
            branch.add(escape(child.name))


async def _tree(config: RepoQAConfig, repo: str) -> FileNode:
    assistant = await CodebaseAssistant.create(config)
    try:
        return await assistant.file_tree(repo)
    except InvalidRepositoryError:
        console.print(err_invalid_repo(repo))
    except ListingError as exc:
        console.print(err_listing(repo, str(exc)))
    finally:
        await assistant.aclose()
    raise typer.Exit(1)


def tree_cmd(
    ctx: typer.Context,
    repo: Annotated[str, typer.Argument(help="GitHub URL or owner/repo.")],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the tree as JSON."),
    ] = False,
) -> None:
    """Show the repository's supported code files as a tree."""
    config = load_settings(ctx)
    root = asyncio.run(_tree(config, repo))
    if as_json:
        typer.echo(json.dumps(root.as_dict(), indent=2))
        return
    if not root.children:
        console.print(f"[yellow]No supported code files found[/] ({repo})")
        return
    branch = Tree(f"[bold]{escape(root.name)}[/]")
    _add_children(branch, root)
    console.print(branch)
