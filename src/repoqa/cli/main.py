"""repoqa CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from repoqa.cli.ask import ask_cmd, chat_cmd
from repoqa.cli.docs import docs_cmd
from repoqa.cli.ingest import ingest_cmd
from repoqa.cli.init import init_cmd
from repoqa.cli.purge import purge_cmd
from repoqa.cli.tree import tree_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("repoqa")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"repoqa {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="repoqa",
    help=(
        "repoqa — ask questions about a GitHub repository's code.\n\n"
        "  repoqa init    Write ~/.repoqa/config.yaml and a repoqa.yaml template.\n"
        "  repoqa ingest  Index a repository (GitHub URL or owner/repo).\n"
        "  repoqa ask     Answer one question, grounded in the repository's code.\n"
        "  repoqa chat    Interactive question loop.\n"
        "  repoqa docs    Generate Markdown documentation for a repository.\n"
        "  repoqa tree    Show the repository's code files as a tree."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline progress (INFO level)."),
    ] = False,
) -> None:
    """repoqa — ask questions about a GitHub repository's code."""
    ctx.obj = {"verbose": verbose}


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("ask")(ask_cmd)
app.command("chat")(chat_cmd)
app.command("docs")(docs_cmd)
app.command("tree")(tree_cmd)
app.command("purge")(purge_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed repoqa version."""
    typer.echo(f"repoqa {_installed_version()}")


if __name__ == "__main__":
    app()
