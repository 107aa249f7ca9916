"""repoqa ask / repoqa chat — question answering over an indexed repository.

With the in-memory backend every invocation starts empty, so the
repository is ingested first. With a Chroma backend an existing index is
reused.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.markdown import Markdown

from repoqa.assistant import CodebaseAssistant
from repoqa.cli.common import console, load_settings, require_api_keys
from repoqa.cli.ingest import ensure_indexed
from repoqa.config import RepoQAConfig
from repoqa.models import Answer

_QUIT_WORDS = frozenset(["exit", "quit"])


def _print_answer(answer: Answer) -> None:
    console.print(Markdown(answer.text))
    if answer.retrieved_chunk_count:
        console.print(f"[dim]({answer.retrieved_chunk_count} code sections used)[/]")


async def _ask(config: RepoQAConfig, repo: str, question: str, top_k: int | None) -> Answer:
    assistant = await CodebaseAssistant.create(config)
    try:
        await ensure_indexed(assistant, repo)
        return await assistant.ask(repo, question, k=top_k)
    finally:
        await assistant.aclose()


async def _chat(config: RepoQAConfig, repo: str, top_k: int | None) -> None:
    assistant = await CodebaseAssistant.create(config)
    try:
        await ensure_indexed(assistant, repo)
        console.print("[dim]Ask a question; an empty line or 'exit' quits.[/]")
        history: list[dict] = []
        while True:
            try:
                question = typer.prompt("?", default="", show_default=False, prompt_suffix=" ")
            except typer.Abort:
                break
            question = question.strip()
            if not question or question.lower() in _QUIT_WORDS:
                break
            answer = await assistant.ask(repo, question, history=history, k=top_k)
            _print_answer(answer)
            history.append({"role": "user", "content": question})
            history.append({"role": "assistant", "content": answer.text})
    finally:
        await assistant.aclose()


def ask_cmd(
    ctx: typer.Context,
    repo: Annotated[str, typer.Argument(help="GitHub URL or owner/repo.")],
    question: Annotated[str, typer.Argument(help="Question about the codebase.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Number of code sections to retrieve."),
    ] = None,
) -> None:
    """Answer one question about a repository."""
    config = load_settings(ctx)
    require_api_keys(config.embedding.model, config.generation.model)
    _print_answer(asyncio.run(_ask(config, repo, question, top_k)))


def chat_cmd(
    ctx: typer.Context,
    repo: Annotated[str, typer.Argument(help="GitHub URL or owner/repo.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Number of code sections to retrieve."),
    ] = None,
) -> None:
    """Interactive question loop with conversation history."""
    config = load_settings(ctx)
    require_api_keys(config.embedding.model, config.generation.model)
    asyncio.run(_chat(config, repo, top_k))
