"""repoqa rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from repoqa.cli.errors import err_invalid_repo
    console.print(err_invalid_repo(url))
    raise typer.Exit(1)
"""

from __future__ import annotations

from repoqa.rag.llm_client import provider_of, required_env_var


def err_no_api_key(model: str) -> str:
    """No API key for the provider of *model*.

    Example:
        No API key for 'groq' (model groq/llama3-8b-8192). Set:  export GROQ_API_KEY=...
    """
    provider = provider_of(model)
    env_var = required_env_var(model) or f"{provider.upper()}_API_KEY"
    return (
        f"[red]Error:[/] No API key for '{provider}' (model {model}).\n"
        f"  Set:  export {env_var}=..."
    )


def err_invalid_repo(ref: str) -> str:
    return (
        f"[red]Error:[/] Not a GitHub repository: '{ref}'\n"
        "  Use a URL like https://github.com/owner/repo or the short form owner/repo."
    )


def err_listing(ref: str, detail: str) -> str:
    """Repository could not be read from GitHub."""
    return (
        f"[red]Error:[/] Could not read repository '{ref}'.\n"
        f"  {detail}\n"
        "  Check that the repository exists and is public.\n"
        "  If you hit the API rate limit, set:  export GITHUB_TOKEN=ghp_..."
    )


def err_no_chunks(ref: str) -> str:
    return (
        f"[red]Error:[/] Failed to generate any code chunks from '{ref}'.\n"
        "  Every file failed to download or embed. Check the embedding model and its API key,\n"
        "  then run:  repoqa ingest --verbose <repo>  to see per-file failures."
    )


def err_vector_store(detail: str) -> str:
    return (
        f"[red]Error:[/] Vector store operation failed: {detail}\n"
        "  If you use vector_store.backend: chroma, check that the Chroma server is running\n"
        "  (CHROMA_HOST / CHROMA_PORT), or switch to backend: memory."
    )


def err_config(detail: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {detail}\n"
        "  Fix repoqa.yaml or ~/.repoqa/config.yaml and retry."
    )


def err_docs(ref: str, detail: str) -> str:
    """Documentation could not be generated because retrieval failed."""
    return (
        f"[red]Error:[/] Could not generate documentation for '{ref}'.\n"
        f"  {detail}\n"
        "  Check the embedding model's API key and the vector store, then retry."
    )
