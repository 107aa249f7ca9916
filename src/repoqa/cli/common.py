"""Helpers shared by the repoqa commands: config loading and error mapping."""

from __future__ import annotations

import typer
from rich.console import Console

from repoqa.cli.errors import err_config, err_no_api_key
from repoqa.config import ConfigError, RepoQAConfig, load_config
from repoqa.log import setup_logging
from repoqa.rag.llm_client import validate_api_key

console = Console()


def load_settings(ctx: typer.Context) -> RepoQAConfig:
    """Load the merged config and install logging. Exits 1 on an invalid config."""
    try:
        config = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from None
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    setup_logging("INFO" if verbose else config.logging.level)
    return config


def require_api_keys(*models: str) -> None:
    for model in models:
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(model))
            raise typer.Exit(1) from None
