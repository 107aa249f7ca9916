"""repoqa init — write the global defaults file and a per-project repoqa.yaml.

Creates:
  ~/.repoqa/config.yaml   — global model defaults (created once, mode 0o600)
  repoqa.yaml             — project overrides template (skipped if present)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from repoqa.cli.common import console
from repoqa.config import ensure_global_config

_DEFAULT_PROJECT_DIR = Path(".")

_PROJECT_TEMPLATE = (
    "# repoqa project configuration. Overrides ~/.repoqa/config.yaml.\n"
    "# API keys and GITHUB_TOKEN come from the environment only.\n"
    "\n"
    "retrieval:\n"
    "  top_k: 5\n"
    "\n"
    "chunking:\n"
    "  max_tokens: 400\n"
    "\n"
    "# vector_store:\n"
    "#   backend: chroma\n"
    "#   host: localhost\n"
    "#   port: 8000\n"
)


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory for repoqa.yaml. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
) -> None:
    """Create the global config and a repoqa.yaml template."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    cfg_path = ensure_global_config()
    console.print(f"  [green]✓[/] {cfg_path} (global config)")

    project_cfg = project_dir / "repoqa.yaml"
    if project_cfg.exists():
        console.print(f"  [yellow]⚠[/]  {project_cfg} already exists, left unchanged.")
    else:
        project_cfg.write_text(_PROJECT_TEMPLATE, encoding="utf-8")
        console.print(f"  [green]✓[/] {project_cfg}")

    console.print("\nNext steps:")
    console.print("  1. export GROQ_API_KEY=... HUGGINGFACE_API_KEY=...")
    console.print("  2. repoqa ingest <owner/repo>")
    console.print("  3. repoqa ask <owner/repo> \"<question>\"")
