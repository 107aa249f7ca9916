"""Context assembler: token budget and prompt formatting for retrieved chunks.

Pipeline:
  1. Apply token budget: keep the closest-first prefix of results whose
     combined size fits ``token_budget`` tokens (0 = unlimited). The closest
     result is always kept.
  2. Format the kept results into the context block of the user prompt.
"""

from __future__ import annotations

from repoqa.models import QueryResult
from repoqa.rag.llm_client import count_tokens


def format_context(results: list[QueryResult]) -> str:
    """Render *results* in the given order as FILE / SECTION blocks."""
    parts = [
        f"\n\n--- FILE: {result.path} ---\n--- SECTION: {result.name} ---\n{result.content}\n"
        for result in results
    ]
    return "".join(parts)


def apply_token_budget(
    results: list[QueryResult],
    model: str,
    budget: int,
) -> tuple[list[QueryResult], int]:
    """Select results that fit within *budget* tokens. Returns (selected, total_tokens)."""
    selected: list[QueryResult] = []
    total = 0
    for result in results:
        tokens = count_tokens(model, result.content)
        if budget > 0 and selected and total + tokens > budget:
            break
        selected.append(result)
        total += tokens
    return selected, total
