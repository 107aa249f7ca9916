"""Answer generator: grounded chat completion over retrieved code.

Message layout sent to the generation model::

    system     fixed read-only code-assistant prompt for the repository
    (history)  earlier user/assistant turns, oldest first
    user       the quoted question followed by the formatted context

Generation failures are raised as :class:`~repoqa.errors.GenerationError`
and are not retried.
"""

from __future__ import annotations

import logging

from repoqa.config import GenerationCfg
from repoqa.errors import GenerationError
from repoqa.models import QueryResult, RepositoryInfo
from repoqa.rag.assembler import apply_token_budget, format_context
from repoqa.rag.llm_client import acomplete

logger = logging.getLogger(__name__)

EMPTY_COMPLETION = "Sorry, I could not generate a response."

_SYSTEM_PROMPT = """\
You are a helpful and knowledgeable code assistant specialized in analyzing codebases. \
You're currently looking at a GitHub repository called '{name}' by {owner}. \
The repository is written primarily in {language}.

Repository description: {description}

Your goal is to help the user understand this codebase. You must follow these rules:
1. Only explain the code that is provided to you - don't make assumptions about other parts of the codebase.
2. Do NOT modify the codebase or suggest direct code edits.
3. Do NOT auto-apply or change anything - you're in read-only mode.
4. Only provide explanations, answer questions, and recommend what the user should do manually.
5. When referencing files or functions, be specific about their location and purpose.
6. If you don't know something, say so rather than guessing.

When explaining code:
- Focus on the high-level purpose first, then dive into details if needed
- Highlight important patterns, architectural choices, and design decisions
- Explain how different components interact
- Use clear and concise language

The user will ask you questions, and I'll provide relevant code from the repository to help you answer them."""

_USER_PROMPT = """\
Here is my question about the codebase: "{question}"

Below are the most relevant parts of the codebase to answer this question:
{context}

Please help me understand this code by answering my question thoroughly."""


def build_system_prompt(repo_info: RepositoryInfo) -> str:
    return _SYSTEM_PROMPT.format(
        name=repo_info.name,
        owner=repo_info.owner,
        language=repo_info.language or "multiple languages",
        description=repo_info.description or "No description provided",
    )


def build_user_prompt(question: str, context: str) -> str:
    return _USER_PROMPT.format(question=question, context=context)


class AnswerGenerator:
    """Generate an answer for a question from retrieved chunks.

    Args:
        config:       Generation model and sampling parameters.
        token_budget: Cap on context tokens passed to the model; 0 = unlimited.
    """

    def __init__(self, config: GenerationCfg | None = None, token_budget: int = 0) -> None:
        self._config = config or GenerationCfg()
        self._token_budget = token_budget

    @property
    def model(self) -> str:
        return self._config.model

    def build_messages(
        self,
        question: str,
        results: list[QueryResult],
        repo_info: RepositoryInfo,
        history: list[dict] | None = None,
    ) -> list[dict]:
        if self._token_budget > 0:
            results, total = apply_token_budget(results, self._config.model, self._token_budget)
            logger.debug("Context trimmed to %d results (%d tokens)", len(results), total)
        messages = [{"role": "system", "content": build_system_prompt(repo_info)}]
        messages.extend(history or [])
        messages.append(
            {"role": "user", "content": build_user_prompt(question, format_context(results))}
        )
        return messages

    async def generate(
        self,
        question: str,
        results: list[QueryResult],
        repo_info: RepositoryInfo,
        history: list[dict] | None = None,
    ) -> str:
        """Return the model's answer; :data:`EMPTY_COMPLETION` if it returned nothing.

        Raises:
            GenerationError: On any failure of the generation service.
        """
        messages = self.build_messages(question, results, repo_info, history)
        try:
            text = await acomplete(
                model=self._config.model,
                messages=messages,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                top_p=self._config.top_p,
                num_retries=0,
            )
        except Exception as exc:
            raise GenerationError(f"Failed to get a response from {self._config.model}: {exc}") from exc
        return text if text.strip() else EMPTY_COMPLETION
