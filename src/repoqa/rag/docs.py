"""Documentation writer: one grounded completion per documentation topic.

Each topic pairs a retrieval query with a writing prompt. The assistant
retrieves chunks for every topic's query; this module turns one topic's
chunks into a Markdown section. A failed or empty completion becomes a
placeholder section instead of an error, so one bad topic never loses the
others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from repoqa.config import GenerationCfg
from repoqa.models import QueryResult, RepositoryInfo
from repoqa.rag.assembler import apply_token_budget, format_context
from repoqa.rag.llm_client import acomplete

logger = logging.getLogger(__name__)

DOCS_TOP_K = 5
EMPTY_SECTION = "Unable to generate documentation for this section."


@dataclass(frozen=True)
class DocTopic:
    key: str
    title: str
    query: str
    prompt: str


DOC_TOPICS: tuple[DocTopic, ...] = (
    DocTopic(
        "overview",
        "Overview",
        "What is this project about? Explain the purpose, main features, and architecture",
        "Provide a comprehensive overview of this project. Explain what this project does, "
        "its purpose, main features, and target users. Include any relevant background information.",
    ),
    DocTopic(
        "structure",
        "Project Structure",
        "Describe the project structure, main directories, and important files",
        "Describe the project structure in detail. Explain the main directories, key files, "
        "and how they are organized. Focus on the most important parts of the codebase.",
    ),
    DocTopic(
        "architecture",
        "Architecture & Design",
        "Explain the software architecture, design patterns, and code organization",
        "Explain the software architecture and design patterns used in this project. "
        "Describe the main components, how they interact, and the overall system design.",
    ),
    DocTopic(
        "api",
        "API Documentation",
        "Document the main APIs, functions, and interfaces used in this project",
        "Document the main APIs, functions, classes, and interfaces in this project. "
        "Provide details on parameters, return values, and usage examples where appropriate.",
    ),
    DocTopic(
        "setup",
        "Setup & Installation",
        "How to set up, install, and run this project? What are the requirements?",
        "Provide detailed instructions on how to set up, install, and run this project. "
        "Include prerequisites, environment setup, configuration options, and any troubleshooting tips.",
    ),
)

# Retrieved only to learn which languages the indexed code uses.
DEPENDENCIES_QUERY = "List the main dependencies and technologies used in this project"

_SYSTEM_PROMPT = """\
You are a professional technical documentation writer specializing in software development. \
You're tasked with creating a high-quality documentation section for the '{name}' repository.

The documentation should be thorough, clear, and well-structured. \
Focus on providing valuable insights about the code, not just summarizing it.
Use proper Markdown formatting with headings, lists, code blocks, and other formatting as appropriate.

Your documentation should:
1. Be written for developers who need to understand this codebase
2. Include code examples where relevant, using proper syntax highlighting
3. Explain technical concepts clearly and accurately
4. Be well-organized with appropriate headings and structure
5. Focus on the most important aspects rather than exhaustively covering everything"""

_USER_PROMPT = """\
I need you to write the "{title}" section of the documentation for the {name} repository.

{prompt}

Here are the relevant parts of the codebase to help you write this section:
{context}

Write a comprehensive, well-structured documentation section using Markdown formatting. \
Include code examples where appropriate. \
Focus on the most important information that developers would need to know."""


def failed_section(title: str) -> str:
    return f"# {title}\n\nUnable to generate documentation for this section due to an error."


def documentation_language(results: list[QueryResult], repo_info: RepositoryInfo) -> str:
    """First chunk language seen, else the repository's primary language, else ``Unknown``."""
    for result in results:
        language = result.metadata.get("language")
        if language:
            return str(language)
    return repo_info.language or "Unknown"


class DocsWriter:
    """Write documentation sections from retrieved chunks.

    Args:
        config:       Generation model and sampling parameters (shared with answers).
        token_budget: Cap on context tokens per section; 0 = unlimited.
    """

    def __init__(self, config: GenerationCfg | None = None, token_budget: int = 0) -> None:
        self._config = config or GenerationCfg()
        self._token_budget = token_budget

    def build_messages(
        self,
        topic: DocTopic,
        results: list[QueryResult],
        repo_info: RepositoryInfo,
    ) -> list[dict]:
        if self._token_budget > 0:
            results, _ = apply_token_budget(results, self._config.model, self._token_budget)
        user = _USER_PROMPT.format(
            title=topic.title,
            name=repo_info.name,
            prompt=topic.prompt,
            context=format_context(results),
        )
        return [
            {"role": "system", "content": _SYSTEM_PROMPT.format(name=repo_info.name)},
            {"role": "user", "content": user},
        ]

    async def write_section(
        self,
        topic: DocTopic,
        results: list[QueryResult],
        repo_info: RepositoryInfo,
    ) -> str:
        """Return the section's Markdown. Never raises."""
        messages = self.build_messages(topic, results, repo_info)
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
            logger.warning("Documentation section '%s' failed: %s", topic.title, exc)
            return failed_section(topic.title)
        return text if text.strip() else EMPTY_SECTION
