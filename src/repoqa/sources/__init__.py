"""Repository hosts that repoqa can ingest from."""

from repoqa.sources.github import GitHubClient, parse_github_url, parse_repo_ref

__all__ = ["GitHubClient", "parse_github_url", "parse_repo_ref"]
