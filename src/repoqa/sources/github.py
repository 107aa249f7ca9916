"""GitHub repository host — URL parsing, metadata, recursive listing, raw file fetch.

Talks to the REST API (``https://api.github.com``) through ``httpx.AsyncClient``.
``GITHUB_TOKEN`` is sent as a bearer token when set; without it the
unauthenticated rate limit (60 requests/hour) applies.

Listing walks the contents API one directory at a time. Only files with a
supported extension are kept, and dependency/build directories are never
entered.
"""

from __future__ import annotations

import logging
import os
from urllib.parse import urlparse

import httpx

from repoqa.errors import InvalidRepositoryError, ListingError
from repoqa.models import RepositoryInfo, SourceFile

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.github.com"

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    [
        ".js", ".jsx", ".ts", ".tsx",
        ".py",
        ".java",
        ".go",
        ".cpp", ".hpp", ".h", ".c",
        ".rs",
        ".html", ".css",
    ]
)

SKIP_DIRS: frozenset[str] = frozenset(
    ["node_modules", ".git", "dist", "build", ".next", "venv", "__pycache__", "vendor"]
)

_DEFAULT_TIMEOUT = 30.0


# ------------------------------------------------------------------
# Repository references
# ------------------------------------------------------------------


def parse_github_url(url: str) -> tuple[str, str]:
    """Return ``(owner, repo)`` for a ``https://github.com/owner/repo[/...]`` URL.

    A trailing ``.git`` on the repository segment is stripped.

    Raises:
        InvalidRepositoryError: If the host is not github.com or the path has
            fewer than two segments.
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or parsed.hostname != "github.com":
        raise InvalidRepositoryError(f"Invalid GitHub URL: not a github.com URL: '{url}'")
    segments = [s for s in parsed.path.split("/") if s]
    if len(segments) < 2:
        raise InvalidRepositoryError(
            f"Invalid GitHub URL: URL does not contain a valid repository path: '{url}'"
        )
    owner, repo = segments[0], segments[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise InvalidRepositoryError(f"Invalid GitHub URL: empty repository name: '{url}'")
    return owner, repo


def parse_repo_ref(ref: str) -> tuple[str, str]:
    """Accept either a GitHub URL or an ``owner/repo`` identifier."""
    ref = ref.strip()
    if "://" in ref:
        return parse_github_url(ref)
    parts = [p for p in ref.split("/") if p]
    if len(parts) != 2:
        raise InvalidRepositoryError(
            f"Expected a GitHub URL or 'owner/repo', got '{ref}'"
        )
    owner, repo = parts
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


def is_supported_file(filename: str) -> bool:
    extension = "." + filename.rsplit(".", 1)[-1].lower()
    return extension in SUPPORTED_EXTENSIONS


def should_skip_directory(dirname: str) -> bool:
    return dirname.lower() in SKIP_DIRS


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------


class GitHubClient:
    """Async GitHub REST client.

    Args:
        token:  Personal access token; defaults to ``$GITHUB_TOKEN``.
        client: Pre-built ``httpx.AsyncClient`` (tests inject one with a
                ``MockTransport``). When omitted, one is created and owned.
    """

    def __init__(
        self,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        token = token if token is not None else os.environ.get("GITHUB_TOKEN")
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=API_BASE_URL,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
        )
        if client is not None:
            self._client.headers.update(headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------

    async def get_repository_info(self, owner: str, repo: str) -> RepositoryInfo:
        """Fetch name, description, primary language and star count.

        Raises:
            ListingError: If the repository cannot be read.
        """
        try:
            response = await self._client.get(f"/repos/{owner}/{repo}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ListingError(f"Failed to fetch repository information: {exc}") from exc
        return RepositoryInfo(
            owner=(data.get("owner") or {}).get("login", owner),
            name=data.get("name", repo),
            description=data.get("description"),
            language=data.get("language"),
            stars=int(data.get("stargazers_count") or 0),
        )

    async def list_files(self, owner: str, repo: str, path: str = "") -> list[SourceFile]:
        """Recursively list supported files under *path* (repository root by default).

        Raises:
            ListingError: If *path* itself cannot be listed. Failures in
                subdirectories are logged and the subtree is skipped.
        """
        try:
            return await self._walk(owner, repo, path)
        except (httpx.HTTPError, ValueError) as exc:
            raise ListingError(f"Failed to list {owner}/{repo}/{path}: {exc}") from exc

    async def _contents(self, owner: str, repo: str, path: str):
        url = f"/repos/{owner}/{repo}/contents/{path}" if path else f"/repos/{owner}/{repo}/contents"
        response = await self._client.get(url)
        response.raise_for_status()
        return response.json()

    async def _walk(self, owner: str, repo: str, path: str) -> list[SourceFile]:
        data = await self._contents(owner, repo, path)

        if isinstance(data, dict):
            if data.get("type", "file") == "file" and is_supported_file(data.get("name", "")):
                return [SourceFile(path=data["path"], download_url=data.get("download_url"))]
            return []

        files: list[SourceFile] = []
        for item in data:
            kind = item.get("type")
            name = item.get("name", "")
            if kind == "file" and is_supported_file(name):
                files.append(SourceFile(path=item["path"], download_url=item.get("download_url")))
            elif kind == "dir" and not should_skip_directory(name):
                try:
                    files.extend(await self._walk(owner, repo, item["path"]))
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning("Skipping %s: listing failed (%s)", item["path"], exc)
        return files

    async def get_file_content(self, download_url: str | None) -> str | None:
        """Download a raw file. Returns None on a missing URL, network error or non-2xx status."""
        if not download_url:
            return None
        try:
            response = await self._client.get(download_url)
        except httpx.HTTPError as exc:
            logger.warning("Error fetching %s: %s", download_url, exc)
            return None
        if not response.is_success:
            logger.warning("Failed to fetch %s: HTTP %d", download_url, response.status_code)
            return None
        return response.text
