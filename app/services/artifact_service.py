"""
Sprintpair — Artifact retrieval.

Fetches the ``README.md`` of a submitted GitHub repository from the raw
content host, trying the ``main`` branch first and falling back to
``master``.  Any failure (bad URL, 404 on both branches, network error) is
reported as ``ArtifactFetchFailed`` so the review pipeline can degrade.
"""

from __future__ import annotations

import re

import httpx
import structlog

from app.config import get_settings
from app.exceptions import ArtifactFetchFailed

logger = structlog.get_logger("sprintpair.artifact_service")

# Owner and repository name; anything after them (tree/..., blob/...) is ignored.
_GITHUB_URL_PATTERN = re.compile(r"^https?://github\.com/([^/\s]+)/([^/\s]+)/?.*$")

README_BRANCHES: tuple[str, ...] = ("main", "master")
USER_AGENT = "Sprintpair/1.0"


def parse_repo_reference(repo_url: str) -> tuple[str, str]:
    """Return ``(owner, repo)`` for a github.com repository URL.

    Raises ``ArtifactFetchFailed`` if the URL does not point at GitHub.
    """
    if not repo_url or not repo_url.strip():
        raise ArtifactFetchFailed(repo_url or "", "empty repository URL")

    match = _GITHUB_URL_PATTERN.match(repo_url.strip())
    if not match:
        raise ArtifactFetchFailed(repo_url, "not a GitHub repository URL")

    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise ArtifactFetchFailed(repo_url, "missing repository name")
    return owner, repo


class ArtifactService:
    """Reads README files from GitHub's raw content host."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        settings = get_settings()
        self.base_url = settings.GITHUB_RAW_BASE_URL.rstrip("/")
        self.token = settings.GITHUB_TOKEN
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "text/plain", "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_readme(self, repo_url: str) -> str:
        owner, repo = parse_repo_reference(repo_url)
        log = logger.bind(owner=owner, repo=repo)
        log.info("readme_fetch_started")

        if self._client is not None:
            content = await self._try_branches(self._client, owner, repo)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                content = await self._try_branches(client, owner, repo)

        if content is None:
            log.warning("readme_not_found", branches=list(README_BRANCHES))
            raise ArtifactFetchFailed(
                repo_url, "README.md not found on main or master branch"
            )
        return content

    async def _try_branches(
        self,
        client: httpx.AsyncClient,
        owner: str,
        repo: str,
    ) -> str | None:
        for branch in README_BRANCHES:
            content = await self._fetch_from_branch(client, owner, repo, branch)
            if content is not None:
                logger.info(
                    "readme_fetched",
                    owner=owner,
                    repo=repo,
                    branch=branch,
                    length=len(content),
                )
                return content
        return None

    async def _fetch_from_branch(
        self,
        client: httpx.AsyncClient,
        owner: str,
        repo: str,
        branch: str,
    ) -> str | None:
        url = f"{self.base_url}/{owner}/{repo}/{branch}/README.md"
        try:
            response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error(
                "readme_fetch_error",
                owner=owner,
                repo=repo,
                branch=branch,
                error=str(exc),
            )
            return None

        if response.status_code != 200:
            logger.debug(
                "readme_branch_missing",
                owner=owner,
                repo=repo,
                branch=branch,
                status_code=response.status_code,
            )
            return None
        return response.text
