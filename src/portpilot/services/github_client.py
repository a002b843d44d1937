"""GitHub REST client used for repository sync and analysis.

Every request carries a timeout. Fetching the repository list is atomic: it
either returns the complete list or raises, so an outage can never be
mistaken for an account with zero repositories.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any

import httpx

from portpilot import config
from portpilot.models.repository import RemoteRepository

logger = logging.getLogger(__name__)

_REPO_URL_PATTERN = re.compile(r"github\.com/([^/]+)/([^/?#]+)")

TREE_FILE_LIMIT = 50


class GitHubError(RuntimeError):
    """Base class for GitHub client failures."""


class GitHubAuthError(GitHubError):
    """The access token was rejected; the user must re-authenticate."""


class GitHubAPIError(GitHubError):
    """GitHub could not be reached or returned an unexpected response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """Extract ``(owner, repo)`` from a GitHub repository URL.

    Raises:
        ValueError: If the URL does not point at a GitHub repository.
    """
    match = _REPO_URL_PATTERN.search(repo_url or "")
    if not match:
        raise ValueError(f"Not a GitHub repository URL: {repo_url!r}")
    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise ValueError(f"Not a GitHub repository URL: {repo_url!r}")
    return owner, repo


class GitHubClient:
    """Thin synchronous wrapper around the GitHub REST API.

    Args:
        access_token: Per-user OAuth token.
        base_url: API root, defaults to ``GITHUB_API_URL``.
        timeout: Per-request timeout in seconds, defaults to ``GITHUB_TIMEOUT_SECONDS``.
        transport: Optional httpx transport, used by tests.
    """

    USER_AGENT = "PortPilot/1.0"
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or config.get_github_api_url()).rstrip("/")
        self._timeout = timeout if timeout is not None else config.get_github_timeout()
        self._headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.USER_AGENT,
            "X-GitHub-Api-Version": self.API_VERSION,
            "Authorization": f"Bearer {access_token}",
        }
        self._transport = transport

    def _request(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            with httpx.Client(
                timeout=self._timeout, headers=self._headers, transport=self._transport
            ) as client:
                return client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise GitHubAPIError(f"GitHub request timed out: {path}") from exc
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"GitHub request failed: {path}: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str) -> None:
        status_code = response.status_code
        rate_limited = status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        if status_code in (401, 403) and not rate_limited:
            raise GitHubAuthError(
                f"GitHub rejected the access token ({status_code}). Please re-authenticate."
            )
        if status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API error {status_code} for {path}",
                status_code=status_code,
            )

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = self._request(path, params)
        self._raise_for_status(response, path)
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(f"GitHub returned invalid JSON for {path}") from exc

    def list_repositories(self, per_page: int | None = None) -> list[RemoteRepository]:
        """Return the authenticated user's own repositories, most recently updated first.

        An item whose fields cannot be read still reports its URL, as an
        identity-only row flagged ``malformed``, so it is never mistaken for a
        deleted repository. Items without a URL are dropped. A malformed
        response as a whole raises :class:`GitHubAPIError`.
        """
        payload = self._get_json(
            "/user/repos",
            params={
                "type": "owner",
                "sort": "updated",
                "per_page": per_page or config.get_repo_page_size(),
            },
        )
        if not isinstance(payload, list):
            raise GitHubAPIError("GitHub returned an unexpected repository list payload")

        repos: list[RemoteRepository] = []
        for item in payload:
            try:
                repos.append(RemoteRepository.from_github(item))
            except ValueError as exc:
                repo_url = RemoteRepository.identity_of(item)
                if repo_url is None:
                    logger.warning("Dropping repository payload without html_url from GitHub")
                    continue
                logger.warning("%s", exc)
                repos.append(RemoteRepository.identity_only(repo_url))
        return repos

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        data = self._get_json(f"/repos/{owner}/{repo}")
        if not isinstance(data, dict):
            raise GitHubAPIError(f"GitHub returned an unexpected payload for {owner}/{repo}")
        return data

    def list_languages(self, owner: str, repo: str) -> dict[str, int]:
        data = self._get_json(f"/repos/{owner}/{repo}/languages")
        if not isinstance(data, dict):
            return {}
        return {
            str(name): size
            for name, size in data.items()
            if isinstance(size, int) and not isinstance(size, bool)
        }

    def get_repository_content(self, owner: str, repo: str, path: str) -> str | None:
        """Return the decoded text of a file, or None if it does not exist."""
        response = self._request(f"/repos/{owner}/{repo}/contents/{path}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, path)
        try:
            data = response.json()
        except ValueError as exc:
            raise GitHubAPIError(f"GitHub returned invalid JSON for {path}") from exc
        if not isinstance(data, dict) or "content" not in data:
            # Directories come back as a list.
            return None
        try:
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            logger.warning("Could not decode %s in %s/%s", path, owner, repo)
            return None

    def get_repository_tree(self, owner: str, repo: str) -> list[str]:
        """Return the file paths of ``HEAD``, recursively."""
        data = self._get_json(
            f"/repos/{owner}/{repo}/git/trees/HEAD", params={"recursive": "true"}
        )
        tree = data.get("tree", []) if isinstance(data, dict) else []
        return [
            item["path"]
            for item in tree
            if isinstance(item, dict) and item.get("type") == "blob" and item.get("path")
        ]
