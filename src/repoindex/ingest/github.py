"""GitHub REST client — repository tree listing and file content (async, httpx).

Security requirements:
- The bearer token is sent only in the Authorization header; it is never
  logged and never included in exception messages.
- Only the configured API base URL is contacted.

Failure classes are distinguishable so the connection's error_message is
meaningful: AuthError, NotFoundError, RateLimitedError, FetchError.
"""

from __future__ import annotations

import base64
import binascii
import logging
import urllib.parse
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import TracebackType

import httpx

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
_API_VERSION = "2022-11-28"
_USER_AGENT = "repoindex/0.1"
_REPOS_PER_PAGE = 100


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GitHubError(RuntimeError):
    """Base class for GitHub API failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(GitHubError):
    """Token missing, invalid, expired, or lacking access (401 / 403)."""


class NotFoundError(GitHubError):
    """Repository, branch or path does not exist (404)."""


class RateLimitedError(GitHubError):
    """GitHub rate limit hit (429, or a 403 from the primary or secondary limit)."""

    def __init__(
        self, message: str, status_code: int | None = None, reset_at: datetime | None = None
    ) -> None:
        super().__init__(message, status_code)
        self.reset_at = reset_at


class FetchError(GitHubError):
    """Any other non-2xx response or transport failure."""


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


@dataclass
class TreeEntry:
    path: str
    type: str  # blob | tree
    sha: str = ""
    size: int | None = None


@dataclass
class GitHubUser:
    login: str
    id: int


@dataclass
class GitHubRepo:
    full_name: str
    html_url: str
    default_branch: str = "main"
    private: bool = False
    description: str | None = None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GitHubClient:
    """Async GitHub API client bound to one access token.

    Use as an async context manager; the underlying ``httpx.AsyncClient`` is
    closed on exit unless it was injected by the caller.

    Args:
        token: GitHub access token (sent as a bearer credential).
        api_url: API base URL (GitHub Enterprise: ``https://host/api/v3``).
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (e.g. with a mock transport).
    """

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("A GitHub token is required.")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._api_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": _USER_AGENT,
        }

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def fetch_user(self) -> GitHubUser:
        """Return the authenticated user (validates the token)."""
        data = await self._get_json("/user", what="user")
        return GitHubUser(login=data["login"], id=data["id"])

    async def list_repos(self) -> list[GitHubRepo]:
        """Return every repository the token can access, most recently updated first."""
        repos: list[GitHubRepo] = []
        page = 1
        while True:
            data = await self._get_json(
                "/user/repos",
                params={
                    "sort": "updated",
                    "per_page": _REPOS_PER_PAGE,
                    "page": page,
                    "type": "all",
                },
                what="repository list",
            )
            repos.extend(
                GitHubRepo(
                    full_name=r["full_name"],
                    html_url=r.get("html_url", ""),
                    default_branch=r.get("default_branch") or "main",
                    private=bool(r.get("private", False)),
                    description=r.get("description"),
                )
                for r in data
            )
            if len(data) < _REPOS_PER_PAGE:
                return repos
            page += 1

    async def fetch_repo(self, owner: str, repo: str) -> GitHubRepo:
        """Return repository metadata (canonical name, default branch)."""
        r = await self._get_json(f"/repos/{owner}/{repo}", what=f"repository {owner}/{repo}")
        return GitHubRepo(
            full_name=r["full_name"],
            html_url=r.get("html_url", ""),
            default_branch=r.get("default_branch") or "main",
            private=bool(r.get("private", False)),
            description=r.get("description"),
        )

    async def fetch_tree(self, owner: str, repo: str, branch: str) -> list[TreeEntry]:
        """Recursively list *branch* of *owner*/*repo*; returns file (blob) entries only.

        Raises:
            NotFoundError: Unknown repository or branch.
            AuthError: Bad or expired token.
            RateLimitedError: API quota exhausted.
        """
        branch_ref = urllib.parse.quote(branch, safe="")
        data = await self._get_json(
            f"/repos/{owner}/{repo}/git/trees/{branch_ref}",
            params={"recursive": "1"},
            what=f"tree for {owner}/{repo}@{branch}",
        )
        if data.get("truncated"):
            logger.warning(
                "GitHub truncated the tree listing for %s/%s@%s; some files will be missing",
                owner,
                repo,
                branch,
            )
        return [
            TreeEntry(
                path=item["path"],
                type=item["type"],
                sha=item.get("sha", ""),
                size=item.get("size"),
            )
            for item in data.get("tree", [])
            if item.get("type") == "blob"
        ]

    async def fetch_file_content(self, owner: str, repo: str, path: str) -> str:
        """Fetch and decode one file.

        Base64 bodies are decoded as UTF-8 (invalid bytes replaced); any other
        encoding is returned as sent.

        Raises:
            FetchError: Non-2xx response (message names *path*), undecodable body,
                or a file too large for the contents API (encoding "none").
        """
        quoted = urllib.parse.quote(path, safe="/")
        data = await self._get_json(
            f"/repos/{owner}/{repo}/contents/{quoted}", what=path
        )
        content = data.get("content") or ""
        encoding = data.get("encoding")
        # Files over 1 MB come back without a body
        if encoding == "none":
            raise FetchError(
                f"{path} is too large for the GitHub contents API "
                f"({data.get('size', 'unknown')} bytes)"
            )
        if encoding == "base64":
            try:
                raw = base64.b64decode(content)
            except (binascii.Error, ValueError) as exc:
                raise FetchError(f"Could not decode content of {path}: {exc}") from None
            return raw.decode("utf-8", errors="replace")
        return content

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _get_json(self, endpoint: str, *, what: str, params: dict | None = None):
        url = f"{self._api_url}{endpoint}"
        try:
            response = await self._client.get(url, headers=self._headers, params=params)
        except httpx.HTTPError as exc:
            raise FetchError(f"GitHub request failed for {what}: {type(exc).__name__}") from None
        _raise_for_status(response, what)
        try:
            return response.json()
        except ValueError:
            raise FetchError(f"GitHub returned invalid JSON for {what}") from None


def _raise_for_status(response: httpx.Response, what: str) -> None:
    """Map a GitHub error response to the matching GitHubError subclass."""
    status = response.status_code
    if 200 <= status < 300:
        return

    if status == 429 or (status == 403 and _is_rate_limited_403(response)):
        reset_at = _parse_reset(response.headers.get("x-ratelimit-reset")) or _parse_retry_after(
            response.headers.get("retry-after")
        )
        hint = f"; resets at {reset_at.isoformat()}" if reset_at else ""
        raise RateLimitedError(
            f"GitHub API rate limit exceeded while fetching {what} ({status}){hint}",
            status_code=status,
            reset_at=reset_at,
        )
    if status in (401, 403):
        raise AuthError(
            f"GitHub rejected the access token while fetching {what} ({status}). "
            "Reconnect GitHub or check the token's repository access.",
            status_code=status,
        )
    if status == 404:
        raise NotFoundError(f"GitHub API error: not found: {what} (404)", status_code=status)
    raise FetchError(f"GitHub API error fetching {what}: {status}", status_code=status)


def _parse_reset(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError):
        return None


def _parse_retry_after(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.now(timezone.utc) + timedelta(seconds=int(value))
    except (ValueError, OverflowError):
        return None


def _is_rate_limited_403(response: httpx.Response) -> bool:
    """Primary quota exhausted, or a secondary (abuse) limit.

    Secondary limits leave x-ratelimit-remaining untouched and are signalled
    by retry-after or by the message text instead.
    """
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    if response.headers.get("retry-after"):
        return True
    try:
        body = response.json()
    except ValueError:
        return False
    message = body.get("message", "") if isinstance(body, dict) else ""
    return "rate limit" in str(message).lower()
