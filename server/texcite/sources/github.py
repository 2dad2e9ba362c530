from __future__ import annotations

import base64
import binascii
import logging
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import quote, urlparse

import requests

from server.texcite.core.config import Settings
from server.texcite.sources.concurrency import request_slot
from server.texcite.sources.http import backoff_sleep, is_retryable

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], str]

_REPO_URL_PATTERNS = (
    re.compile(r"^https?://github\.com/([^/]+)/([^/.]+)(?:\.git)?/?$"),
    re.compile(r"^git@github\.com:([^/]+)/([^/.]+)(?:\.git)?$"),
    re.compile(r"^([^/]+)/([^/]+)$"),
)


class FileFetchError(RuntimeError):
    pass


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str


def parse_github_url(url: str) -> RepoRef | None:
    value = (url or "").strip()
    for pattern in _REPO_URL_PATTERNS:
        m = pattern.match(value)
        if m:
            return RepoRef(owner=m.group(1), repo=m.group(2))
    return None


@dataclass
class GitHubClient:
    api_url: str = "https://api.github.com"
    token: str = ""
    user_agent: str = "texcite/0.1"
    timeout_seconds: float = 20.0
    max_concurrency: int = 4
    max_attempts: int = 3
    _session_local: threading.local = field(default_factory=threading.local, init=False, repr=False)
    _branches: dict[tuple[str, str], str] = field(default_factory=dict, init=False, repr=False)
    _branches_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitHubClient":
        return cls(
            api_url=settings.github_api_url,
            token=settings.github_token,
            user_agent=settings.github_user_agent,
            timeout_seconds=settings.api_timeout_seconds,
            max_concurrency=settings.github_max_concurrency,
        )

    def _client(self) -> requests.Session:
        session = getattr(self._session_local, "session", None)
        if session is None:
            session = requests.Session()
            self._session_local.session = session
        return session

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": self.user_agent}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_json(self, url: str, *, params: dict | None = None) -> dict:
        host = urlparse(self.api_url).netloc or "github"
        last_exc: requests.RequestException | None = None
        for attempt in range(max(1, self.max_attempts)):
            try:
                with request_slot(host=host, limit=self.max_concurrency):
                    resp = self._client().get(url, headers=self._headers(), params=params, timeout=self.timeout_seconds)
                resp.raise_for_status()
            except requests.RequestException as e:
                last_exc = e
                if not is_retryable(e) or attempt + 1 >= self.max_attempts:
                    break
                logger.warning("GitHub request to %s failed (attempt %s): %s", url, attempt + 1, e)
                backoff_sleep(attempt)
                continue
            try:
                payload = resp.json()
            except ValueError as e:
                raise FileFetchError(f"GitHub returned invalid JSON for {url}") from e
            if not isinstance(payload, dict):
                raise FileFetchError(f"Unexpected GitHub payload for {url}")
            return payload
        raise FileFetchError(f"GitHub request failed for {url}: {last_exc}") from last_exc

    def default_branch(self, ref: RepoRef) -> str:
        key = (ref.owner, ref.repo)
        with self._branches_lock:
            cached = self._branches.get(key)
        if cached:
            return cached
        data = self._get_json(f"{self.api_url}/repos/{ref.owner}/{ref.repo}")
        branch = str(data.get("default_branch") or "").strip() or "main"
        with self._branches_lock:
            self._branches[key] = branch
        return branch

    def get_file_content(self, repo_url: str, path: str, *, ref: str | None = None) -> str:
        repo = parse_github_url(repo_url)
        if repo is None:
            raise FileFetchError(f"Invalid GitHub repository URL: {repo_url!r}")
        branch = ref or self.default_branch(repo)
        url = f"{self.api_url}/repos/{repo.owner}/{repo.repo}/contents/{quote(path.lstrip('/'), safe='/')}"
        data = self._get_json(url, params={"ref": branch})
        return decode_content(data, path=path)

    def fetcher(self, repo_url: str, *, ref: str | None = None) -> FetchFn:
        def fetch(path: str) -> str:
            return self.get_file_content(repo_url, path, ref=ref)

        return fetch


def decode_content(data: dict, *, path: str) -> str:
    content = data.get("content")
    if content is None:
        if data.get("type") not in (None, "file"):
            raise FileFetchError(f"{path} is a {data.get('type')}, not a file")
        return ""
    if data.get("encoding") != "base64":
        return str(content)
    try:
        raw = base64.b64decode(str(content), validate=False)
        return raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise FileFetchError(f"Could not decode {path} as UTF-8 text") from e
