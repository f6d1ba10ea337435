from __future__ import annotations

import json
import logging
from typing import Any, Callable
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from lyra_sync import __version__
from lyra_sync.domain.ports import HostingProviderPort


class GitHubPullRequestAdapter(HostingProviderPort):
    def __init__(
        self,
        *,
        token: str,
        api_base_url: str = "https://api.github.com",
        timeout_seconds: float = 30.0,
        user_agent: str = f"lyra-sync/{__version__}",
        urlopen_fn: Callable[..., Any] = urlopen,
    ) -> None:
        self._token = token
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._urlopen_fn = urlopen_fn
        self._logger = logging.getLogger(__name__)

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
        title: str,
        body: str,
    ) -> str:
        url = f"{self._api_base_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/pulls"
        self._logger.info(
            "opening pull request",
            extra={
                "event": "github.pull_request.create.start",
                "owner": owner,
                "repo": repo,
                "base": base,
                "head": head,
            },
        )
        payload = self._request_json(
            url,
            method="POST",
            body={"title": title, "body": body, "head": head, "base": base},
        )

        html_url = payload.get("html_url")
        if not isinstance(html_url, str) or not html_url.strip():
            raise RuntimeError("Unexpected GitHub API payload: pull request has no 'html_url'")

        self._logger.info(
            "pull request opened",
            extra={"event": "github.pull_request.create.success", "url": html_url},
        )
        return html_url

    def _request_json(self, url: str, *, method: str, body: dict[str, Any]) -> dict[str, Any]:
        request = Request(
            url,
            data=json.dumps(body).encode("utf-8"),
            headers=self._build_headers(),
            method=method,
        )
        try:
            with self._urlopen_fn(request, timeout=self._timeout_seconds) as response:
                content = response.read()
        except HTTPError as error:
            raise RuntimeError(
                f"GitHub API request failed with HTTP {error.code} for URL: {url}: {self._error_message(error)}"
            ) from error
        except URLError as error:
            raise RuntimeError(f"GitHub API request failed for URL: {url}: {error.reason}") from error

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as error:
            raise RuntimeError(f"Invalid JSON received from GitHub API for URL: {url}") from error

        if not isinstance(parsed, dict):
            raise RuntimeError("Unexpected GitHub API payload: top-level object must be a JSON object")

        return parsed

    def _build_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @staticmethod
    def _error_message(error: HTTPError) -> str:
        try:
            raw = error.read()
        except OSError:
            return str(error.reason)
        if not raw:
            return str(error.reason)
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
        if isinstance(parsed, dict) and isinstance(parsed.get("message"), str):
            return parsed["message"]
        return str(parsed)
