"""Adapter for publishing GitHub commit statuses."""

import logging
from typing import Optional, Tuple
from urllib.parse import quote

import httpx

from buildstatus.models import CommitStatusUpdate
from buildstatus.settings import Settings

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """Raised when GitHub does not accept a commit status."""


def split_user_pass(user_pass: str) -> Tuple[str, str]:
    """Split "user:pass" into its parts. A bare "pass" has an empty user."""
    user, sep, password = user_pass.partition(":")
    if not sep:
        return "", user_pass
    return user, password


def statuses_url(settings: Settings) -> str:
    return "/".join(
        [
            settings.github_api.rstrip("/"),
            "repos",
            quote(settings.github_user or "", safe=""),
            quote(settings.github_repo or "", safe=""),
            "statuses",
            quote(settings.commit_sha or "", safe=""),
        ]
    )


class GitHubStatusClient:
    """Sets the status of one commit. Use as an async context manager."""

    def __init__(self, settings: Settings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = statuses_url(settings)
        self._auth = httpx.BasicAuth(*split_user_pass(settings.github_token or ""))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubStatusClient":
        self._client = httpx.AsyncClient(transport=self._transport, timeout=10.0)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def publish(self, update: CommitStatusUpdate) -> None:
        if self._client is None:
            raise RuntimeError("GitHubStatusClient used outside of its context")

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/vnd.github.v3+json",
        }
        try:
            response = await self._client.post(
                self.url,
                json=update.model_dump(mode="json"),
                headers=headers,
                auth=self._auth,
            )
        except httpx.HTTPError as exc:
            raise PublishError(f"updating github status: {exc}") from exc

        if response.status_code != httpx.codes.CREATED:
            raise PublishError(
                f"{response.status_code} {response.reason_phrase} response from github:\n{response.text}"
            )
