"""Clients for the Docker event stream and the GitHub status API."""

from .docker import DockerEventSource, EventSourceError
from .github import GitHubStatusClient, PublishError

__all__ = ["DockerEventSource", "EventSourceError", "GitHubStatusClient", "PublishError"]
