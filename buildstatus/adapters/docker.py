"""Adapter for streaming container events from the Docker Engine API."""

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

EVENTS_PATH = "/events"
EVENTS_PARAMS = {"type": "container", "since": "10"}
UNREACHABLE_EXIT_CODE = 3


class EventSourceError(Exception):
    """Raised when the Docker event stream cannot be opened or read."""

    def __init__(self, message: str, exit_code: int = 1):
        self.exit_code = exit_code
        super().__init__(message)


def resolve_docker_host(docker_host: str) -> Tuple[str, Optional[str]]:
    """Return the base URL and, for unix sockets, the socket path."""
    if docker_host.startswith("unix://"):
        return "http://docker", docker_host[len("unix://"):]
    if docker_host.startswith("tcp://"):
        return "http://" + docker_host[len("tcp://"):], None
    return docker_host.rstrip("/"), None


class DockerEventSource:
    """Async iterator over decoded container event records."""

    def __init__(self, docker_host: str, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url, self.socket_path = resolve_docker_host(docker_host)
        if transport is None and self.socket_path:
            transport = httpx.AsyncHTTPTransport(uds=self.socket_path)
        self._transport = transport

    def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        return self.events()

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        timeout = httpx.Timeout(10.0, read=None)
        connected = False
        async with httpx.AsyncClient(base_url=self.base_url, transport=self._transport, timeout=timeout) as client:
            try:
                async with client.stream("GET", EVENTS_PATH, params=EVENTS_PARAMS) as response:
                    connected = True
                    if response.status_code != httpx.codes.OK:
                        body = (await response.aread()).decode("utf-8", "replace")
                        raise EventSourceError(
                            f"{response.status_code} {response.reason_phrase} fetching docker events:\n{body}",
                            exit_code=UNREACHABLE_EXIT_CODE,
                        )

                    async for line in response.aiter_lines():
                        record = _decode_line(line)
                        if record is not None:
                            yield record
            except httpx.HTTPError as exc:
                if not connected:
                    raise EventSourceError(
                        f"requesting docker events: {exc}",
                        exit_code=UNREACHABLE_EXIT_CODE,
                    ) from exc
                raise EventSourceError(f"reading docker events: {exc}") from exc

        logger.info("Docker event stream closed.")


def _decode_line(line: str) -> Optional[Dict[str, Any]]:
    line = line.strip()
    if not line:
        return None
    try:
        record = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.warning("Skipping undecodable docker event %r: %s", line[:200], exc)
        return None
    if not isinstance(record, dict):
        logger.warning("Skipping docker event that is not an object: %r", line[:200])
        return None
    return record
