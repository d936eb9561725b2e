"""Watch Cloud Build step containers and mirror their progress to GitHub.

Docker events for containers named ``step_N`` update a GitHub commit status
describing which steps are running, errored or done. The status links to the
build, directly at the first failing step.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

import httpx

from buildstatus.adapters import DockerEventSource, GitHubStatusClient
from buildstatus.registry import load_step_registry
from buildstatus.settings import Settings, get_settings
from buildstatus.workers import StatusPublisher

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def exit_code(exc: Optional[BaseException]) -> int:
    """Process exit code for an error: its ``exit_code`` if set, 0 for none, else 1."""
    if exc is None:
        return 0
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int):
        return code
    return 1


async def run(
    settings: Settings,
    *,
    docker_transport: Optional[httpx.AsyncBaseTransport] = None,
    github_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    settings.require()
    registry = load_step_registry(settings.build_manifest)
    source = DockerEventSource(settings.docker_host, transport=docker_transport)

    async with GitHubStatusClient(settings, transport=github_transport) as sink:
        publisher = StatusPublisher(
            settings.build_info(),
            registry,
            source,
            sink,
            debounce_seconds=settings.debounce_seconds,
            refresh_seconds=settings.refresh_seconds,
        )
        await publisher.run()


def main() -> None:
    # Give the final status update the best chance of reaching GitHub.
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
    configure_logging()

    try:
        asyncio.run(run(get_settings()))
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Error: %s", exc)
        sys.exit(exit_code(exc))


if __name__ == "__main__":
    main()
