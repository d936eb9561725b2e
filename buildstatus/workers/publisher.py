"""Debounced publishing of build step state as commit statuses.

Two tasks cooperate: a reader that turns Docker events into step transitions
and hands them over a bounded queue, and the coordinator in
``StatusPublisher.run`` which owns the build state, applies transitions in the
order received and decides when to publish. A reader failure is observed from
the reader task itself, so the coordinator reacts to it without waiting on the
queue.
"""

import asyncio
import contextlib
import enum
import logging
import time
from typing import Any, AsyncIterable, Callable, Optional, Protocol, Tuple

from buildstatus.adapters.github import PublishError
from buildstatus.ingest import normalize_event
from buildstatus.models import BuildInfo, CommitState, CommitStatusUpdate
from buildstatus.registry import StepRegistry
from buildstatus.telemetry import BuildState, synthesize

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.02
REFRESH_SECONDS = 10.0
QUEUE_SIZE = 10


class StatusSink(Protocol):
    async def publish(self, update: CommitStatusUpdate) -> None:
        ...


class EndOfStream:
    """Queued by the reader after the last transition of a finished stream."""


class ScheduleState(enum.Enum):
    IDLE = "idle"
    ARMED_SHORT = "armed_short"
    ARMED_STEADY = "armed_steady"


class PublishSchedule:
    """When the next publish is due.

    A transition arms the short debounce, restarting it if already armed. Once
    it fires, the steady refresh interval keeps running durations current.
    """

    def __init__(self, debounce: float = DEBOUNCE_SECONDS, refresh: float = REFRESH_SECONDS):
        self.debounce = debounce
        self.refresh = refresh
        self.state = ScheduleState.IDLE
        self.deadline: Optional[float] = None

    def on_transition(self, now: float) -> None:
        self.state = ScheduleState.ARMED_SHORT
        self.deadline = now + self.debounce

    def on_fire(self, now: float) -> None:
        self.state = ScheduleState.ARMED_STEADY
        self.deadline = now + self.refresh

    def timeout(self, now: float) -> Optional[float]:
        """Seconds until the next publish, or None when nothing is scheduled."""
        if self.state is ScheduleState.IDLE or self.deadline is None:
            return None
        return max(0.0, self.deadline - now)


class StatusPublisher:
    def __init__(
        self,
        build: BuildInfo,
        registry: StepRegistry,
        source: AsyncIterable[Any],
        sink: StatusSink,
        *,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        refresh_seconds: float = REFRESH_SECONDS,
        clock: Callable[[], int] = time.time_ns,
        queue_size: int = QUEUE_SIZE,
    ):
        self.build = build
        self.registry = registry
        self.state = BuildState(registry.expected_steps)
        self.schedule = PublishSchedule(debounce_seconds, refresh_seconds)
        self.updates_sent = 0
        self._source = source
        self._sink = sink
        self._clock = clock
        self._queue_size = queue_size

    async def run(self) -> None:
        """Publish until the build errors or the event stream ends.

        Raises the event source error, or the publish error of the final
        update.
        """
        queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=self._queue_size)
        reader = asyncio.create_task(self._read_events(queue), name="docker-events")
        try:
            await self._coordinate(queue, reader)
        finally:
            if not reader.done():
                reader.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reader

    async def _read_events(self, queue: "asyncio.Queue[Any]") -> None:
        async for raw in self._source:
            transition = normalize_event(raw, self.registry)
            if transition is not None:
                await queue.put(transition)
        await queue.put(EndOfStream())

    async def _coordinate(self, queue: "asyncio.Queue[Any]", reader: "asyncio.Task[None]") -> None:
        loop = asyncio.get_running_loop()
        exhausted = False
        getter: Optional["asyncio.Task[Any]"] = None
        try:
            while True:
                # The reader may have failed while a publish was in flight.
                _raise_reader_error(reader)
                if getter is None:
                    getter = asyncio.ensure_future(queue.get())
                waiters = {getter}
                if not reader.done():
                    waiters.add(reader)

                done, _ = await asyncio.wait(
                    waiters,
                    timeout=self.schedule.timeout(loop.time()),
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if reader in done:
                    _raise_reader_error(reader)

                if getter in done:
                    item = getter.result()
                    getter = None
                    if isinstance(item, EndOfStream):
                        exhausted = True
                    else:
                        self.state.apply(item)
                        self.schedule.on_transition(loop.time())
                        continue
                elif done:
                    # Reader finished cleanly; its end marker is still queued.
                    continue
                else:
                    self.schedule.on_fire(loop.time())

                update, error = await self._publish()
                if update is not None and update.state is CommitState.ERROR:
                    if error is not None:
                        raise error
                    return
                if exhausted:
                    if error is not None:
                        raise error
                    return
        finally:
            if getter is not None:
                getter.cancel()

    async def _publish(self) -> Tuple[Optional[CommitStatusUpdate], Optional[PublishError]]:
        update = synthesize(self.state.snapshot(), self.build, self._clock())
        if update is None:
            logger.info("No build steps seen; skipping status update.")
            return None, None

        logger.info("Status update: %s", update.model_dump(mode="json"))
        try:
            await self._sink.publish(update)
        except PublishError as exc:
            logger.error("Error: %s", exc)
            return update, exc

        self.updates_sent += 1
        logger.info("Status updated.")
        return update, None


def _raise_reader_error(reader: "asyncio.Task[None]") -> None:
    if reader.done() and not reader.cancelled():
        error = reader.exception()
        if error is not None:
            raise error
