"""Synthesis of a commit status from the current build snapshot."""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote, quote_plus

from buildstatus.models import (
    DESCRIPTION_LIMIT,
    BuildInfo,
    BuildSnapshot,
    CommitState,
    CommitStatusUpdate,
    StepState,
    StepStatus,
)

SECOND = 1_000_000_000
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR
YEAR = 365 * DAY

# Shorter durations are noise in the description.
MIN_SHOWN_DURATION = 10 * SECOND

BUILD_CONSOLE_URL = "https://console.cloud.google.com/cloud-build/builds/"


def format_duration(nanos: int) -> str:
    """Format a duration using its two most significant units of y, d, h, m, s."""
    if nanos > YEAR:
        return f"{nanos // YEAR}y{(nanos % YEAR) // DAY}d"
    if nanos > DAY:
        return f"{nanos // DAY}d{(nanos % DAY) // HOUR}h"
    if nanos > HOUR:
        return f"{nanos // HOUR}h{(nanos % HOUR) // MINUTE}m"
    if nanos > MINUTE:
        return f"{nanos // MINUTE}m{(nanos % MINUTE) // SECOND}s"
    return f"{(nanos % MINUTE) // SECOND}s"


def sort_steps(steps: List[StepState]) -> List[StepState]:
    """Order steps errors first, then cancelled, running and done.

    Within a status the most recently ended, then most recently started, step
    comes first.
    """
    return sorted(steps, key=lambda step: (step.status, -step.ended_at, -step.started_at, step.number))


def step_duration(step: StepState, now_ns: int) -> Optional[int]:
    if not step.started_at:
        return None
    end = step.ended_at or now_ns
    return end - step.started_at


def describe_steps(steps: List[StepState], now_ns: int) -> str:
    parts: List[str] = []
    previous: Optional[StepStatus] = None
    for step in steps:
        if step.status != previous:
            if previous is not None:
                parts.append("; ")
            parts.append(f"{step.status.label}: ")
        else:
            parts.append(", ")
        parts.append(step.display_id)

        duration = step_duration(step, now_ns)
        if duration is not None and duration > MIN_SHOWN_DURATION:
            parts.append(f" {format_duration(duration)}")
        previous = step.status

    return "".join(parts)[:DESCRIPTION_LIMIT]


def commit_state(first: StepState, observed: int, expected: int) -> CommitState:
    if first.status in (StepStatus.ERROR, StepStatus.CANCELLED):
        return CommitState.ERROR
    if first.status is StepStatus.DONE and (expected == 0 or observed == expected):
        # Without a manifest a later step may still start. The next start
        # turns the status back to pending.
        return CommitState.SUCCESS
    return CommitState.PENDING


def target_url(build: BuildInfo, step_number: int) -> str:
    url = BUILD_CONSOLE_URL + quote(build.build_id, safe="")
    url += f";step={step_number}"
    url += "?project=" + quote_plus(build.project_id)
    return url


def synthesize(snapshot: BuildSnapshot, build: BuildInfo, now_ns: int) -> Optional[CommitStatusUpdate]:
    """Build the commit status for a snapshot, or None if no step was seen."""
    steps = sort_steps(list(snapshot.steps.values()))
    if not steps:
        return None

    first = steps[0]
    return CommitStatusUpdate(
        state=commit_state(first, len(steps), snapshot.expected_steps),
        target_url=target_url(build, first.number),
        description=describe_steps(steps, now_ns),
        context=build.context,
    )
