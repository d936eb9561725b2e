"""Normalization of Docker container events into build step transitions."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from buildstatus.models import DockerEvent, StepStatus, StepTransition
from buildstatus.registry import StepRegistry

logger = logging.getLogger(__name__)

STEP_NAME = re.compile(r"step_([0-9]+)")


def parse_step_number(name: str) -> Optional[int]:
    """Return N for a container named ``step_N``, otherwise None."""
    match = STEP_NAME.fullmatch(name or "")
    if match is None:
        return None
    return int(match.group(1))


def parse_exit_code(value: Optional[Union[str, int]]) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


def coerce_event(raw: Union[DockerEvent, Mapping[str, Any]]) -> Optional[DockerEvent]:
    """Ensure a raw event record is represented as a DockerEvent."""
    if isinstance(raw, DockerEvent):
        return raw
    try:
        return DockerEvent.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Skipping malformed docker event: %s", exc)
        return None


def normalize_event(
    raw: Union[DockerEvent, Mapping[str, Any]],
    registry: StepRegistry,
) -> Optional[StepTransition]:
    """Map a Docker event to a step transition, or None if it is not one."""
    event = coerce_event(raw)
    if event is None:
        return None

    name = event.actor.attributes.name
    number = parse_step_number(name)
    if number is None:
        return None

    started_at = 0
    ended_at = 0
    exit_code = 0
    if event.action == "start":
        status = StepStatus.RUNNING
        started_at = event.timestamp
    elif event.action == "kill":
        status = StepStatus.CANCELLED
        ended_at = event.timestamp
    elif event.action == "die":
        ended_at = event.timestamp
        exit_code = parse_exit_code(event.actor.attributes.exitCode)
        status = StepStatus.DONE if exit_code == 0 else StepStatus.ERROR
    else:
        return None

    return StepTransition(
        number=number,
        display_id=registry.lookup(number) or name,
        status=status,
        started_at=started_at,
        ended_at=ended_at,
        exit_code=exit_code,
    )
