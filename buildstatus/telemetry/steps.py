"""Aggregation of step transitions into the authoritative per-step state."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional

from buildstatus.models import BuildSnapshot, StepState, StepStatus, StepTransition

logger = logging.getLogger(__name__)


class BuildState:
    """Per-step state for one build.

    Owned by a single task; it does no locking of its own.
    """

    def __init__(self, expected_steps: int = 0) -> None:
        self.expected_steps = expected_steps
        self._steps: Dict[int, StepState] = {}

    def __len__(self) -> int:
        return len(self._steps)

    def get(self, number: int) -> Optional[StepState]:
        return self._steps.get(number)

    def apply(self, transition: StepTransition) -> bool:
        """Apply a transition, returning False when it was ignored.

        Cancelled steps never change again: a killed container also reports a
        nonzero exit afterwards, which must not read as a failure.
        """
        current = self._steps.get(transition.number)
        if current is not None and current.status is StepStatus.CANCELLED:
            logger.debug("Ignoring %s for cancelled step %s", transition.status.label, transition.number)
            return False

        started_at = transition.started_at
        if not started_at and current is not None:
            started_at = current.started_at

        state = StepState(
            number=transition.number,
            display_id=transition.display_id,
            status=transition.status,
            started_at=started_at,
            ended_at=transition.ended_at,
            exit_code=transition.exit_code,
        )
        self._steps[transition.number] = state
        logger.info("Step %s: %s", state.display_id, state)

        if state.status is StepStatus.ERROR:
            self._cancel_running(state)
        return True

    def _cancel_running(self, failed: StepState) -> None:
        # Everything still running is killed once a step fails.
        for number, step in self._steps.items():
            if number == failed.number or step.status is not StepStatus.RUNNING:
                continue
            step.status = StepStatus.CANCELLED
            step.ended_at = failed.ended_at
            logger.debug("Cancelled step %s after %s failed", step.display_id, failed.display_id)

    def snapshot(self) -> BuildSnapshot:
        return BuildSnapshot(
            steps={number: replace(step) for number, step in self._steps.items()},
            expected_steps=self.expected_steps,
        )
