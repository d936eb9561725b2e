"""Build step state and commit status synthesis."""

from .steps import BuildState
from .summary import format_duration, sort_steps, synthesize

__all__ = ["BuildState", "format_duration", "sort_steps", "synthesize"]
