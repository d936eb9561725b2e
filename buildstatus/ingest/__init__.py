"""Ingestion utilities for normalizing container events before aggregation."""

from .normalizer import STEP_NAME, coerce_event, normalize_event, parse_exit_code, parse_step_number

__all__ = [
    "STEP_NAME",
    "coerce_event",
    "normalize_event",
    "parse_exit_code",
    "parse_step_number",
]
