"""Build manifest step names."""

from .registry import StepRegistry, load_step_registry

__all__ = ["StepRegistry", "load_step_registry"]
