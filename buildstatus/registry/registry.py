import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

import yaml  # type: ignore[import]

logger = logging.getLogger(__name__)


class StepRegistry(Mapping[int, Optional[str]]):
    """Step number to declared step id, read once from the build manifest.

    ``expected_steps`` counts every declared step, including those without an
    id, and is 0 when no manifest could be read.
    """

    def __init__(self, ids: Optional[Dict[int, Optional[str]]] = None) -> None:
        self._ids: Dict[int, Optional[str]] = dict(ids or {})

    def __getitem__(self, number: int) -> Optional[str]:
        return self._ids[number]

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def expected_steps(self) -> int:
        return len(self._ids)

    def lookup(self, number: int) -> Optional[str]:
        """Return the declared id for a step, or None when it has none."""
        return self._ids.get(number) or None


def _ids_from_mapping(data: Any) -> Dict[int, Optional[str]]:
    if not isinstance(data, dict):
        raise ValueError("manifest must define a mapping")
    steps = data.get("steps")
    if not isinstance(steps, list):
        raise ValueError("manifest must define a list of steps")

    ids: Dict[int, Optional[str]] = {}
    for number, step in enumerate(steps):
        identifier = step.get("id") if isinstance(step, dict) else None
        ids[number] = str(identifier) if identifier else None
    return ids


def load_step_registry(manifest: Optional[str]) -> StepRegistry:
    """Parse the Cloud Build manifest for pretty step names.

    Returns an empty registry if the manifest is unset or cannot be read.
    """
    if not manifest:
        return StepRegistry()

    path = Path(manifest)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        logger.warning("Opening build manifest: %s", exc)
        return StepRegistry()
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        logger.warning("Reading build manifest %s: %s", path, exc)
        return StepRegistry()

    try:
        ids = _ids_from_mapping(data)
    except ValueError as exc:
        logger.warning("Reading build manifest %s: %s", path, exc)
        return StepRegistry()

    logger.debug("Loaded %s step ids from %s", len(ids), path)
    return StepRegistry(ids)
