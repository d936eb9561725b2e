from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DESCRIPTION_LIMIT = 140


class StepStatus(IntEnum):
    """Per-step status. The integer value is the display precedence."""

    ERROR = 1
    CANCELLED = 2
    RUNNING = 3
    DONE = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass
class StepState:
    number: int
    display_id: str
    status: StepStatus
    started_at: int = 0
    ended_at: int = 0
    exit_code: int = 0


@dataclass(frozen=True)
class StepTransition:
    """A normalized lifecycle change for one build step.

    Times are nanoseconds since the epoch; zero means the event did not carry
    that time.
    """

    number: int
    display_id: str
    status: StepStatus
    started_at: int = 0
    ended_at: int = 0
    exit_code: int = 0


@dataclass(frozen=True)
class BuildSnapshot:
    steps: Dict[int, StepState] = field(default_factory=dict)
    expected_steps: int = 0


@dataclass(frozen=True)
class BuildInfo:
    project_id: str
    build_id: str
    context: str = "gcb"


class DockerAttributes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    image: Optional[str] = None
    exitCode: Optional[Union[str, int]] = None
    signal: Optional[str] = None


class DockerActor(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="ID")
    attributes: DockerAttributes = Field(default_factory=DockerAttributes, alias="Attributes")


class DockerEvent(BaseModel):
    """A record from the Docker Engine ``/events`` stream."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Optional[str] = Field(default=None, alias="Type")
    action: str = Field(default="", alias="Action")
    actor: DockerActor = Field(default_factory=DockerActor, alias="Actor")
    scope: Optional[str] = None
    time: int = 0
    time_nano: int = Field(default=0, alias="timeNano")

    @property
    def timestamp(self) -> int:
        if self.time_nano:
            return self.time_nano
        return self.time * 1_000_000_000


class CommitState(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class CommitStatusUpdate(BaseModel):
    """Body of a GitHub commit status request."""

    model_config = ConfigDict(frozen=True)

    state: CommitState
    target_url: str
    description: str = Field(default="", max_length=DESCRIPTION_LIMIT)
    context: str
