"""Workflow lifecycle event schemas for the system progress endpoint.

Each event is a discriminated record keyed by ``event_type``. The wire names
keep the ``claude_*`` spelling the receiving service expects.
"""
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    """ISO-8601 timestamp with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class FailurePhase(str, Enum):
    """Where in the workflow a failure happened."""

    INITIALIZATION = "initialization"
    EXECUTION = "claude_execution"

    @classmethod
    def _missing_(cls, value: object) -> "FailurePhase | None":
        # Plain "execution" is accepted as a name for the execution phase
        if value == "execution":
            return cls.EXECUTION
        return None


class _ProgressEventBase(BaseModel):
    timestamp: str = Field(default_factory=utc_timestamp)

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the wire, omitting unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


class WorkflowInitializingData(BaseModel):
    branch: str
    base_branch: str
    session_id: str | None = None


class WorkflowInitializingEvent(_ProgressEventBase):
    event_type: Literal["workflow_initializing"] = "workflow_initializing"
    data: WorkflowInitializingData


class AssistantStartingEvent(_ProgressEventBase):
    event_type: Literal["claude_starting"] = "claude_starting"
    data: dict[str, Any] = Field(default_factory=dict)


class AssistantCompleteData(BaseModel):
    exit_code: int
    duration_ms: int


class AssistantCompleteEvent(_ProgressEventBase):
    event_type: Literal["claude_complete"] = "claude_complete"
    data: AssistantCompleteData


class WorkflowError(BaseModel):
    phase: FailurePhase
    message: str
    code: str


class WorkflowFailedData(BaseModel):
    error: WorkflowError


class WorkflowFailedEvent(_ProgressEventBase):
    event_type: Literal["workflow_failed"] = "workflow_failed"
    data: WorkflowFailedData


ProgressEvent = Annotated[
    WorkflowInitializingEvent
    | AssistantStartingEvent
    | AssistantCompleteEvent
    | WorkflowFailedEvent,
    Field(discriminator="event_type"),
]
