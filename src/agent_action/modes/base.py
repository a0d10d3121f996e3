"""Base classes and data structures shared by all execution modes.

A mode is a statically constructed, immutable policy object. Exactly one is
selected per trigger event; it decides whether the run proceeds, which tools
the assistant gets, and how the run is prepared.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agent_action.config import DEFAULT_OIDC_AUDIENCE
from agent_action.modes.detector import ModeName
from agent_action.modes.tools import build_allowed_tools, build_disallowed_tools
from agent_action.schemas.branch import BranchInfo
from agent_action.schemas.events import TriggerEvent
from agent_action.schemas.resume import ResumeMessage
from agent_action.schemas.stream import StreamConfig

if TYPE_CHECKING:
    from agent_action.resume.branch import BranchOperations
    from agent_action.services.prepare import RepositoryOperations
    from agent_action.streaming.token import TokenGetter


@dataclass(frozen=True)
class ModeContext:
    """Minimal state the prompt builder needs for one run."""

    mode: ModeName
    event: TriggerEvent
    comment_id: int | None = None
    base_branch: str | None = None
    assistant_branch: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mode": self.mode.value, "event": self.event}
        for key in ("comment_id", "base_branch", "assistant_branch"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class PrepareOptions:
    """Collaborators and settings a mode needs to prepare a run."""

    event: TriggerEvent
    repository: "RepositoryOperations"
    branches: "BranchOperations"
    prompt_dir: Path
    token_getter: "TokenGetter | None" = None
    audience: str = DEFAULT_OIDC_AUDIENCE
    server_url: str = "https://github.com"
    resume_timeout_seconds: float = 10.0


@dataclass
class PrepareResult:
    """Everything the run step needs from preparation."""

    branch_info: BranchInfo
    prompt_path: Path
    allowed_tools: list[str] = field(default_factory=list)
    disallowed_tools: list[str] = field(default_factory=list)
    comment_id: int | None = None
    system_prompt: str | None = None
    stream_config: StreamConfig | None = None
    resume_messages: list[ResumeMessage] | None = None
    model_override: str | None = None
    started_at_ms: int | None = None


class ExecutionMode(ABC):
    """Abstract base class for execution modes."""

    name: ModeName
    description: str
    creates_tracking_comment: bool = False

    @abstractmethod
    def should_trigger(self, event: TriggerEvent) -> bool:
        """Secondary gate: whether this mode is willing to run for the event."""

    def prepare_context(
        self,
        event: TriggerEvent,
        *,
        comment_id: int | None = None,
        base_branch: str | None = None,
        assistant_branch: str | None = None,
    ) -> ModeContext:
        return ModeContext(
            mode=self.name,
            event=event,
            comment_id=comment_id,
            base_branch=base_branch,
            assistant_branch=assistant_branch,
        )

    def allowed_tools(self, event: TriggerEvent) -> list[str]:
        """Tools this mode adds on top of the caller's allow list."""
        return []

    def disallowed_tools(self, event: TriggerEvent) -> list[str]:
        """Tools this mode adds on top of the caller's deny list."""
        return []

    @abstractmethod
    def generate_prompt(self, context: ModeContext) -> str:
        """Build the prompt file contents for a prepared context."""

    def system_prompt(self, context: ModeContext, server_url: str) -> str | None:
        return None

    def tool_lists(self, event: TriggerEvent) -> tuple[list[str], list[str]]:
        """Final (allowed, disallowed) lists combining caller and mode tools."""
        inputs = event.inputs
        custom_allowed = [*inputs.allowed_tools, *self.allowed_tools(event)]
        allowed = build_allowed_tools(
            custom_allowed,
            include_actions_tools=inputs.additional_permissions.get("actions") == "read",
            use_commit_signing=inputs.use_commit_signing,
        )
        disallowed = build_disallowed_tools(
            [*inputs.disallowed_tools, *self.disallowed_tools(event)],
            custom_allowed,
        )
        return allowed, disallowed

    async def prepare(self, options: PrepareOptions) -> PrepareResult:
        """Prepare the run: tracking comment, branch and prompt file."""
        from agent_action.services.prepare import prepare_event

        return await prepare_event(self, options)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name.value!r}>"
