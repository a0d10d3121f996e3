"""Branch bookkeeping passed between preparation steps."""
from dataclasses import dataclass, field

from agent_action.schemas.resume import ResumeMessage


@dataclass
class BranchInfo:
    base_branch: str
    current_branch: str
    assistant_branch: str | None = None

    @property
    def working_branch(self) -> str:
        """The branch the assistant commits to."""
        return self.assistant_branch or self.current_branch


@dataclass
class RemoteBranchInfo(BranchInfo):
    resume_messages: list[ResumeMessage] | None = field(default=None)
