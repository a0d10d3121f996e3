"""Automated pull request review mode."""
from agent_action.modes.base import ExecutionMode, ModeContext
from agent_action.modes.detector import ModeName, default_prompt_for_mode, is_review_event
from agent_action.schemas.events import TriggerEvent

REVIEW_TOOLS = (
    "mcp__github_inline_comment__create_inline_comment",
    "Bash(gh pr diff:*)",
    "Bash(gh pr view:*)",
)


class ReviewMode(ExecutionMode):
    name = ModeName.REVIEW
    description = "Automated code review mode for pull requests"

    def should_trigger(self, event: TriggerEvent) -> bool:
        return is_review_event(event)

    def allowed_tools(self, event: TriggerEvent) -> list[str]:
        return list(REVIEW_TOOLS)

    def generate_prompt(self, context: ModeContext) -> str:
        event = context.event
        command = event.prompt or default_prompt_for_mode(self.name, event)
        header = f"Repository: {event.repository.full_name}"
        if event.entity_number is not None:
            header += f"\nPull request: #{event.entity_number}"
        if event.head_sha:
            header += f"\nHead commit: {event.head_sha}"
        return f"{command}\n\n{header}"


review_mode = ReviewMode()
