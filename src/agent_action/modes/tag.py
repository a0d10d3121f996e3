"""Interactive mention mode.

Selected when someone mentions the trigger phrase, assigns the configured
user or applies the configured label. This is the only mode that keeps a
tracking comment up to date on the issue or pull request.
"""
from agent_action.modes.base import ExecutionMode, ModeContext
from agent_action.modes.detector import ModeName, check_contains_trigger
from agent_action.schemas.events import TriggerEvent

TRACKING_COMMENT_TOOL = "mcp__github_comment__update_claude_comment"


class TagMode(ExecutionMode):
    name = ModeName.TAG
    description = "Interactive mode triggered by @claude mentions"
    creates_tracking_comment = True

    def should_trigger(self, event: TriggerEvent) -> bool:
        return check_contains_trigger(event)

    def allowed_tools(self, event: TriggerEvent) -> list[str]:
        return [TRACKING_COMMENT_TOOL]

    def generate_prompt(self, context: ModeContext) -> str:
        event = context.event
        entity = "pull request" if event.is_pr else "issue"
        lines = [
            f"Repository: {event.repository.full_name}",
            f"You were asked for help on {entity} #{event.entity_number} by @{event.actor}.",
        ]
        if event.entity_title:
            lines.append(f"Title: {event.entity_title}")
        if event.entity_body:
            lines.extend(["", "Description:", event.entity_body])
        if event.comment_body:
            lines.extend(["", "Triggering comment:", event.comment_body])
        if context.comment_id is not None:
            lines.extend(
                [
                    "",
                    f"Keep tracking comment {context.comment_id} updated with your progress.",
                ]
            )
        if context.assistant_branch:
            lines.append(f"Work on branch {context.assistant_branch}.")
        return "\n".join(lines)


tag_mode = TagMode()
