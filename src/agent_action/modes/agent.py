"""Direct automation mode.

Runs whenever an explicit prompt is configured, and is the fallback for
scheduled and manually dispatched workflows. It skips mention checking,
tracking comments and branch management entirely.
"""
import logging

from agent_action.modes.base import (
    ExecutionMode,
    ModeContext,
    PrepareOptions,
    PrepareResult,
)
from agent_action.modes.detector import ModeName, has_explicit_prompt
from agent_action.schemas.branch import BranchInfo
from agent_action.schemas.events import TriggerEvent

logger = logging.getLogger(__name__)


class AgentMode(ExecutionMode):
    name = ModeName.AGENT
    description = "Direct automation mode for explicit prompts"

    def should_trigger(self, event: TriggerEvent) -> bool:
        return has_explicit_prompt(event) or event.kind.is_automation

    def prepare_context(self, event: TriggerEvent, **_: object) -> ModeContext:
        # No branch or comment bookkeeping in this mode
        return ModeContext(mode=self.name, event=event)

    def generate_prompt(self, context: ModeContext) -> str:
        if context.event.prompt:
            return context.event.prompt
        return f"Repository: {context.event.repository.full_name}"

    async def prepare(self, options: PrepareOptions) -> PrepareResult:
        from agent_action.services.prepare import write_prompt_file

        context = self.prepare_context(options.event)
        prompt_path = write_prompt_file(options.prompt_dir, self.generate_prompt(context))
        allowed, disallowed = self.tool_lists(options.event)
        logger.info(
            "Prepared direct automation run",
            extra={"repo": options.event.repository.full_name, "prompt_path": str(prompt_path)},
        )
        return PrepareResult(
            branch_info=BranchInfo(base_branch="", current_branch=""),
            prompt_path=prompt_path,
            allowed_tools=allowed,
            disallowed_tools=disallowed,
        )


agent_mode = AgentMode()
