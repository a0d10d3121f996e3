"""Run preparation routed by event kind.

Automation events (``schedule``, ``workflow_dispatch``) have no issue or
pull request: they run on the base branch and never get a tracking comment.
Entity events may get a tracking comment, then a working branch. Every path
ends by writing the prompt file.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from agent_action.schemas.branch import BranchInfo
from agent_action.schemas.events import RepositoryRef, TriggerEvent
from agent_action.services.github_client import GitHubClient

if TYPE_CHECKING:
    from agent_action.modes.base import ExecutionMode, PrepareOptions, PrepareResult

logger = logging.getLogger(__name__)

PROMPT_FILENAME = "claude-prompt.txt"


class RepositoryOperations(Protocol):
    """Repository-level calls preparation needs."""

    async def default_branch(self, repository: RepositoryRef) -> str:
        ...

    async def create_tracking_comment(self, event: TriggerEvent) -> int:
        """Post the initial progress comment and return its id."""
        ...

    async def user_display_name(self, login: str) -> str | None:
        ...


def tracking_comment_body(event: TriggerEvent, server_url: str = "https://github.com") -> str:
    job_url = f"{server_url}/{event.repository.full_name}/actions/runs/{event.run_id}"
    return f"Claude Code is working…\n\n[View job run]({job_url})"


class GitHubRepositoryOperations:
    """``RepositoryOperations`` over the REST client."""

    def __init__(self, github: GitHubClient, server_url: str = "https://github.com"):
        self.github = github
        self.server_url = server_url

    async def default_branch(self, repository: RepositoryRef) -> str:
        return await self.github.get_default_branch(repository)

    async def create_tracking_comment(self, event: TriggerEvent) -> int:
        if event.entity_number is None:
            raise ValueError("Tracking comments need an issue or pull request number")
        comment = await self.github.create_issue_comment(
            event.repository,
            event.entity_number,
            tracking_comment_body(event, self.server_url),
        )
        return comment["id"]

    async def user_display_name(self, login: str) -> str | None:
        return await self.github.get_user_display_name(login)


def write_prompt_file(prompt_dir: Path, content: str) -> Path:
    """Write the prompt to ``<prompt_dir>/claude-prompt.txt``."""
    prompt_dir.mkdir(parents=True, exist_ok=True)
    prompt_path = prompt_dir / PROMPT_FILENAME
    prompt_path.write_text(content, encoding="utf-8")
    logger.debug("Wrote prompt file", extra={"path": str(prompt_path), "size": len(content)})
    return prompt_path


async def prepare_automation_event(
    mode: "ExecutionMode", options: "PrepareOptions"
) -> "PrepareResult":
    from agent_action.modes.base import PrepareResult

    event = options.event
    base_branch = (
        event.base_branch_override
        or event.inputs.base_branch
        or await options.repository.default_branch(event.repository)
    )
    branch_info = BranchInfo(base_branch=base_branch, current_branch=base_branch)

    context = mode.prepare_context(event, base_branch=base_branch)
    prompt_path = write_prompt_file(options.prompt_dir, mode.generate_prompt(context))
    allowed, disallowed = mode.tool_lists(event)

    return PrepareResult(
        branch_info=branch_info,
        prompt_path=prompt_path,
        allowed_tools=allowed,
        disallowed_tools=disallowed,
        system_prompt=mode.system_prompt(context, options.server_url),
        model_override=event.model_override,
    )


async def prepare_entity_event(
    mode: "ExecutionMode", options: "PrepareOptions"
) -> "PrepareResult":
    from agent_action.modes.base import PrepareResult

    event = options.event
    if event.entity_number is None:
        raise ValueError("Entity events must have an issue or pull request number")

    comment_id = None
    if mode.creates_tracking_comment:
        comment_id = await options.repository.create_tracking_comment(event)

    branch_info = await options.branches.setup_branch(event)

    context = mode.prepare_context(
        event,
        comment_id=comment_id,
        base_branch=branch_info.base_branch,
        assistant_branch=branch_info.assistant_branch,
    )
    prompt_path = write_prompt_file(options.prompt_dir, mode.generate_prompt(context))
    allowed, disallowed = mode.tool_lists(event)

    return PrepareResult(
        branch_info=branch_info,
        prompt_path=prompt_path,
        allowed_tools=allowed,
        disallowed_tools=disallowed,
        comment_id=comment_id,
        system_prompt=mode.system_prompt(context, options.server_url),
        model_override=event.model_override,
    )


async def prepare_event(mode: "ExecutionMode", options: "PrepareOptions") -> "PrepareResult":
    """Prepare a run for ``mode``, routing on the event kind."""
    if options.event.kind.is_automation:
        logger.info("Preparing automation event", extra={"event": options.event.kind.value})
        return await prepare_automation_event(mode, options)

    logger.info("Preparing entity event", extra={"event": options.event.kind.value})
    return await prepare_entity_event(mode, options)
