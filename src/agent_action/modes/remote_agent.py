"""Remote dispatch mode.

Handles ``repository_dispatch`` events sent by an external service. The
client payload carries the task, the progress endpoints and optionally a
session to resume. There is no trigger checking and no tracking comment;
progress goes to the system progress endpoint instead.
"""
import logging
import time

from agent_action.core.logging import session_id_ctx
from agent_action.modes.base import (
    ExecutionMode,
    ModeContext,
    PrepareOptions,
    PrepareResult,
)
from agent_action.modes.detector import ModeName
from agent_action.reporting.lifecycle import SystemProgressConfig, SystemProgressReporter
from agent_action.resume.branch import setup_branch_with_resume
from agent_action.schemas.events import EventKind, TriggerEvent
from agent_action.schemas.progress import FailurePhase
from agent_action.schemas.stream import StreamConfig
from agent_action.services.prepare import write_prompt_file

logger = logging.getLogger(__name__)

NO_TASK_DESCRIPTION = "No task description provided"


class RemoteAgentError(Exception):
    """Raised when a remote dispatch run cannot be prepared."""


def generate_dispatch_system_prompt(
    event: TriggerEvent,
    base_branch: str,
    assistant_branch: str | None,
    server_url: str,
    trigger_display_name: str | None = None,
) -> str:
    username = event.actor
    co_author_line = ""
    if username and (trigger_display_name or username != "Unknown"):
        co_author_line = (
            f"Co-authored-by: {trigger_display_name or username} "
            f"<{username}@users.noreply.github.com>"
        )

    if event.inputs.use_commit_signing:
        commit_instructions = (
            "- Use mcp__github_file_ops__commit_files and "
            "mcp__github_file_ops__delete_files to commit and push changes"
        )
        if co_author_line:
            commit_instructions += (
                "\n- When pushing changes, include a Co-authored-by trailer in the commit message"
                f'\n- Use: "{co_author_line}"'
            )
    else:
        commit_instructions = (
            "- Use git commands via the Bash tool to commit and push your changes:\n"
            "  - Stage files: Bash(git add <files>)\n"
            '  - Commit with a descriptive message: Bash(git commit -m "<message>")'
        )
        if co_author_line:
            commit_instructions += (
                "\n  - When committing, include a Co-authored-by trailer:\n"
                f'    Bash(git commit -m "<message>\\n\\n{co_author_line}")'
            )
        commit_instructions += (
            "\n  - Be sure to follow your commit message guidelines"
            "\n  - Push to the remote: Bash(git push origin HEAD)"
        )

    lines = [
        "You are Claude, an AI assistant designed to help with GitHub issues and pull requests. "
        "Think carefully as you analyze the context and respond appropriately. "
        "Here's the context for your current task:",
        "",
        "Your task is to complete the request described in the task description.",
        "",
        "Instructions:",
        "1. For questions: Research the codebase and provide a detailed answer",
        "2. For implementations: Make the requested changes, commit, and push",
        "",
        "Key points:",
        f"- You're already on a new branch - NEVER create another branch (this is very important). "
        f"{assistant_branch} is the ONLY branch you should work on.",
        commit_instructions,
    ]
    if assistant_branch:
        compare_url = (
            f"{server_url}/{event.repository.full_name}/compare/"
            f"{base_branch}...{assistant_branch}?quick_pull=1"
        )
        lines.append(
            f"- After completing your work, provide a URL to create a PR in this format:\n\n    {compare_url}"
        )
    return "\n".join(lines)


class RemoteAgentMode(ExecutionMode):
    name = ModeName.REMOTE_AGENT
    description = "Remote automation mode for repository_dispatch events"

    def should_trigger(self, event: TriggerEvent) -> bool:
        return event.kind == EventKind.REPOSITORY_DISPATCH

    def generate_prompt(self, context: ModeContext) -> str:
        event = context.event
        return event.client_prompt or event.prompt or NO_TASK_DESCRIPTION

    def system_prompt(self, context: ModeContext, server_url: str) -> str | None:
        return generate_dispatch_system_prompt(
            context.event,
            context.base_branch or "",
            context.assistant_branch,
            server_url,
        )

    async def prepare(self, options: PrepareOptions) -> PrepareResult:
        event = options.event
        if event.kind != EventKind.REPOSITORY_DISPATCH:
            raise RemoteAgentError("Remote agent mode can only handle repository_dispatch events")

        if options.token_getter is None:
            raise RemoteAgentError(
                "OIDC token required for remote-agent mode. "
                "Please add 'id-token: write' to your workflow permissions."
            )
        try:
            oidc_token = await options.token_getter(options.audience)
        except Exception as e:
            raise RemoteAgentError(
                "OIDC token required for remote-agent mode. "
                f"Please add 'id-token: write' to your workflow permissions. Error: {e}"
            ) from e

        tracking = event.progress_tracking
        if tracking and tracking.session_id:
            session_id_ctx.set(tracking.session_id)

        reporter = None
        if tracking and tracking.system_progress_endpoint:
            reporter = SystemProgressReporter(
                SystemProgressConfig(
                    endpoint=tracking.system_progress_endpoint,
                    headers=tracking.headers,
                ),
                oidc_token,
            )

        try:
            branch_info = await setup_branch_with_resume(
                event,
                oidc_token,
                options.branches,
                timeout_seconds=options.resume_timeout_seconds,
            )
        except Exception as e:
            if reporter:
                reporter.report_workflow_failed(
                    FailurePhase.INITIALIZATION, e, "branch_setup_failed"
                )
                await reporter.drain()
            raise

        if reporter:
            reporter.report_workflow_initialized(
                branch_info.working_branch,
                branch_info.base_branch,
                tracking.session_id if tracking else None,
            )

        display_name = None
        if event.actor:
            try:
                display_name = await options.repository.user_display_name(event.actor)
            except Exception as e:
                logger.warning(
                    "Failed to fetch user display name",
                    extra={"actor": event.actor, "error": str(e)},
                )

        context = self.prepare_context(
            event,
            base_branch=branch_info.base_branch,
            assistant_branch=branch_info.assistant_branch,
        )
        prompt_path = write_prompt_file(options.prompt_dir, self.generate_prompt(context))

        stream_config = None
        if tracking:
            stream_config = StreamConfig(
                progress_endpoint=tracking.progress_endpoint,
                system_progress_endpoint=tracking.system_progress_endpoint,
                resume_endpoint=tracking.resume_endpoint,
                session_id=tracking.session_id,
                headers={**tracking.headers, "Authorization": f"Bearer {oidc_token}"},
            )

        allowed, disallowed = self.tool_lists(event)

        if reporter:
            reporter.report_assistant_starting()
        started_at_ms = int(time.time() * 1000)

        system_prompt = generate_dispatch_system_prompt(
            event,
            branch_info.base_branch,
            branch_info.assistant_branch,
            options.server_url,
            display_name,
        )

        if reporter:
            # The prepare step ends here; let the lifecycle reports land
            await reporter.drain()

        logger.info(
            "Prepared remote dispatch run",
            extra={
                "repo": event.repository.full_name,
                "branch": branch_info.working_branch,
                "resumed": branch_info.resume_messages is not None,
            },
        )
        return PrepareResult(
            branch_info=branch_info,
            prompt_path=prompt_path,
            allowed_tools=allowed,
            disallowed_tools=disallowed,
            system_prompt=system_prompt,
            stream_config=stream_config,
            resume_messages=branch_info.resume_messages,
            model_override=event.model_override,
            started_at_ms=started_at_ms,
        )


remote_agent_mode = RemoteAgentMode()
