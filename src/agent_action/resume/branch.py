"""Branch setup for remote dispatch runs, with optional session resume.

Two fallbacks keep a run alive when resuming goes wrong:

1. The resume endpoint is unreachable or returns junk: start fresh.
2. The resumed branch cannot be checked out: start fresh and discard the
   resumed messages entirely.

Messages without a branch are kept and the run gets a fresh branch.
"""
import logging
from typing import Protocol

from agent_action.resume.resolver import DEFAULT_RESUME_TIMEOUT_SECONDS, fetch_resume_data
from agent_action.schemas.branch import BranchInfo, RemoteBranchInfo
from agent_action.schemas.events import RepositoryRef, TriggerEvent

logger = logging.getLogger(__name__)


class BranchOperations(Protocol):
    """Git and repository operations the resume flow relies on."""

    async def setup_branch(self, event: TriggerEvent) -> BranchInfo:
        """Create or select the working branch for a fresh run."""
        ...

    async def checkout_remote_branch(self, branch_name: str) -> None:
        """Fetch ``branch_name`` from origin and check it out. Raises on failure."""
        ...

    async def default_branch(self, repository: RepositoryRef) -> str:
        ...


def _as_remote(info: BranchInfo, resume_messages=None) -> RemoteBranchInfo:
    return RemoteBranchInfo(
        base_branch=info.base_branch,
        current_branch=info.current_branch,
        assistant_branch=info.assistant_branch,
        resume_messages=resume_messages,
    )


async def setup_branch_with_resume(
    event: TriggerEvent,
    token: str,
    branches: BranchOperations,
    *,
    timeout_seconds: float = DEFAULT_RESUME_TIMEOUT_SECONDS,
    client=None,
) -> RemoteBranchInfo:
    """Set up the working branch, resuming a prior session when one is available."""
    tracking = event.progress_tracking
    resume_endpoint = tracking.resume_endpoint if tracking else None

    if tracking and resume_endpoint:
        logger.info("Resume endpoint detected, attempting to resume session")
        headers = {**tracking.headers, "Authorization": f"Bearer {token}"}
        state = await fetch_resume_data(
            resume_endpoint, headers, timeout_seconds=timeout_seconds, client=client
        )

        if state is not None and state.branch_name:
            try:
                await branches.checkout_remote_branch(state.branch_name)
                base_branch = (
                    event.base_branch_override
                    or event.inputs.base_branch
                    or await branches.default_branch(event.repository)
                )
            except Exception as e:
                logger.warning(
                    "Failed to check out resumed branch, creating a new branch",
                    extra={"branch": state.branch_name, "error": str(e)},
                )
            else:
                logger.info("Resumed on branch", extra={"branch": state.branch_name})
                return RemoteBranchInfo(
                    base_branch=base_branch,
                    current_branch=state.branch_name,
                    assistant_branch=state.branch_name,
                    resume_messages=state.messages,
                )
        elif state is not None:
            logger.info("Resume data has no branch, creating a new branch")
            info = await branches.setup_branch(event)
            return _as_remote(info, state.messages)

    logger.info("Creating a new branch")
    return _as_remote(await branches.setup_branch(event))
