"""Git branch operations for preparing a run.

Handles checking out existing branches and creating fresh working
branches in the already checked-out repository.
"""

import logging
import subprocess
from pathlib import Path

from agent_action.schemas.branch import BranchInfo
from agent_action.schemas.events import RepositoryRef, TriggerEvent
from agent_action.services.github_client import GitHubClient
from agent_action.utils.branch_template import generate_branch_name

logger = logging.getLogger(__name__)


class BranchError(Exception):
    """Error during branch operations."""


class GitBranchOperations:
    """
    Branch setup backed by the local ``git`` binary and the REST API.

    Operations:
    - Check out an open pull request's head branch
    - Create a new working branch from the base branch
    - Fetch and check out an existing remote branch (resume)
    """

    def __init__(
        self,
        github: GitHubClient,
        *,
        branch_prefix: str = "claude/",
        branch_name_template: str | None = None,
        work_dir: Path | None = None,
    ):
        self.github = github
        self.branch_prefix = branch_prefix
        self.branch_name_template = branch_name_template
        self.work_dir = work_dir

    def _git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.work_dir,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise BranchError(f"git {args[0]} failed: {result.stderr.strip()}")
        return result.stdout.strip()

    async def default_branch(self, repository: RepositoryRef) -> str:
        return await self.github.get_default_branch(repository)

    async def checkout_remote_branch(self, branch_name: str) -> None:
        self._git("fetch", "origin", branch_name)
        self._git("checkout", branch_name)
        logger.info(f"Checked out branch: {branch_name}")

    async def setup_branch(self, event: TriggerEvent) -> BranchInfo:
        """
        Select or create the working branch for ``event``.

        Args:
            event: The trigger event being prepared

        Returns:
            Branch information; ``assistant_branch`` is set only when a new
            branch was created
        """
        base_branch = (
            event.base_branch_override
            or event.inputs.base_branch
            or await self.default_branch(event.repository)
        )

        if event.is_pr and event.head_ref and event.kind.is_entity:
            # Open pull requests are worked on in place
            await self.checkout_remote_branch(event.head_ref)
            return BranchInfo(base_branch=base_branch, current_branch=event.head_ref)

        if event.entity_number is not None:
            entity_type = "pr" if event.is_pr else "issue"
            entity_number = event.entity_number
        else:
            entity_type = "run"
            entity_number = int(event.run_id) if event.run_id.isdigit() else 0

        branch_name = generate_branch_name(
            self.branch_name_template,
            self.branch_prefix,
            entity_type,
            entity_number,
            sha=event.head_sha,
            label=event.label,
            title=event.entity_title,
        )

        self._git("fetch", "origin", base_branch, "--depth=1")
        self._git("checkout", base_branch)
        self._git("checkout", "-b", branch_name)
        logger.info(f"Created branch: {branch_name}", extra={"base_branch": base_branch})

        return BranchInfo(
            base_branch=base_branch,
            current_branch=branch_name,
            assistant_branch=branch_name,
        )
