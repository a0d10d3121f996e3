"""Trigger event schemas - the classification input for mode selection.

A ``TriggerEvent`` is the provider-agnostic view of one GitHub Actions
trigger: which event fired, which entity it concerns, and the inputs the
workflow was configured with.
"""
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    """GitHub event names this action knows how to handle."""

    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"
    WORKFLOW_DISPATCH = "workflow_dispatch"
    SCHEDULE = "schedule"
    REPOSITORY_DISPATCH = "repository_dispatch"

    @property
    def is_entity(self) -> bool:
        """Events attached to an issue or pull request."""
        return self in ENTITY_EVENTS

    @property
    def is_automation(self) -> bool:
        """Events with no issue or pull request behind them."""
        return self in AUTOMATION_EVENTS


ENTITY_EVENTS = frozenset(
    {
        EventKind.ISSUES,
        EventKind.ISSUE_COMMENT,
        EventKind.PULL_REQUEST,
        EventKind.PULL_REQUEST_REVIEW,
        EventKind.PULL_REQUEST_REVIEW_COMMENT,
    }
)
AUTOMATION_EVENTS = frozenset({EventKind.WORKFLOW_DISPATCH, EventKind.SCHEDULE})


class RepositoryRef(BaseModel):
    """Repository coordinates."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class TriggerInputs(BaseModel):
    """Workflow inputs that influence mode selection and preparation."""

    mode: str = ""
    prompt: str = ""
    trigger_phrase: str = "@claude"
    assignee_trigger: str = ""
    label_trigger: str = ""
    allowed_tools: list[str] = Field(default_factory=list)
    disallowed_tools: list[str] = Field(default_factory=list)
    additional_permissions: dict[str, str] = Field(default_factory=dict)
    use_commit_signing: bool = False
    base_branch: str | None = None
    branch_prefix: str = "claude/"
    branch_name_template: str | None = None


class ProgressTracking(BaseModel):
    """Endpoints an external dispatcher asked us to report to."""

    progress_endpoint: str | None = None
    system_progress_endpoint: str | None = None
    resume_endpoint: str | None = None
    oauth_token_endpoint: str | None = None
    session_id: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class TriggerEvent(BaseModel):
    """
    One inbound trigger, normalized from a GitHub Actions event.

    Entity text fields are pre-extracted so mode detection never has to
    reach into the raw payload.
    """

    kind: EventKind
    action: str | None = None
    actor: str = ""
    run_id: str = ""
    repository: RepositoryRef
    inputs: TriggerInputs = Field(default_factory=TriggerInputs)

    # Entity context (issues, pull requests, comments)
    entity_number: int | None = None
    is_pr: bool = False
    entity_title: str | None = None
    entity_body: str | None = None
    comment_body: str | None = None
    comment_id: int | None = None
    assignee: str | None = None
    label: str | None = None
    head_sha: str | None = None
    head_ref: str | None = None

    # Repository dispatch
    client_prompt: str | None = None
    model_override: str | None = None
    base_branch_override: str | None = None
    progress_tracking: ProgressTracking | None = None

    raw_payload: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def prompt(self) -> str:
        """The explicit prompt configured for this run, if any."""
        return self.inputs.prompt


def parse_multiline_input(value: str) -> list[str]:
    """Split a comma/newline separated input, dropping ``#`` comments."""
    items = []
    for item in re.split(r",|[\n\r]+", value or ""):
        item = re.sub(r"#.+$", "", item).strip()
        if item:
            items.append(item)
    return items


def parse_additional_permissions(value: str) -> dict[str, str]:
    """Parse ``name: level`` lines into a permission map."""
    permissions: dict[str, str] = {}
    for line in (value or "").strip().splitlines():
        if ":" not in line:
            continue
        key, _, level = line.partition(":")
        key, level = key.strip(), level.strip()
        if key and level:
            permissions[key] = level
    return permissions
