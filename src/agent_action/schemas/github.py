"""Pydantic schemas for the GitHub event payloads a trigger can carry.

Reference: https://docs.github.com/en/webhooks/webhook-events-and-payloads

Only the fields mode detection and preparation read are modelled; every
model ignores the rest of GitHub's (large) payloads.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _GitHubModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GitHubUser(_GitHubModel):
    """GitHub user (actor) in webhook payload."""

    login: str
    id: int | None = None
    type: str = "User"


class GitHubOwner(_GitHubModel):
    login: str


class GitHubRepository(_GitHubModel):
    """Repository information from GitHub webhook."""

    name: str
    full_name: str | None = None
    owner: GitHubOwner
    default_branch: str = "main"


class GitHubLabel(_GitHubModel):
    name: str


class GitHubIssue(_GitHubModel):
    number: int
    title: str = ""
    body: str | None = None
    user: GitHubUser | None = None
    pull_request: dict[str, Any] | None = None


class GitHubComment(_GitHubModel):
    id: int
    body: str | None = None
    user: GitHubUser | None = None


class GitHubRef(_GitHubModel):
    ref: str
    sha: str | None = None


class GitHubPullRequest(_GitHubModel):
    number: int
    title: str = ""
    body: str | None = None
    head: GitHubRef | None = None
    base: GitHubRef | None = None


class GitHubReview(_GitHubModel):
    id: int
    body: str | None = None


class IssuesPayload(_GitHubModel):
    action: str
    issue: GitHubIssue
    assignee: GitHubUser | None = None
    label: GitHubLabel | None = None


class IssueCommentPayload(_GitHubModel):
    action: str
    issue: GitHubIssue
    comment: GitHubComment


class PullRequestPayload(_GitHubModel):
    action: str
    pull_request: GitHubPullRequest


class PullRequestReviewPayload(_GitHubModel):
    action: str
    pull_request: GitHubPullRequest
    review: GitHubReview


class PullRequestReviewCommentPayload(_GitHubModel):
    action: str
    pull_request: GitHubPullRequest
    comment: GitHubComment


class DispatchEndpoints(_GitHubModel):
    stream: str | None = None
    progress: str | None = None
    system_progress: str | None = Field(default=None, alias="systemProgress")
    oauth_token: str | None = Field(default=None, alias="oauthToken")


class DispatchOverrideInputs(_GitHubModel):
    model: str | None = None
    base_branch: str | None = None


class DispatchClientPayload(_GitHubModel):
    """``client_payload`` of a repository_dispatch sent by an external caller."""

    prompt: str | None = None
    stream_endpoint: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    resume_endpoint: str | None = None
    session_id: str | None = None
    endpoints: DispatchEndpoints | None = None
    override_inputs: DispatchOverrideInputs | None = Field(default=None, alias="overrideInputs")


class RepositoryDispatchPayload(_GitHubModel):
    action: str | None = None
    client_payload: DispatchClientPayload = Field(default_factory=DispatchClientPayload)
