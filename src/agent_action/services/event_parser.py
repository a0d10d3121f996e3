"""Event parsing service.

Transforms a GitHub Actions event (event name plus the JSON payload the
runner exposes) into the canonical ``TriggerEvent`` consumed by mode
detection and preparation.
"""
import logging
from typing import Any

from pydantic import ValidationError

from agent_action.schemas.events import (
    EventKind,
    ProgressTracking,
    RepositoryRef,
    TriggerEvent,
    TriggerInputs,
)
from agent_action.schemas.github import (
    GitHubRepository,
    IssueCommentPayload,
    IssuesPayload,
    PullRequestPayload,
    PullRequestReviewCommentPayload,
    PullRequestReviewPayload,
    RepositoryDispatchPayload,
)

logger = logging.getLogger(__name__)


class UnsupportedEventError(ValueError):
    """Raised for event names outside the supported set."""

    def __init__(self, event_name: str):
        super().__init__(f"Unsupported event type: {event_name}")
        self.event_name = event_name


class GitHubEventParser:
    """
    Parser for GitHub Actions trigger events.

    Each supported event name has a small extractor that pulls the entity
    text, numbers and refs out of the payload.
    """

    def parse(
        self,
        event_name: str,
        payload: dict[str, Any],
        inputs: TriggerInputs | None = None,
        *,
        actor: str = "",
        run_id: str = "",
        repository: str | None = None,
    ) -> TriggerEvent:
        """
        Parse an event payload.

        Args:
            event_name: Value of ``GITHUB_EVENT_NAME`` / ``X-GitHub-Event``
            payload: Decoded event payload
            inputs: Workflow inputs for this run
            actor: Login of the user that triggered the run
            run_id: Workflow run identifier
            repository: ``owner/repo`` fallback when the payload has none

        Raises:
            UnsupportedEventError: If the event name is not supported
            ValueError: If the payload does not match the event's shape
        """
        try:
            kind = EventKind(event_name)
        except ValueError:
            raise UnsupportedEventError(event_name) from None

        fields: dict[str, Any] = {
            "kind": kind,
            "action": payload.get("action"),
            "actor": actor or (payload.get("sender") or {}).get("login", ""),
            "run_id": run_id,
            "repository": self._repository(payload, repository),
            "inputs": inputs or TriggerInputs(),
            "raw_payload": payload,
        }

        extractor = getattr(self, f"_extract_{kind.value}")
        try:
            fields.update(extractor(payload))
        except ValidationError as e:
            logger.error(
                "Failed to parse GitHub event payload",
                extra={"event_name": event_name, "error": str(e)},
            )
            raise ValueError(f"Invalid {event_name} payload: {e}") from e

        event = TriggerEvent(**fields)
        logger.info(
            "Parsed GitHub event",
            extra={
                "event_name": event_name,
                "action": event.action,
                "repo": event.repository.full_name,
                "entity_number": event.entity_number,
            },
        )
        return event

    def _repository(self, payload: dict[str, Any], fallback: str | None) -> RepositoryRef:
        if payload.get("repository"):
            repo = GitHubRepository.model_validate(payload["repository"])
            return RepositoryRef(owner=repo.owner.login, repo=repo.name)
        if fallback and "/" in fallback:
            owner, _, name = fallback.partition("/")
            return RepositoryRef(owner=owner, repo=name)
        raise ValueError("Event payload has no repository and no fallback was given")

    def _extract_issues(self, payload: dict[str, Any]) -> dict[str, Any]:
        parsed = IssuesPayload.model_validate(payload)
        return {
            "entity_number": parsed.issue.number,
            "is_pr": False,
            "entity_title": parsed.issue.title,
            "entity_body": parsed.issue.body,
            "assignee": parsed.assignee.login if parsed.assignee else None,
            "label": parsed.label.name if parsed.label else None,
        }

    def _extract_issue_comment(self, payload: dict[str, Any]) -> dict[str, Any]:
        parsed = IssueCommentPayload.model_validate(payload)
        return {
            "entity_number": parsed.issue.number,
            "is_pr": parsed.issue.pull_request is not None,
            "entity_title": parsed.issue.title,
            "entity_body": parsed.issue.body,
            "comment_body": parsed.comment.body,
            "comment_id": parsed.comment.id,
        }

    def _extract_pull_request(self, payload: dict[str, Any]) -> dict[str, Any]:
        parsed = PullRequestPayload.model_validate(payload)
        return self._pull_request_fields(parsed.pull_request)

    def _extract_pull_request_review(self, payload: dict[str, Any]) -> dict[str, Any]:
        parsed = PullRequestReviewPayload.model_validate(payload)
        fields = self._pull_request_fields(parsed.pull_request)
        fields["comment_body"] = parsed.review.body
        fields["comment_id"] = parsed.review.id
        return fields

    def _extract_pull_request_review_comment(self, payload: dict[str, Any]) -> dict[str, Any]:
        parsed = PullRequestReviewCommentPayload.model_validate(payload)
        fields = self._pull_request_fields(parsed.pull_request)
        fields["comment_body"] = parsed.comment.body
        fields["comment_id"] = parsed.comment.id
        return fields

    def _extract_workflow_dispatch(self, payload: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _extract_schedule(self, payload: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _extract_repository_dispatch(self, payload: dict[str, Any]) -> dict[str, Any]:
        client = RepositoryDispatchPayload.model_validate(payload).client_payload
        endpoints = client.endpoints
        tracking = ProgressTracking(
            progress_endpoint=(
                (endpoints.progress or endpoints.stream) if endpoints else None
            )
            or client.stream_endpoint,
            system_progress_endpoint=endpoints.system_progress if endpoints else None,
            resume_endpoint=client.resume_endpoint,
            oauth_token_endpoint=endpoints.oauth_token if endpoints else None,
            session_id=client.session_id,
            headers=client.headers,
        )
        overrides = client.override_inputs
        return {
            "client_prompt": client.prompt,
            "model_override": overrides.model if overrides else None,
            "base_branch_override": overrides.base_branch if overrides else None,
            "progress_tracking": tracking,
        }

    @staticmethod
    def _pull_request_fields(pull_request: Any) -> dict[str, Any]:
        return {
            "entity_number": pull_request.number,
            "is_pr": True,
            "entity_title": pull_request.title,
            "entity_body": pull_request.body,
            "head_sha": pull_request.head.sha if pull_request.head else None,
            "head_ref": pull_request.head.ref if pull_request.head else None,
        }


def parse_github_event(
    event_name: str,
    payload: dict[str, Any],
    inputs: TriggerInputs | None = None,
    **kwargs: Any,
) -> TriggerEvent:
    """Parse an event with a default ``GitHubEventParser``."""
    return GitHubEventParser().parse(event_name, payload, inputs, **kwargs)
