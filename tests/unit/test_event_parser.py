"""Unit tests for GitHub event parsing."""

import pytest
from agent_action.schemas.events import EventKind, TriggerInputs
from agent_action.services.event_parser import (
    GitHubEventParser,
    UnsupportedEventError,
    parse_github_event,
)


@pytest.fixture
def parser() -> GitHubEventParser:
    return GitHubEventParser()


class TestGitHubEventParser:
    """Tests for GitHubEventParser."""

    def test_parse_issue_comment(self, parser, issue_comment_payload) -> None:
        event = parser.parse("issue_comment", issue_comment_payload, run_id="42")

        assert event.kind == EventKind.ISSUE_COMMENT
        assert event.action == "created"
        assert event.actor == "test-user"
        assert event.run_id == "42"
        assert event.repository.full_name == "test-org/test-repo"
        assert event.entity_number == 42
        assert event.is_pr is False
        assert event.comment_body == "fix this @claude"
        assert event.comment_id == 555
        assert event.entity_title == "Crash on startup"

    def test_issue_comment_on_pull_request(self, parser, issue_comment_payload) -> None:
        issue_comment_payload["issue"]["pull_request"] = {"url": "https://api.github.com/pulls/42"}

        event = parser.parse("issue_comment", issue_comment_payload)

        assert event.is_pr is True

    def test_parse_issues_with_assignee_and_label(self, parser, issues_payload) -> None:
        issues_payload["action"] = "assigned"
        issues_payload["assignee"] = {"login": "claude-bot"}
        issues_payload["label"] = {"name": "claude"}

        event = parser.parse("issues", issues_payload)

        assert event.entity_number == 7
        assert event.assignee == "claude-bot"
        assert event.label == "claude"
        assert event.entity_body == "Requests should be retried on 503."

    def test_parse_pull_request(self, parser, pull_request_payload) -> None:
        event = parser.parse("pull_request", pull_request_payload)

        assert event.kind == EventKind.PULL_REQUEST
        assert event.is_pr is True
        assert event.entity_number == 99
        assert event.head_ref == "feature/parser"
        assert event.head_sha == "a" * 40

    def test_parse_pull_request_review(self, parser, pull_request_payload) -> None:
        pull_request_payload["action"] = "submitted"
        pull_request_payload["review"] = {"id": 77, "body": "@claude please fix the nits"}

        event = parser.parse("pull_request_review", pull_request_payload)

        assert event.comment_body == "@claude please fix the nits"
        assert event.comment_id == 77
        assert event.entity_number == 99

    def test_parse_pull_request_review_comment(self, parser, pull_request_payload) -> None:
        pull_request_payload["action"] = "created"
        pull_request_payload["comment"] = {"id": 88, "body": "typo here"}

        event = parser.parse("pull_request_review_comment", pull_request_payload)

        assert event.comment_body == "typo here"
        assert event.comment_id == 88

    def test_parse_repository_dispatch(self, parser, repository_dispatch_payload) -> None:
        event = parser.parse("repository_dispatch", repository_dispatch_payload)

        assert event.kind == EventKind.REPOSITORY_DISPATCH
        assert event.client_prompt == "Update the changelog"
        assert event.model_override == "claude-sonnet"
        assert event.base_branch_override == "develop"
        tracking = event.progress_tracking
        assert tracking is not None
        assert tracking.progress_endpoint == "https://api.example.com/progress"
        assert tracking.system_progress_endpoint == "https://api.example.com/system-progress"
        assert tracking.resume_endpoint.endswith("/resume")
        assert tracking.session_id == "session-123"
        assert tracking.headers == {"X-Session": "session-123"}

    def test_dispatch_stream_endpoint_fallback(self, parser, repository_dispatch_payload) -> None:
        client_payload = repository_dispatch_payload["client_payload"]
        del client_payload["endpoints"]
        client_payload["stream_endpoint"] = "https://api.example.com/stream"

        event = parser.parse("repository_dispatch", repository_dispatch_payload)

        assert event.progress_tracking.progress_endpoint == "https://api.example.com/stream"
        assert event.progress_tracking.system_progress_endpoint is None

    def test_dispatch_without_client_payload(self, parser, repository_payload) -> None:
        event = parser.parse("repository_dispatch", {"repository": repository_payload})

        assert event.client_prompt is None
        assert event.progress_tracking is not None
        assert event.progress_tracking.resume_endpoint is None

    def test_schedule_uses_repository_fallback(self, parser) -> None:
        event = parser.parse("schedule", {"schedule": "0 0 * * *"}, repository="acme/widgets", actor="cron")

        assert event.kind == EventKind.SCHEDULE
        assert event.repository.full_name == "acme/widgets"
        assert event.actor == "cron"

    def test_missing_repository_raises(self, parser) -> None:
        with pytest.raises(ValueError, match="no repository"):
            parser.parse("workflow_dispatch", {})

    def test_inputs_are_attached(self, parser, issues_payload) -> None:
        inputs = TriggerInputs(prompt="summarize", trigger_phrase="/bot")

        event = parser.parse("issues", issues_payload, inputs)

        assert event.prompt == "summarize"
        assert event.inputs.trigger_phrase == "/bot"

    def test_unsupported_event(self, parser, repository_payload) -> None:
        with pytest.raises(UnsupportedEventError) as exc_info:
            parser.parse("push", {"repository": repository_payload})

        assert exc_info.value.event_name == "push"
        assert "Unsupported event type: push" in str(exc_info.value)

    def test_invalid_payload(self, parser, repository_payload) -> None:
        with pytest.raises(ValueError, match="Invalid issue_comment payload"):
            parser.parse("issue_comment", {"action": "created", "repository": repository_payload})

    def test_parse_github_event_helper(self, issues_payload) -> None:
        event = parse_github_event("issues", issues_payload)

        assert event.entity_number == 7
