"""Test configuration and fixtures."""

from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from agent_action.config import get_settings
from agent_action.main import create_app
from agent_action.schemas.events import EventKind, RepositoryRef, TriggerEvent, TriggerInputs


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Create test client for API tests."""
    monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "")
    monkeypatch.setenv("ENVIRONMENT", "dev")
    monkeypatch.delenv("MODE", raising=False)
    monkeypatch.delenv("PROMPT", raising=False)
    get_settings.cache_clear()
    app = create_app()
    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()


@pytest.fixture
def make_event() -> Callable[..., TriggerEvent]:
    """Factory for trigger events on test-org/test-repo."""

    def _make(kind: EventKind | str, inputs: dict[str, Any] | None = None, **fields: Any) -> TriggerEvent:
        return TriggerEvent(
            kind=EventKind(kind),
            actor=fields.pop("actor", "test-user"),
            run_id=fields.pop("run_id", "987654321"),
            repository=RepositoryRef(owner="test-org", repo="test-repo"),
            inputs=TriggerInputs(**(inputs or {})),
            **fields,
        )

    return _make


@pytest.fixture
def repository_payload() -> dict[str, Any]:
    return {
        "id": 12345,
        "name": "test-repo",
        "full_name": "test-org/test-repo",
        "private": False,
        "owner": {"login": "test-org", "id": 11111, "type": "Organization"},
        "default_branch": "main",
    }


@pytest.fixture
def sender_payload() -> dict[str, Any]:
    return {"login": "test-user", "id": 22222, "type": "User"}


@pytest.fixture
def issue_comment_payload(
    repository_payload: dict[str, Any], sender_payload: dict[str, Any]
) -> dict[str, Any]:
    """Sample issue_comment webhook payload mentioning the assistant."""
    return {
        "action": "created",
        "issue": {
            "number": 42,
            "title": "Crash on startup",
            "body": "The service crashes when the config file is missing.",
            "user": sender_payload,
        },
        "comment": {
            "id": 555,
            "body": "fix this @claude",
            "user": sender_payload,
        },
        "repository": repository_payload,
        "sender": sender_payload,
    }


@pytest.fixture
def issues_payload(
    repository_payload: dict[str, Any], sender_payload: dict[str, Any]
) -> dict[str, Any]:
    return {
        "action": "opened",
        "issue": {
            "number": 7,
            "title": "Add retry support",
            "body": "Requests should be retried on 503.",
            "user": sender_payload,
        },
        "repository": repository_payload,
        "sender": sender_payload,
    }


@pytest.fixture
def pull_request_payload(
    repository_payload: dict[str, Any], sender_payload: dict[str, Any]
) -> dict[str, Any]:
    return {
        "action": "opened",
        "number": 99,
        "pull_request": {
            "number": 99,
            "title": "Refactor parser",
            "body": "Splits the parser into smaller functions.",
            "head": {"ref": "feature/parser", "sha": "a" * 40},
            "base": {"ref": "main", "sha": "b" * 40},
        },
        "repository": repository_payload,
        "sender": sender_payload,
    }


@pytest.fixture
def repository_dispatch_payload(
    repository_payload: dict[str, Any], sender_payload: dict[str, Any]
) -> dict[str, Any]:
    return {
        "action": "claude-task",
        "client_payload": {
            "prompt": "Update the changelog",
            "session_id": "session-123",
            "resume_endpoint": "https://api.example.com/sessions/session-123/resume",
            "headers": {"X-Session": "session-123"},
            "endpoints": {
                "progress": "https://api.example.com/progress",
                "systemProgress": "https://api.example.com/system-progress",
            },
            "overrideInputs": {"model": "claude-sonnet", "base_branch": "develop"},
        },
        "repository": repository_payload,
        "sender": sender_payload,
    }
