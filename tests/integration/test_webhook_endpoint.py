"""Integration tests for the webhook classification endpoint."""

import json
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from agent_action.config import get_settings
from agent_action.core.security import sign_payload
from agent_action.main import create_app

SECRET = "integration-secret"


def _post(client: TestClient, event: str, payload: Any, **headers: str):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return client.post(
        "/webhooks/github",
        content=body,
        headers={
            "X-GitHub-Event": event,
            "X-GitHub-Delivery": "delivery-1",
            "Content-Type": "application/json",
            **headers,
        },
    )


@pytest.fixture
def signed_client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Client for an app that requires signed deliveries."""
    monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", SECRET)
    monkeypatch.setenv("ENVIRONMENT", "prod")
    monkeypatch.delenv("MODE", raising=False)
    monkeypatch.delenv("PROMPT", raising=False)
    get_settings.cache_clear()
    with TestClient(create_app()) as c:
        yield c
    get_settings.cache_clear()


class TestServiceEndpoints:
    def test_health_check(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "remote-agent" in data["modes"]

    def test_root(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "Agent Action"


class TestGitHubWebhookEndpoint:
    """Integration tests for webhook classification."""

    def test_missing_event_header_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/webhooks/github", content=b"{}", headers={"X-GitHub-Delivery": "delivery-1"}
        )

        assert response.status_code == 400
        assert "X-GitHub-Event" in response.json()["detail"]

    def test_missing_delivery_header_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/webhooks/github", content=b"{}", headers={"X-GitHub-Event": "issues"}
        )

        assert response.status_code == 400
        assert "X-GitHub-Delivery" in response.json()["detail"]

    def test_unsupported_event_is_ignored(self, client: TestClient) -> None:
        response = _post(client, "push", {"ref": "refs/heads/main"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ignored"
        assert data["event"] == "push"
        assert data["mode"] is None

    def test_mention_is_classified_as_tag(
        self, client: TestClient, issue_comment_payload: dict[str, Any]
    ) -> None:
        response = _post(client, "issue_comment", issue_comment_payload)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "classified"
        assert data["mode"] == "tag"
        assert data["should_trigger"] is True
        assert data["creates_tracking_comment"] is True
        assert data["delivery_id"] == "delivery-1"

    def test_comment_without_mention_falls_back_to_agent(
        self, client: TestClient, issue_comment_payload: dict[str, Any]
    ) -> None:
        issue_comment_payload["comment"]["body"] = "looks good to me"

        data = _post(client, "issue_comment", issue_comment_payload).json()

        assert data["mode"] == "agent"
        assert data["should_trigger"] is False

    def test_opened_pull_request_is_review(
        self, client: TestClient, pull_request_payload: dict[str, Any]
    ) -> None:
        data = _post(client, "pull_request", pull_request_payload).json()

        assert data["mode"] == "review"
        assert data["should_trigger"] is True
        assert data["creates_tracking_comment"] is False

    def test_repository_dispatch_is_remote_agent(
        self, client: TestClient, repository_dispatch_payload: dict[str, Any]
    ) -> None:
        data = _post(client, "repository_dispatch", repository_dispatch_payload).json()

        assert data["mode"] == "remote-agent"
        assert data["should_trigger"] is True

    def test_configured_prompt_selects_agent(
        self,
        client: TestClient,
        monkeypatch: pytest.MonkeyPatch,
        issue_comment_payload: dict[str, Any],
    ) -> None:
        monkeypatch.setenv("PROMPT", "Triage this issue")
        get_settings.cache_clear()

        data = _post(client, "issue_comment", issue_comment_payload).json()

        assert data["mode"] == "agent"
        assert data["should_trigger"] is True

    def test_invalid_json_returns_400(self, client: TestClient) -> None:
        response = _post(client, "issues", b"{not json")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON payload"

    def test_non_object_payload_returns_400(self, client: TestClient) -> None:
        response = _post(client, "issues", [1, 2, 3])

        assert response.status_code == 400

    def test_malformed_payload_returns_400(
        self, client: TestClient, repository_payload: dict[str, Any]
    ) -> None:
        response = _post(client, "issue_comment", {"action": "created", "repository": repository_payload})

        assert response.status_code == 400
        assert "Invalid issue_comment payload" in response.json()["detail"]


class TestSignedDeliveries:
    """Signature enforcement when a secret is configured."""

    def test_valid_signature(
        self, signed_client: TestClient, issues_payload: dict[str, Any]
    ) -> None:
        body = json.dumps(issues_payload).encode()

        response = _post(
            signed_client, "issues", body, **{"X-Hub-Signature-256": sign_payload(body, SECRET)}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "classified"

    def test_missing_signature(self, signed_client: TestClient, issues_payload: dict[str, Any]) -> None:
        response = _post(signed_client, "issues", issues_payload)

        assert response.status_code == 401

    def test_wrong_signature(self, signed_client: TestClient, issues_payload: dict[str, Any]) -> None:
        body = json.dumps(issues_payload).encode()

        response = _post(
            signed_client, "issues", body, **{"X-Hub-Signature-256": sign_payload(body, "wrong")}
        )

        assert response.status_code == 401
        assert "mismatch" in response.json()["detail"]

    def test_production_without_secret_is_rejected(
        self, monkeypatch: pytest.MonkeyPatch, issues_payload: dict[str, Any]
    ) -> None:
        monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "")
        monkeypatch.setenv("ENVIRONMENT", "prod")
        get_settings.cache_clear()

        with TestClient(create_app()) as client:
            response = _post(client, "issues", issues_payload)

        get_settings.cache_clear()
        assert response.status_code == 500
