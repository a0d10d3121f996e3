"""Unit tests for mode detection and the mode registry."""

import pytest
from agent_action.modes.agent import agent_mode
from agent_action.modes.detector import (
    ModeName,
    contains_trigger_phrase,
    default_prompt_for_mode,
    describe_mode,
    detect_mode,
    should_use_tracking_comment,
)
from agent_action.modes.registry import (
    MODES,
    VALID_MODES,
    UnknownModeError,
    classify,
    get_mode,
    is_valid_mode,
    require_mode,
)
from agent_action.modes.remote_agent import remote_agent_mode
from agent_action.modes.review import review_mode
from agent_action.modes.tag import tag_mode


class TestDetectMode:
    """Tests for the ordered classification rules."""

    def test_issue_comment_with_trigger_phrase_is_tag(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="fix this @claude")

        assert detect_mode(event) == ModeName.TAG

    def test_schedule_without_prompt_is_agent(self, make_event) -> None:
        event = make_event("schedule")

        assert detect_mode(event) == ModeName.AGENT

    def test_workflow_dispatch_with_prompt_is_agent(self, make_event) -> None:
        event = make_event("workflow_dispatch", inputs={"prompt": "do the thing"})

        assert detect_mode(event) == ModeName.AGENT

    def test_prompt_overrides_trigger_phrase(self, make_event) -> None:
        event = make_event(
            "issue_comment",
            inputs={"prompt": "do the thing"},
            action="created",
            entity_number=1,
            comment_body="@claude please help",
        )

        assert detect_mode(event) == ModeName.AGENT

    def test_prompt_overrides_repository_dispatch(self, make_event) -> None:
        event = make_event("repository_dispatch", inputs={"prompt": "do the thing"})

        assert detect_mode(event) == ModeName.AGENT

    def test_whitespace_prompt_is_not_explicit(self, make_event) -> None:
        event = make_event("schedule", inputs={"prompt": "   \n"})

        assert detect_mode(event) == ModeName.AGENT
        event = make_event("repository_dispatch", inputs={"prompt": "   "})
        assert detect_mode(event) == ModeName.REMOTE_AGENT

    @pytest.mark.parametrize("action", ["opened", "synchronize", "reopened"])
    def test_pull_request_review_actions(self, make_event, action: str) -> None:
        event = make_event("pull_request", action=action, entity_number=5, is_pr=True)

        assert detect_mode(event) == ModeName.REVIEW

    def test_pull_request_closed_falls_back_to_agent(self, make_event) -> None:
        event = make_event("pull_request", action="closed", entity_number=5, is_pr=True)

        assert detect_mode(event) == ModeName.AGENT

    def test_pull_request_body_mention_is_not_scanned(self, make_event) -> None:
        event = make_event(
            "pull_request", action="edited", entity_number=5, is_pr=True, entity_body="@claude"
        )

        assert detect_mode(event) == ModeName.AGENT

    def test_trigger_phrase_is_case_sensitive(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="@Claude help")

        assert detect_mode(event) == ModeName.AGENT

    def test_trigger_phrase_matches_inside_code_fence(self, make_event) -> None:
        event = make_event(
            "issue_comment",
            action="created",
            entity_number=1,
            comment_body="```\n@claude\n```",
        )

        assert detect_mode(event) == ModeName.TAG

    def test_trigger_phrase_is_plain_substring(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="ping @claudette")

        assert detect_mode(event) == ModeName.TAG

    def test_issue_title_mention_is_tag(self, make_event) -> None:
        event = make_event("issues", action="opened", entity_number=3, entity_title="@claude add docs")

        assert detect_mode(event) == ModeName.TAG

    def test_review_body_mention_is_not_scanned(self, make_event) -> None:
        event = make_event(
            "pull_request_review",
            action="submitted",
            entity_number=5,
            is_pr=True,
            comment_body="@claude address these",
        )

        assert detect_mode(event) == ModeName.AGENT

    def test_review_comment_mention_is_tag(self, make_event) -> None:
        event = make_event(
            "pull_request_review_comment",
            action="created",
            entity_number=5,
            is_pr=True,
            comment_body="nit, @claude fix",
        )

        assert detect_mode(event) == ModeName.TAG

    def test_custom_trigger_phrase(self, make_event) -> None:
        event = make_event(
            "issue_comment",
            inputs={"trigger_phrase": "/bot"},
            action="created",
            entity_number=1,
            comment_body="/bot run",
        )

        assert detect_mode(event) == ModeName.TAG

    def test_assignee_trigger(self, make_event) -> None:
        event = make_event(
            "issues",
            inputs={"assignee_trigger": "@claude-bot"},
            action="assigned",
            entity_number=3,
            assignee="claude-bot",
        )

        assert detect_mode(event) == ModeName.TAG

    def test_assignee_trigger_other_user(self, make_event) -> None:
        event = make_event(
            "issues",
            inputs={"assignee_trigger": "claude-bot"},
            action="assigned",
            entity_number=3,
            assignee="someone-else",
        )

        assert detect_mode(event) == ModeName.AGENT

    def test_label_trigger(self, make_event) -> None:
        event = make_event(
            "issues",
            inputs={"label_trigger": "claude"},
            action="labeled",
            entity_number=3,
            label="claude",
        )

        assert detect_mode(event) == ModeName.TAG

    def test_label_trigger_requires_labeled_action(self, make_event) -> None:
        event = make_event(
            "issues",
            inputs={"label_trigger": "claude"},
            action="opened",
            entity_number=3,
            label="claude",
        )

        assert detect_mode(event) == ModeName.AGENT

    def test_repository_dispatch_is_remote_agent(self, make_event) -> None:
        event = make_event("repository_dispatch")

        assert detect_mode(event) == ModeName.REMOTE_AGENT

    def test_classification_is_deterministic(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="@claude")

        assert classify(event) == classify(event) == detect_mode(event)


class TestTriggerHelpers:
    def test_contains_trigger_phrase_handles_empty(self) -> None:
        assert contains_trigger_phrase(None, "@claude") is False
        assert contains_trigger_phrase("@claude", "") is False

    def test_describe_mode(self) -> None:
        assert "review" in describe_mode(ModeName.REVIEW).lower()

    def test_only_tag_uses_tracking_comment(self) -> None:
        assert should_use_tracking_comment(ModeName.TAG) is True
        assert not any(should_use_tracking_comment(m) for m in ModeName if m != ModeName.TAG)

    def test_default_prompts(self, make_event) -> None:
        event = make_event("workflow_dispatch", inputs={"prompt": "go"})

        assert default_prompt_for_mode(ModeName.REVIEW, event) == "/review"
        assert default_prompt_for_mode(ModeName.AGENT, event) == "go"
        assert default_prompt_for_mode(ModeName.TAG, event) is None


class TestRegistry:
    """Tests for explicit mode selection and lookup."""

    def test_valid_modes(self) -> None:
        assert VALID_MODES == {"tag", "agent", "review", "remote-agent", "experimental-review"}
        assert set(MODES) == set(ModeName)

    def test_is_valid_mode(self) -> None:
        assert is_valid_mode("tag")
        assert is_valid_mode("experimental-review")
        assert not is_valid_mode("turbo")
        assert not is_valid_mode("")
        assert not is_valid_mode(None)

    def test_explicit_mode_wins(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="@claude")

        assert get_mode(event, "review") is review_mode

    def test_explicit_mode_from_inputs(self, make_event) -> None:
        event = make_event("schedule", inputs={"mode": "tag"})

        assert get_mode(event) is tag_mode

    def test_legacy_alias_maps_to_review(self, make_event) -> None:
        event = make_event("schedule")

        assert get_mode(event, "experimental-review") is review_mode

    def test_unknown_explicit_mode_falls_back_to_detection(self, make_event) -> None:
        event = make_event("repository_dispatch")

        assert get_mode(event, "turbo") is remote_agent_mode

    def test_no_explicit_mode_detects(self, make_event) -> None:
        event = make_event("schedule")

        assert get_mode(event) is agent_mode

    def test_require_mode_unknown_raises(self) -> None:
        with pytest.raises(UnknownModeError, match="Invalid mode 'turbo'"):
            require_mode("turbo")

    def test_require_mode_known(self) -> None:
        assert require_mode("remote-agent") is remote_agent_mode
        assert require_mode("experimental-review") is review_mode


class TestModeObjects:
    """Tests for per-mode policy."""

    def test_only_tag_creates_tracking_comment(self) -> None:
        assert tag_mode.creates_tracking_comment is True
        assert not agent_mode.creates_tracking_comment
        assert not review_mode.creates_tracking_comment
        assert not remote_agent_mode.creates_tracking_comment

    def test_agent_declines_without_prompt_or_automation(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="hello")

        assert agent_mode.should_trigger(event) is False

    def test_agent_accepts_automation_event(self, make_event) -> None:
        assert agent_mode.should_trigger(make_event("schedule")) is True
        assert agent_mode.should_trigger(make_event("issues", inputs={"prompt": "x"}, action="opened")) is True

    def test_agent_context_is_mode_and_event_only(self, make_event) -> None:
        event = make_event("schedule")
        context = agent_mode.prepare_context(event, comment_id=5, base_branch="main")

        assert context.to_dict() == {"mode": "agent", "event": event}

    def test_tag_context_keeps_bookkeeping(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="@claude")
        context = tag_mode.prepare_context(event, comment_id=5, base_branch="main", assistant_branch="claude/issue-1")

        assert context.to_dict()["comment_id"] == 5
        assert context.to_dict()["assistant_branch"] == "claude/issue-1"

    def test_review_should_trigger(self, make_event) -> None:
        assert review_mode.should_trigger(make_event("pull_request", action="opened", is_pr=True))
        assert not review_mode.should_trigger(make_event("pull_request", action="closed", is_pr=True))

    def test_remote_agent_should_trigger(self, make_event) -> None:
        assert remote_agent_mode.should_trigger(make_event("repository_dispatch"))
        assert not remote_agent_mode.should_trigger(make_event("schedule"))

    def test_tag_tools_include_tracking_comment_tool(self, make_event) -> None:
        event = make_event("issue_comment", action="created", entity_number=1, comment_body="@claude")
        allowed, disallowed = tag_mode.tool_lists(event)

        assert "mcp__github_comment__update_claude_comment" in allowed
        assert "WebSearch" in disallowed

    def test_review_prompt_defaults_to_review_command(self, make_event) -> None:
        event = make_event("pull_request", action="opened", entity_number=9, is_pr=True, head_sha="abc")
        prompt = review_mode.generate_prompt(review_mode.prepare_context(event))

        assert prompt.startswith("/review")
        assert "Pull request: #9" in prompt
