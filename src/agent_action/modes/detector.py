"""Mode detection: classify a trigger event into exactly one execution mode.

Rules are evaluated in order and the first match wins:

1. a non-empty explicit prompt selects ``agent``
2. a pull_request opened/synchronize/reopened selects ``review``
3. the trigger phrase in issue/comment/review text selects ``tag``
4. an issue assigned to the configured assignee selects ``tag``
5. an issue labeled with the configured label selects ``tag``
6. a repository_dispatch selects ``remote-agent``
7. everything else selects ``agent``

Trigger phrase matching is a case-sensitive substring test. It does not
look at markdown structure, so a phrase inside a code fence still counts.
"""
from enum import Enum

from agent_action.schemas.events import EventKind, TriggerEvent


class ModeName(str, Enum):
    """Names of the execution modes."""

    TAG = "tag"
    AGENT = "agent"
    REVIEW = "review"
    REMOTE_AGENT = "remote-agent"


REVIEW_ACTIONS = frozenset({"opened", "synchronize", "reopened"})

# Events whose text is scanned for the trigger phrase
TRIGGER_TEXT_EVENTS = frozenset(
    {
        EventKind.ISSUES,
        EventKind.ISSUE_COMMENT,
        EventKind.PULL_REQUEST_REVIEW_COMMENT,
    }
)

MODE_DESCRIPTIONS = {
    ModeName.TAG: "Interactive mode triggered by @claude mentions",
    ModeName.AGENT: "Direct automation mode for explicit prompts and scheduled workflows",
    ModeName.REVIEW: "Automated code review mode for pull requests",
    ModeName.REMOTE_AGENT: "Remote automation mode for repository_dispatch events",
}


def contains_trigger_phrase(text: str | None, trigger_phrase: str) -> bool:
    if not text or not trigger_phrase:
        return False
    return trigger_phrase in text


def mentions_trigger(event: TriggerEvent) -> bool:
    """Whether the event's text carries the configured trigger phrase."""
    if event.kind not in TRIGGER_TEXT_EVENTS:
        return False
    phrase = event.inputs.trigger_phrase
    if event.kind == EventKind.ISSUES:
        texts = (event.entity_body, event.entity_title)
    else:
        texts = (event.comment_body,)
    return any(contains_trigger_phrase(text, phrase) for text in texts)


def matches_assignee_trigger(event: TriggerEvent) -> bool:
    trigger_user = event.inputs.assignee_trigger.lstrip("@")
    return (
        event.kind == EventKind.ISSUES
        and event.action == "assigned"
        and bool(trigger_user)
        and event.assignee == trigger_user
    )


def matches_label_trigger(event: TriggerEvent) -> bool:
    trigger_label = event.inputs.label_trigger
    return (
        event.kind == EventKind.ISSUES
        and event.action == "labeled"
        and bool(trigger_label)
        and event.label == trigger_label
    )


def check_contains_trigger(event: TriggerEvent) -> bool:
    """Rules 3-5: any of the interactive triggers fired."""
    return mentions_trigger(event) or matches_assignee_trigger(event) or matches_label_trigger(event)


def is_review_event(event: TriggerEvent) -> bool:
    return event.kind == EventKind.PULL_REQUEST and event.action in REVIEW_ACTIONS


def has_explicit_prompt(event: TriggerEvent) -> bool:
    return bool(event.prompt and event.prompt.strip())


def detect_mode(event: TriggerEvent) -> ModeName:
    """Classify an event. Total and deterministic over every ``TriggerEvent``."""
    if has_explicit_prompt(event):
        return ModeName.AGENT
    if is_review_event(event):
        return ModeName.REVIEW
    if mentions_trigger(event):
        return ModeName.TAG
    if matches_assignee_trigger(event):
        return ModeName.TAG
    if matches_label_trigger(event):
        return ModeName.TAG
    if event.kind == EventKind.REPOSITORY_DISPATCH:
        return ModeName.REMOTE_AGENT
    return ModeName.AGENT


def describe_mode(mode: ModeName) -> str:
    return MODE_DESCRIPTIONS.get(mode, "Unknown mode")


def should_use_tracking_comment(mode: ModeName) -> bool:
    return mode == ModeName.TAG


def default_prompt_for_mode(mode: ModeName, event: TriggerEvent) -> str | None:
    if mode == ModeName.REVIEW:
        return "/review"
    if mode == ModeName.AGENT:
        return event.prompt or None
    return None
