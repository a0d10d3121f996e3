"""
Mode registry.

Maps mode names to the statically constructed mode objects and picks the
mode for an event, either from an explicit name or by detection.
"""

import logging
from types import MappingProxyType

from agent_action.modes.agent import agent_mode
from agent_action.modes.base import ExecutionMode
from agent_action.modes.detector import ModeName, detect_mode
from agent_action.modes.remote_agent import remote_agent_mode
from agent_action.modes.review import review_mode
from agent_action.modes.tag import tag_mode
from agent_action.schemas.events import TriggerEvent

logger = logging.getLogger(__name__)

LEGACY_MODE_ALIASES = MappingProxyType({"experimental-review": ModeName.REVIEW})

VALID_MODES = frozenset({mode.value for mode in ModeName} | set(LEGACY_MODE_ALIASES))

MODES: "MappingProxyType[ModeName, ExecutionMode]" = MappingProxyType(
    {
        ModeName.TAG: tag_mode,
        ModeName.AGENT: agent_mode,
        ModeName.REVIEW: review_mode,
        ModeName.REMOTE_AGENT: remote_agent_mode,
    }
)


class UnknownModeError(ValueError):
    """An explicitly requested mode does not exist."""

    def __init__(self, name: str):
        valid = ", ".join(sorted(VALID_MODES))
        super().__init__(f"Invalid mode '{name}'. Valid modes are: {valid}")
        self.name = name


def is_valid_mode(name: str | None) -> bool:
    return bool(name) and name in VALID_MODES


def resolve_mode_name(name: str) -> ModeName:
    """Map a (possibly legacy) mode name to its ``ModeName``."""
    if name in LEGACY_MODE_ALIASES:
        return LEGACY_MODE_ALIASES[name]
    try:
        return ModeName(name)
    except ValueError:
        raise UnknownModeError(name) from None


def require_mode(name: str) -> ExecutionMode:
    """
    Look up a mode by name with no fallback.

    Raises:
        UnknownModeError: if ``name`` is not a known mode
    """
    return MODES[resolve_mode_name(name)]


def classify(event: TriggerEvent) -> ModeName:
    """Detected mode name for an event. Never fails."""
    return detect_mode(event)


def get_mode(event: TriggerEvent, explicit_mode: str | None = None) -> ExecutionMode:
    """
    Select the mode for an event.

    A valid explicit name (argument, else ``event.inputs.mode``) wins.
    Anything else, including an unknown name, falls back to detection.
    """
    if explicit_mode is None:
        explicit_mode = event.inputs.mode or None

    if explicit_mode and is_valid_mode(explicit_mode):
        mode_name = resolve_mode_name(explicit_mode)
        logger.info("Using explicit mode", extra={"mode": mode_name.value})
        return MODES[mode_name]

    if explicit_mode:
        logger.warning(
            "Ignoring unknown explicit mode, detecting instead",
            extra={"requested_mode": explicit_mode},
        )

    mode_name = classify(event)
    logger.info(
        "Auto-detected mode",
        extra={"mode": mode_name.value, "event": event.kind.value},
    )
    return MODES[mode_name]
