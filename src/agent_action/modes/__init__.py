"""Execution modes and the registry that selects one per trigger event."""

from agent_action.modes.base import ExecutionMode, ModeContext, PrepareOptions, PrepareResult
from agent_action.modes.detector import ModeName, detect_mode
from agent_action.modes.registry import (
    MODES,
    VALID_MODES,
    UnknownModeError,
    classify,
    get_mode,
    require_mode,
)

__all__ = [
    "MODES",
    "VALID_MODES",
    "ExecutionMode",
    "ModeContext",
    "ModeName",
    "PrepareOptions",
    "PrepareResult",
    "UnknownModeError",
    "classify",
    "detect_mode",
    "get_mode",
    "require_mode",
]
