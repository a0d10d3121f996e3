"""Command line and environment for the assistant process."""
import json
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from agent_action.schemas.stream import StreamConfig

logger = logging.getLogger(__name__)

# Always last so user arguments cannot override the output format
BASE_ARGS = ("--verbose", "--output-format", "stream-json")


@dataclass
class RunOptions:
    """Caller-supplied options for one assistant run."""

    assistant_args: str | None = None
    model: str | None = None
    allowed_tools: str | None = None
    disallowed_tools: str | None = None
    append_system_prompt: str | None = None
    timeout_minutes: str | None = None
    stream_config: str | None = None
    executable: str = "claude"


@dataclass
class RunConfig:
    args: list[str]
    prompt_path: Path
    executable: str = "claude"
    env: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float | None = None
    stream_config: StreamConfig | None = None

    @property
    def command(self) -> list[str]:
        return [self.executable, *self.args]


def _parse_timeout_minutes(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        minutes = float(value)
    except ValueError:
        minutes = 0.0
    if minutes <= 0:
        raise ValueError(f"timeout_minutes must be a positive number, got: {value}")
    return minutes * 60


def prepare_run_config(prompt_path: str | Path, options: RunOptions) -> RunConfig:
    """
    Build the assistant invocation.

    Argument order: ``-p``, the user's shell-split arguments, flags derived
    from options, ``--teleport <session>`` when resuming, then the fixed
    output-format tail.
    """
    args = ["-p"]

    if options.assistant_args and options.assistant_args.strip():
        args.extend(shlex.split(options.assistant_args))

    if options.model:
        args.extend(["--model", options.model])
    if options.allowed_tools:
        args.extend(["--allowedTools", options.allowed_tools])
    if options.disallowed_tools:
        args.extend(["--disallowedTools", options.disallowed_tools])
    if options.append_system_prompt:
        args.extend(["--append-system-prompt", options.append_system_prompt])

    env: dict[str, str] = {}
    stream_config = StreamConfig.from_json(options.stream_config)
    if stream_config is not None and stream_config.wants_teleport:
        args.extend(["--teleport", stream_config.session_id])  # type: ignore[list-item]
        env["TELEPORT_RESUME_URL"] = stream_config.resume_endpoint  # type: ignore[assignment]
        env["TELEPORT_HEADERS"] = json.dumps(stream_config.headers)
        logger.info("Resuming session", extra={"session_id": stream_config.session_id})

    args.extend(BASE_ARGS)

    return RunConfig(
        args=args,
        prompt_path=Path(prompt_path),
        executable=options.executable,
        env=env,
        timeout_seconds=_parse_timeout_minutes(options.timeout_minutes),
        stream_config=stream_config,
    )
