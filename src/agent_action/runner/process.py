"""Running the assistant process and forwarding its output."""
import asyncio
import json
import logging
import os
import sys
import time
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from agent_action.runner.run_config import RunConfig
from agent_action.streaming.relay import OutputRelay

logger = logging.getLogger(__name__)

EXECUTION_FILENAME = "claude-execution-output.json"

# Stream-json lines can be large (tool results, file contents)
STDOUT_LINE_LIMIT = 10 * 1024 * 1024


@dataclass
class RunResult:
    exit_code: int
    duration_ms: int
    execution_file: Path | None = None

    @property
    def conclusion(self) -> str:
        return "success" if self.exit_code == 0 else "failure"


async def _pump_output(
    process: asyncio.subprocess.Process,
    relay: OutputRelay | None,
    messages: list[Any],
) -> None:
    assert process.stdout is not None
    async for raw in process.stdout:
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        if not line.strip():
            continue
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            sys.stdout.write(line + "\n")
            continue

        sys.stdout.write(json.dumps(parsed, indent=2) + "\n")
        messages.append(parsed)
        if relay is not None:
            await relay.add_output(line + "\n")


async def _feed_prompt(process: asyncio.subprocess.Process, prompt: bytes) -> None:
    assert process.stdin is not None
    try:
        process.stdin.write(prompt)
        await process.stdin.drain()
    except (BrokenPipeError, ConnectionResetError) as e:
        logger.warning("Assistant closed stdin early", extra={"error": str(e)})
    finally:
        process.stdin.close()


async def _communicate(
    process: asyncio.subprocess.Process,
    prompt: bytes,
    relay: OutputRelay | None,
    messages: list[Any],
) -> None:
    # stdout is read while stdin is written so neither pipe can fill up
    feed = asyncio.create_task(_feed_prompt(process, prompt))
    pump = asyncio.create_task(_pump_output(process, relay, messages))
    try:
        await asyncio.gather(feed, pump)
    finally:
        for task in (feed, pump):
            if not task.done():
                task.cancel()


def write_execution_file(path: Path, messages: list[Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(messages, indent=2), encoding="utf-8")
    logger.info("Execution log saved", extra={"path": str(path), "messages": len(messages)})
    return path


async def run_assistant(
    config: RunConfig,
    relay: OutputRelay | None = None,
    *,
    output_dir: Path | None = None,
) -> RunResult:
    """
    Run the assistant to completion.

    The prompt file is fed on stdin. Each JSON stdout line is echoed
    pretty-printed and forwarded to ``relay``; other lines are echoed only.
    The relay is closed before returning, whatever the outcome.
    """
    started = time.monotonic()
    messages: list[Any] = []
    exit_code = 1

    prompt = config.prompt_path.read_bytes()
    logger.info(
        "Running assistant",
        extra={"command": " ".join(config.command), "prompt_bytes": len(prompt)},
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *config.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            env={**os.environ, **config.env},
            limit=STDOUT_LINE_LIMIT,
        )
    except OSError as e:
        logger.error("Failed to start assistant process", extra={"error": str(e)})
    else:
        try:
            await asyncio.wait_for(
                _communicate(process, prompt, relay, messages), timeout=config.timeout_seconds
            )
            exit_code = await process.wait()
        except asyncio.TimeoutError:
            logger.error(
                "Assistant timed out", extra={"timeout_seconds": config.timeout_seconds}
            )
            exit_code = 1
        except (ValueError, asyncio.LimitOverrunError) as e:
            logger.error(
                "Assistant output line exceeded the read limit",
                extra={"limit": STDOUT_LINE_LIMIT, "error": str(e)},
            )
            exit_code = 1
        finally:
            if process.returncode is None:
                # The child can exit between the check and the kill
                with suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
    finally:
        if relay is not None:
            await relay.close()

    duration_ms = int((time.monotonic() - started) * 1000)

    execution_file = None
    if messages or exit_code == 0:
        try:
            execution_file = write_execution_file(
                (output_dir or config.prompt_path.parent) / EXECUTION_FILENAME, messages
            )
        except OSError as e:
            logger.warning("Failed to write execution file", extra={"error": str(e)})

    result = RunResult(exit_code=exit_code, duration_ms=duration_ms, execution_file=execution_file)
    logger.info(
        "Assistant finished",
        extra={"exit_code": exit_code, "conclusion": result.conclusion, "duration_ms": duration_ms},
    )
    return result
