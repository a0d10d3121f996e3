"""Tool allow/deny list assembly for the assistant process."""

BASE_ALLOWED_TOOLS = ("Edit", "MultiEdit", "Glob", "Grep", "LS", "Read", "Write")
DEFAULT_DISALLOWED_TOOLS = ("WebSearch", "WebFetch")

ACTIONS_READ_TOOLS = (
    "mcp__github_ci__get_ci_status",
    "mcp__github_ci__get_workflow_run_details",
    "mcp__github_ci__download_job_log",
)
COMMIT_SIGNING_TOOLS = (
    "mcp__github_file_ops__commit_files",
    "mcp__github_file_ops__delete_files",
)
GIT_BASH_TOOLS = (
    "Bash(git add:*)",
    "Bash(git commit:*)",
    "Bash(git push:*)",
    "Bash(git status:*)",
    "Bash(git diff:*)",
    "Bash(git log:*)",
    "Bash(git rm:*)",
)


def _dedupe(tools: list[str]) -> list[str]:
    return list(dict.fromkeys(tools))


def build_allowed_tools(
    custom_tools: list[str] | None = None,
    *,
    include_actions_tools: bool = False,
    use_commit_signing: bool = False,
) -> list[str]:
    """Base tools, caller tools, then CI and commit tools."""
    tools = [*BASE_ALLOWED_TOOLS, *(custom_tools or [])]
    if include_actions_tools:
        tools.extend(ACTIONS_READ_TOOLS)
    tools.extend(COMMIT_SIGNING_TOOLS if use_commit_signing else GIT_BASH_TOOLS)
    return _dedupe(tools)


def build_disallowed_tools(
    custom_disallowed: list[str] | None = None,
    custom_allowed: list[str] | None = None,
) -> list[str]:
    """Default deny list minus anything explicitly allowed, plus caller denials."""
    allowed = set(custom_allowed or [])
    tools = [tool for tool in DEFAULT_DISALLOWED_TOOLS if tool not in allowed]
    tools.extend(custom_disallowed or [])
    return _dedupe(tools)


def to_tools_string(tools: list[str]) -> str:
    return ",".join(tools)
