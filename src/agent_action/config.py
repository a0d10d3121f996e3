"""Application configuration using Pydantic Settings.

This is the only place that reads the process environment. The streaming,
reporting, resume and mode components receive explicit config objects built
by the helpers at the bottom of ``Settings``.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from agent_action.schemas.events import TriggerInputs
    from agent_action.streaming.relay import RelaySettings
    from agent_action.streaming.token import OIDCTokenProvider

DEFAULT_OIDC_AUDIENCE = "claude-code-github-action"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = "dev"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    # GitHub Webhook
    github_webhook_secret: str = ""

    # GitHub API
    github_token: str = ""
    github_api_base_url: str = "https://api.github.com"
    github_server_url: str = "https://github.com"

    # Trigger configuration
    trigger_phrase: str = "@claude"
    assignee_trigger: str = ""
    label_trigger: str = ""
    mode: str = ""
    prompt: str = ""
    allowed_tools: str = ""
    disallowed_tools: str = ""
    additional_permissions: str = ""
    use_commit_signing: bool = False

    # Branching
    base_branch: str = ""
    branch_prefix: str = "claude/"
    branch_name_template: str = ""

    # OIDC token minting (populated by the Actions runner)
    actions_id_token_request_url: str = ""
    actions_id_token_request_token: str = ""
    oidc_audience: str = DEFAULT_OIDC_AUDIENCE

    # Output relay
    stream_batch_size: int = 10
    stream_batch_timeout_ms: int = 1000
    stream_request_timeout_ms: int = 5000
    stream_token_lifetime_seconds: int = 4 * 60
    stream_sequence_numbers: bool = False

    # Resume endpoint
    resume_request_timeout_ms: int = 10000

    # Prompt output
    runner_temp: str = "/tmp"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "prod"

    @property
    def prompt_dir(self) -> str:
        """Directory the prompt file is written to."""
        return f"{self.runner_temp.rstrip('/')}/claude-prompts"

    def trigger_inputs(self) -> "TriggerInputs":
        """Build the per-event inputs consumed by mode detection."""
        from agent_action.schemas.events import (
            TriggerInputs,
            parse_additional_permissions,
            parse_multiline_input,
        )

        return TriggerInputs(
            mode=self.mode,
            prompt=self.prompt,
            trigger_phrase=self.trigger_phrase,
            assignee_trigger=self.assignee_trigger,
            label_trigger=self.label_trigger,
            allowed_tools=parse_multiline_input(self.allowed_tools),
            disallowed_tools=parse_multiline_input(self.disallowed_tools),
            additional_permissions=parse_additional_permissions(self.additional_permissions),
            use_commit_signing=self.use_commit_signing,
            base_branch=self.base_branch or None,
            branch_prefix=self.branch_prefix,
            branch_name_template=self.branch_name_template or None,
        )

    def relay_settings(
        self,
        endpoint: str,
        headers: dict[str, str] | None = None,
    ) -> "RelaySettings":
        """Build relay settings for the given progress endpoint."""
        from agent_action.streaming.relay import RelaySettings

        return RelaySettings(
            endpoint=endpoint,
            headers=dict(headers or {}),
            batch_size=self.stream_batch_size,
            batch_timeout_seconds=self.stream_batch_timeout_ms / 1000,
            request_timeout_seconds=self.stream_request_timeout_ms / 1000,
            token_lifetime_seconds=float(self.stream_token_lifetime_seconds),
            audience=self.oidc_audience,
            sequence_numbers=self.stream_sequence_numbers,
        )

    @property
    def resume_timeout_seconds(self) -> float:
        return self.resume_request_timeout_ms / 1000

    def oidc_token_provider(self) -> "OIDCTokenProvider":
        """Token getter backed by the runner's ID-token endpoint."""
        from agent_action.streaming.token import OIDCTokenProvider

        return OIDCTokenProvider(
            self.actions_id_token_request_url,
            self.actions_id_token_request_token,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
