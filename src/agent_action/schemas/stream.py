"""Stream configuration handed from the prepare step to the run step."""
import json
import logging

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class StreamConfig(BaseModel):
    """Endpoints and headers for streaming and progress tracking."""

    progress_endpoint: str | None = None
    system_progress_endpoint: str | None = None
    resume_endpoint: str | None = None
    session_id: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def bearer_token(self) -> str | None:
        """Token carried in the ``Authorization`` header, if any."""
        auth_header = self.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return None
        return auth_header[len("Bearer "):] or None

    @property
    def wants_teleport(self) -> bool:
        """Whether the run should resume a prior session."""
        return bool(self.session_id and self.resume_endpoint)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True, exclude_defaults=True)

    @classmethod
    def from_json(cls, raw: str | None) -> "StreamConfig | None":
        """Parse a serialized stream config; ``None`` when absent or invalid."""
        if not raw or not raw.strip():
            return None
        try:
            return cls.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("Failed to parse stream config", extra={"error": str(e)})
            return None
