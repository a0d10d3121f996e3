"""Schemas for the resume (teleport) endpoint."""
from typing import Any

from pydantic import BaseModel, ConfigDict


class ResumeMessage(BaseModel):
    """One message of a previously captured assistant conversation."""

    model_config = ConfigDict(extra="allow")

    role: str
    content: str | list[dict[str, Any]]


class ResumeResponse(BaseModel):
    """Body returned by the resume endpoint."""

    model_config = ConfigDict(extra="ignore")

    log: list[ResumeMessage]
    branch: str | None = None


class ResumeState(BaseModel):
    """Conversation state a run can continue from."""

    messages: list[ResumeMessage]
    branch_name: str | None = None
