"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class StartRequest(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class AnswerRequest(BaseModel):
    answer: Any
    step_id: str | None = None


class WorkflowSummary(BaseModel):
    id: str
    name: str
    steps: list[str]
