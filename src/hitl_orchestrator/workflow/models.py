"""Workflow definitions, instance state and step results."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StepType(str, Enum):
    AGENT = "agent"
    HUMAN = "human"
    SYSTEM = "system"


class WorkflowStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({WorkflowStatus.COMPLETED, WorkflowStatus.FAILED})

InputType = Literal["text", "choice", "approval", "custom"]

# Key under which a human answer is stored in a step's data.
HUMAN_INPUT_KEY = "human_input"


class WorkflowStep(BaseModel):
    """A single unit of work.

    ``type`` is kept as a plain string so definitions with unknown tags can be
    registered; they fail when the step is executed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    dependencies: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            return {**data, "name": data.get("id", "")}
        return data


class WorkflowDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str | None = None
    steps: tuple[WorkflowStep, ...]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json_file(cls, path: Path) -> WorkflowDefinition:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return cls.model_validate(raw)

    def get_step(self, step_id: str) -> WorkflowStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class HumanInputRequest(BaseModel):
    step_id: str
    prompt: str
    input_type: InputType = "text"
    options: list[str] | None = None
    metadata: dict[str, Any] | None = None


def _utc_now() -> datetime:
    return datetime.now(UTC)


class WorkflowInstance(BaseModel):
    """State of one execution of a workflow definition.

    Only the engine mutates instances; everything handed out is a deep copy
    produced by :meth:`snapshot`.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workflow_id: str
    current_step_id: str | None = None
    completed_steps: list[str] = Field(default_factory=list)
    step_data: dict[str, Any] = Field(default_factory=dict)
    status: WorkflowStatus = WorkflowStatus.PENDING
    error: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def touch(self) -> None:
        self.updated_at = _utc_now()

    def snapshot(self) -> WorkflowInstance:
        return self.model_copy(deep=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class StepResult(BaseModel):
    step_id: str
    success: bool
    data: Any = None
    error: str | None = None
    requires_human: HumanInputRequest | None = None
