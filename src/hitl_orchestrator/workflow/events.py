"""Typed workflow lifecycle events and a fan-out event bus.

Publishing is synchronous dispatch with asynchronous handling: plain-function
handlers run inline, coroutine handlers are scheduled as tasks and never
awaited by the publisher.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from hitl_orchestrator.workflow.models import HumanInputRequest, WorkflowInstance, WorkflowStep

logger = logging.getLogger(__name__)

EventType = Literal[
    "step_started",
    "step_completed",
    "human_input_required",
    "workflow_completed",
    "workflow_failed",
]


class _BaseEvent(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    instance_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class StepStarted(_BaseEvent):
    type: Literal["step_started"] = "step_started"
    step_id: str
    step: WorkflowStep


class StepCompleted(_BaseEvent):
    type: Literal["step_completed"] = "step_completed"
    step_id: str
    result: Any = None


class HumanInputRequired(_BaseEvent):
    type: Literal["human_input_required"] = "human_input_required"
    human_input: HumanInputRequest
    state: WorkflowInstance


class WorkflowCompleted(_BaseEvent):
    type: Literal["workflow_completed"] = "workflow_completed"
    state: WorkflowInstance


class WorkflowFailed(_BaseEvent):
    type: Literal["workflow_failed"] = "workflow_failed"
    step_id: str
    error: str


WorkflowEvent = Annotated[
    StepStarted | StepCompleted | HumanInputRequired | WorkflowCompleted | WorkflowFailed,
    Field(discriminator="type"),
]

EventHandler = Callable[[Any], None] | Callable[[Any], Awaitable[None]]


class EventBus:
    def __init__(self) -> None:
        self._handlers: list[tuple[EventType | None, EventHandler]] = []
        self._tasks: set[asyncio.Task[None]] = set()

    def subscribe(
        self, handler: EventHandler, event_type: EventType | None = None
    ) -> Callable[[], None]:
        """Register ``handler`` for one event type, or for every event if None.

        Returns:
            A callable that removes the subscription.
        """
        entry = (event_type, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def publish(self, event: WorkflowEvent) -> None:
        for event_type, handler in list(self._handlers):
            if event_type is not None and event_type != event.type:
                continue
            try:
                result = handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {event.type}")
                continue
            if inspect.isawaitable(result):
                self._schedule(result, event)

    def _schedule(self, awaitable: Awaitable[None], event: WorkflowEvent) -> None:
        async def run() -> None:
            try:
                await awaitable
            except Exception:
                logger.exception(f"Async event handler failed for {event.type}")

        task = asyncio.get_running_loop().create_task(run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every scheduled handler, including ones they trigger, finishes."""
        while self._tasks:
            pending = list(self._tasks)
            await asyncio.gather(*pending)
            self._tasks.difference_update(pending)
