"""Abstract human-input gateway."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from hitl_orchestrator.workflow.models import HumanInputRequest, WorkflowInstance

logger = logging.getLogger(__name__)

AnswerHandler = Callable[[str, Any, str | None], Awaitable[None]]


class HumanInputGateway(ABC):
    """Channel between paused workflows and the people answering them.

    For every :meth:`request_input` a gateway must eventually call
    :meth:`submit_answer` exactly once with the instance id, the raw answer and
    the step id of the request being answered.
    """

    def __init__(self) -> None:
        self._answer_handlers: list[AnswerHandler] = []

    def on_answer(self, handler: AnswerHandler) -> None:
        self._answer_handlers.append(handler)

    async def submit_answer(
        self, instance_id: str, answer: Any, step_id: str | None = None
    ) -> None:
        if not self._answer_handlers:
            logger.warning(f"Answer for instance {instance_id} dropped: no handler registered")
        for handler in self._answer_handlers:
            await handler(instance_id, answer, step_id)

    def discard_request(self, instance_id: str, step_id: str) -> None:
        """Forget a request that was answered through another channel."""

    @abstractmethod
    async def request_input(self, instance_id: str, request: HumanInputRequest) -> None: ...

    @abstractmethod
    async def notify_complete(self, instance_id: str, final_state: WorkflowInstance) -> None: ...

    @abstractmethod
    async def notify_error(self, instance_id: str, error: str) -> None: ...
