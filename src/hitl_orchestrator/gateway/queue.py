"""In-memory gateway that holds requests until someone answers them.

Used by the HTTP server: requests are listed over the API and answers arrive
as POSTs.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from hitl_orchestrator.errors import InvalidStateError
from hitl_orchestrator.gateway.base import HumanInputGateway
from hitl_orchestrator.workflow.models import HumanInputRequest, WorkflowInstance

logger = logging.getLogger(__name__)


class PendingRequest(BaseModel):
    instance_id: str
    request: HumanInputRequest


class QueueGateway(HumanInputGateway):
    def __init__(self) -> None:
        super().__init__()
        self._pending: dict[str, HumanInputRequest] = {}
        self.completed: dict[str, WorkflowInstance] = {}
        self.errors: dict[str, str] = {}

    async def request_input(self, instance_id: str, request: HumanInputRequest) -> None:
        self._pending[instance_id] = request
        logger.info(f"Queued input request for instance {instance_id} (step {request.step_id})")

    def pending(self) -> list[PendingRequest]:
        return [
            PendingRequest(instance_id=instance_id, request=request)
            for instance_id, request in self._pending.items()
        ]

    async def submit_answer(
        self, instance_id: str, answer: Any, step_id: str | None = None
    ) -> None:
        """Deliver an answer for a queued request.

        The request stays queued until the answer has been accepted, so a
        rejected answer can be corrected and resent.

        Raises:
            InvalidStateError: If no request is queued for the instance, or the
                queued request is for a different step.
        """
        request = self._pending.get(instance_id)
        if request is None:
            raise InvalidStateError(f"No queued input request for instance {instance_id}")
        if step_id is not None and step_id != request.step_id:
            raise InvalidStateError(
                f"Queued request for instance {instance_id} is for step {request.step_id}, "
                f"not {step_id}"
            )
        await super().submit_answer(instance_id, answer, request.step_id)
        self.discard_request(instance_id, request.step_id)

    def discard_request(self, instance_id: str, step_id: str) -> None:
        request = self._pending.get(instance_id)
        if request is not None and request.step_id == step_id:
            del self._pending[instance_id]

    async def notify_complete(self, instance_id: str, final_state: WorkflowInstance) -> None:
        self._pending.pop(instance_id, None)
        self.completed[instance_id] = final_state

    async def notify_error(self, instance_id: str, error: str) -> None:
        self._pending.pop(instance_id, None)
        self.errors[instance_id] = error
