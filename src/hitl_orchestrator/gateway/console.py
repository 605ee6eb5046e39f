"""Console gateway for local development."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any, TextIO

from hitl_orchestrator.gateway.base import HumanInputGateway
from hitl_orchestrator.workflow.models import HumanInputRequest, WorkflowInstance


class ConsoleGateway(HumanInputGateway):
    """Prompts on stdout and reads answers from stdin.

    ``input`` runs in a worker thread so the event loop keeps running while the
    user types.
    """

    def __init__(
        self,
        *,
        output: TextIO | None = None,
        read_line: Callable[[str], str] | None = None,
    ) -> None:
        super().__init__()
        self._output = output
        self._read_line = read_line or input

    def _print(self, text: str) -> None:
        print(text, file=self._output, flush=True)

    async def request_input(self, instance_id: str, request: HumanInputRequest) -> None:
        self._print(f"\nWorkflow {instance_id} needs human input:")
        self._print(request.prompt)
        if request.options:
            self._print("Options: " + ", ".join(request.options))
        if request.input_type == "approval":
            self._print("Answer yes or no.")

        answer = await asyncio.to_thread(self._read_line, "Your input: ")
        await self.submit_answer(
            instance_id, self._coerce(request, answer.strip()), request.step_id
        )

    @staticmethod
    def _coerce(request: HumanInputRequest, answer: str) -> Any:
        if request.input_type == "approval":
            return answer.lower() in {"y", "yes", "true", "approve", "approved"}
        return answer

    async def notify_complete(self, instance_id: str, final_state: WorkflowInstance) -> None:
        self._print(f"\nWorkflow {instance_id} completed.")
        self._print(json.dumps(final_state.step_data, indent=2, default=str, ensure_ascii=False))

    async def notify_error(self, instance_id: str, error: str) -> None:
        self._print(f"\nWorkflow {instance_id} failed: {error}")
