"""HITL framework facade.

Wires a :class:`~hitl_orchestrator.workflow.engine.WorkflowEngine` to a
human-input gateway: lifecycle events go out to the gateway, answers come back
into the engine.
"""

import logging
from collections.abc import Mapping
from typing import Any

from hitl_orchestrator.gateway.base import HumanInputGateway
from hitl_orchestrator.llm.manager import LLMManager
from hitl_orchestrator.workflow.agents import LLMAgentRunner
from hitl_orchestrator.workflow.engine import WorkflowEngine
from hitl_orchestrator.workflow.events import (
    EventHandler,
    EventType,
    HumanInputRequired,
    StepCompleted,
    WorkflowCompleted,
    WorkflowFailed,
)
from hitl_orchestrator.workflow.models import (
    HumanInputRequest,
    WorkflowDefinition,
    WorkflowInstance,
)
from hitl_orchestrator.workflow.steps import AgentRunner

logger = logging.getLogger(__name__)


class HITLFramework:
    """Main entry point for running human-in-the-loop workflows.

    Args:
        gateway: Channel used to ask people for input. Without one, answers must
            be supplied through :meth:`provide_input`.
        llm: Dispatch manager used to run ``agent`` steps. Ignored when
            ``agent_runner`` is given.
        agent_runner: Explicit runner for ``agent`` steps.
    """

    def __init__(
        self,
        gateway: HumanInputGateway | None = None,
        *,
        llm: LLMManager | None = None,
        agent_runner: AgentRunner | None = None,
    ) -> None:
        if agent_runner is None and llm is not None:
            agent_runner = LLMAgentRunner(llm)

        self.llm = llm
        self.gateway = gateway
        self.engine = WorkflowEngine(agent_runner=agent_runner)
        self._setup_event_handlers()

    def _setup_event_handlers(self) -> None:
        if self.gateway is None:
            return
        gateway = self.gateway

        async def on_input_required(event: HumanInputRequired) -> None:
            await gateway.request_input(event.instance_id, event.human_input)

        async def on_completed(event: WorkflowCompleted) -> None:
            await gateway.notify_complete(event.instance_id, event.state)

        async def on_failed(event: WorkflowFailed) -> None:
            await gateway.notify_error(event.instance_id, event.error)

        # Runs inline so an answer given through provide_input clears the
        # queued request before the workflow moves on.
        def on_step_completed(event: StepCompleted) -> None:
            gateway.discard_request(event.instance_id, event.step_id)

        self.engine.events.subscribe(on_input_required, "human_input_required")
        self.engine.events.subscribe(on_completed, "workflow_completed")
        self.engine.events.subscribe(on_failed, "workflow_failed")
        self.engine.events.subscribe(on_step_completed, "step_completed")
        gateway.on_answer(self.engine.provide_human_input)

    def register_workflow(self, definition: WorkflowDefinition) -> None:
        self.engine.register(definition)

    async def start_workflow(
        self, workflow_id: str, initial_data: Mapping[str, Any] | None = None
    ) -> str:
        return await self.engine.start(workflow_id, initial_data)

    async def provide_input(
        self, instance_id: str, answer: Any, step_id: str | None = None
    ) -> None:
        await self.engine.provide_human_input(instance_id, answer, step_id)

    def get_workflow_state(self, instance_id: str) -> WorkflowInstance | None:
        return self.engine.get_state(instance_id)

    def get_pending_input(self, instance_id: str) -> HumanInputRequest | None:
        return self.engine.get_pending_input(instance_id)

    def on(self, event_type: EventType | None, handler: EventHandler) -> None:
        self.engine.events.subscribe(handler, event_type)

    async def wait_idle(self) -> None:
        """Wait for gateway round-trips and other event handlers to settle."""
        await self.engine.events.drain()

    async def run_to_completion(
        self, workflow_id: str, initial_data: Mapping[str, Any] | None = None
    ) -> WorkflowInstance:
        """Start a workflow and wait until the gateway has driven it to the end.

        Only meaningful with a gateway that answers on its own (e.g. the console
        gateway); with a queueing gateway this returns while still paused.
        """
        instance_id = await self.start_workflow(workflow_id, initial_data)
        await self.wait_idle()
        state = self.get_workflow_state(instance_id)
        assert state is not None
        logger.info(f"Instance {instance_id} finished with status {state.status.value}")
        return state
