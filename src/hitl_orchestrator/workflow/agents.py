"""LLM-backed runner for ``agent`` steps.

Step config keys:

- ``prompt`` (required): template rendered with ``str.format_map`` against the
  instance's step data; unknown keys render as empty strings.
- ``system`` (optional): system message, rendered the same way.
- ``options`` (optional): :class:`~hitl_orchestrator.llm.types.ChatOptions` fields.
"""

from __future__ import annotations

import logging
from typing import Any

from hitl_orchestrator.errors import InvalidWorkflowError
from hitl_orchestrator.llm.manager import LLMManager
from hitl_orchestrator.llm.types import ChatMessage, ChatOptions
from hitl_orchestrator.workflow.models import WorkflowInstance, WorkflowStep

logger = logging.getLogger(__name__)


class _Empty(str):
    # Indexing a missing value (``{step[key]}``) keeps rendering empty.
    def __getitem__(self, key: Any) -> "_Empty":
        return self


class _Blank(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return _Empty()


def render_template(template: str, data: dict[str, Any]) -> str:
    return template.format_map(_Blank(data))


class LLMAgentRunner:
    def __init__(self, manager: LLMManager) -> None:
        self.manager = manager

    async def run(self, step: WorkflowStep, state: WorkflowInstance) -> dict[str, Any]:
        template = step.config.get("prompt")
        if not isinstance(template, str) or not template.strip():
            raise InvalidWorkflowError(f"Agent step {step.id} has no prompt configured")

        messages: list[ChatMessage] = []
        system = step.config.get("system")
        if isinstance(system, str) and system:
            messages.append(
                ChatMessage(role="system", content=render_template(system, state.step_data))
            )
        messages.append(
            ChatMessage(role="user", content=render_template(template, state.step_data))
        )
        options = ChatOptions.model_validate(step.config.get("options") or {})

        logger.debug(f"Agent step {step.id} sending {len(messages)} messages")
        response = await self.manager.chat(messages, options)
        return {
            "content": response.content,
            "provider": response.provider,
            "model": response.model,
            "usage": response.usage.model_dump(),
        }
