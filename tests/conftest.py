"""Test configuration and fixtures."""

from collections.abc import Callable

import pytest

from hitl_orchestrator.errors import ProviderError
from hitl_orchestrator.llm.provider import LLMProvider
from hitl_orchestrator.llm.types import ChatMessage, ChatOptions, ChatResponse, ProviderConfig
from hitl_orchestrator.workflow.engine import WorkflowEngine
from hitl_orchestrator.workflow.models import WorkflowDefinition, WorkflowStep

ProviderFactory = Callable[..., type[LLMProvider]]


@pytest.fixture
def engine() -> WorkflowEngine:
    """Provide a fresh engine with its own event bus and definition store."""
    return WorkflowEngine()


@pytest.fixture
def linear_definition() -> WorkflowDefinition:
    """system -> human -> system, each step depending on the previous one."""
    return WorkflowDefinition(
        id="review",
        name="Review",
        steps=(
            WorkflowStep(id="prepare", type="system"),
            WorkflowStep(
                id="approve",
                type="human",
                config={"prompt": "Approve?", "input_type": "approval"},
                dependencies=("prepare",),
            ),
            WorkflowStep(id="publish", type="system", dependencies=("approve",)),
        ),
    )


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Provide a test provider configuration."""
    return ProviderConfig(api_key="test-key")


@pytest.fixture
def provider_factory() -> ProviderFactory:
    """Build in-memory provider classes that succeed or fail on demand.

    Each built class records the messages of every call in ``calls``.
    """

    def build(
        name: str,
        *,
        fail: bool = False,
        available: bool = True,
        healthy: bool = True,
    ) -> type[LLMProvider]:
        calls: list[list[ChatMessage]] = []

        class FakeProvider(LLMProvider):
            supported_models = (f"{name}-model",)
            sdk_module = name

            @classmethod
            def is_available(cls) -> bool:
                return available

            async def chat(
                self, messages: list[ChatMessage], options: ChatOptions | None = None
            ) -> ChatResponse:
                calls.append(messages)
                if fail:
                    raise ProviderError(self.name, f"{name} is down")
                return ChatResponse(
                    content=f"reply from {name}",
                    model=self.resolve_model(options),
                    provider=self.name,
                )

            async def is_healthy(self) -> bool:
                if not healthy:
                    raise RuntimeError(f"{name} health check crashed")
                return True

        FakeProvider.name = name
        FakeProvider.calls = calls  # type: ignore[attr-defined]
        return FakeProvider

    return build
