"""FastAPI app factory.

Endpoints are intentionally thin wrappers over :class:`HITLFramework`, wired
with a :class:`QueueGateway` so human input is collected over HTTP.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from hitl_orchestrator import __version__
from hitl_orchestrator.core.config import LLMSettings
from hitl_orchestrator.core.framework import HITLFramework
from hitl_orchestrator.errors import (
    InvalidStateError,
    InvalidWorkflowError,
    NoProvidersAvailableError,
    WorkflowNotFoundError,
)
from hitl_orchestrator.gateway.queue import PendingRequest, QueueGateway
from hitl_orchestrator.llm.manager import LLMManager
from hitl_orchestrator.server.config import ServerSettings
from hitl_orchestrator.server.models import AnswerRequest, StartRequest, WorkflowSummary
from hitl_orchestrator.workflow.agents import LLMAgentRunner
from hitl_orchestrator.workflow.models import WorkflowDefinition, WorkflowInstance

logger = logging.getLogger(__name__)


def _load_definitions(framework: HITLFramework, settings: ServerSettings) -> None:
    for path in settings.workflow_files():
        try:
            framework.register_workflow(WorkflowDefinition.from_json_file(path))
        except (ValueError, ValidationError, InvalidWorkflowError) as e:
            logger.error(f"Skipping invalid workflow file {path}: {e}")


async def _init_llm(framework: HITLFramework) -> None:
    try:
        manager = await LLMManager.create(LLMSettings().to_multi_llm_config())
    except NoProvidersAvailableError as e:
        logger.info(f"LLM dispatch disabled: {e}")
        return
    framework.llm = manager
    framework.engine.agent_runner = LLMAgentRunner(manager)


def create_app(
    *,
    settings: ServerSettings | None = None,
    gateway: QueueGateway | None = None,
    llm: LLMManager | None = None,
) -> FastAPI:
    settings = settings or ServerSettings()
    gateway = gateway or QueueGateway()
    framework = HITLFramework(gateway, llm=llm)
    _load_definitions(framework, settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if framework.llm is None and settings.enable_llm:
            await _init_llm(framework)
        yield
        await framework.wait_idle()

    app = FastAPI(
        title="HITL Orchestrator",
        version=__version__,
        description="REST API for starting workflows and answering human-input requests.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.framework = framework

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _instance_or_404(instance_id: str) -> WorkflowInstance:
        state = framework.get_workflow_state(instance_id)
        if state is None:
            raise HTTPException(status_code=404, detail="Instance not found")
        return state

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/v1/workflows", response_model=list[WorkflowSummary])
    def list_workflows() -> list[WorkflowSummary]:
        summaries = []
        for workflow_id in framework.engine.definitions.ids():
            definition = framework.engine.definitions.get(workflow_id)
            if definition is None:
                continue
            summaries.append(
                WorkflowSummary(
                    id=definition.id,
                    name=definition.name or definition.id,
                    steps=[s.id for s in definition.steps],
                )
            )
        return summaries

    @app.post("/api/v1/workflows/{workflow_id}/instances", response_model=WorkflowInstance)
    async def start_instance(workflow_id: str, req: StartRequest) -> WorkflowInstance:
        try:
            instance_id = await framework.start_workflow(workflow_id, req.data)
        except WorkflowNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        # Let the gateway queue any input request before responding.
        await framework.wait_idle()
        return _instance_or_404(instance_id)

    @app.get("/api/v1/instances/{instance_id}", response_model=WorkflowInstance)
    def get_instance(instance_id: str) -> WorkflowInstance:
        return _instance_or_404(instance_id)

    @app.get("/api/v1/inputs", response_model=list[PendingRequest])
    async def list_inputs() -> list[PendingRequest]:
        await framework.wait_idle()
        return gateway.pending()

    @app.post("/api/v1/instances/{instance_id}/input", response_model=WorkflowInstance)
    async def submit_input(instance_id: str, req: AnswerRequest) -> WorkflowInstance:
        _instance_or_404(instance_id)
        await framework.wait_idle()
        try:
            await gateway.submit_answer(instance_id, req.answer, req.step_id)
        except InvalidStateError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        await framework.wait_idle()
        return _instance_or_404(instance_id)

    @app.get("/api/v1/llm/health")
    async def llm_health() -> dict[str, bool]:
        if framework.llm is None:
            return {}
        return await framework.llm.check_health()

    return app
