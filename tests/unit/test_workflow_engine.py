"""Unit tests for the workflow execution engine."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from hitl_orchestrator.errors import InvalidStateError, WorkflowNotFoundError
from hitl_orchestrator.workflow.engine import WorkflowEngine, find_next_step
from hitl_orchestrator.workflow.events import WorkflowFailed
from hitl_orchestrator.workflow.models import (
    HUMAN_INPUT_KEY,
    WorkflowDefinition,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
)


def _definition(*steps: WorkflowStep, workflow_id: str = "wf") -> WorkflowDefinition:
    return WorkflowDefinition(id=workflow_id, steps=steps)


@pytest.mark.asyncio
async def test_linear_workflow_pauses_then_completes(
    engine: WorkflowEngine, linear_definition: WorkflowDefinition
) -> None:
    engine.register(linear_definition)

    instance_id = await engine.start("review")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.PAUSED
    assert state.current_step_id == "approve"
    pending = engine.get_pending_input(instance_id)
    assert pending is not None
    assert pending.step_id == "approve"
    assert pending.prompt == "Approve?"
    assert pending.input_type == "approval"

    await engine.provide_human_input(instance_id, "yes")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.COMPLETED
    assert state.completed_steps == ["prepare", "approve", "publish"]
    assert state.step_data["approve"] == {HUMAN_INPUT_KEY: "yes"}
    assert engine.get_pending_input(instance_id) is None


@pytest.mark.asyncio
async def test_unknown_step_type_fails_workflow(engine: WorkflowEngine) -> None:
    failures: list[WorkflowFailed] = []
    engine.events.subscribe(failures.append, "workflow_failed")
    engine.register(
        _definition(
            WorkflowStep(id="ok", type="system"),
            WorkflowStep(id="weird", type="bogus", dependencies=("ok",)),
            WorkflowStep(id="never", type="system", dependencies=("weird",)),
        )
    )

    instance_id = await engine.start("wf")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.FAILED
    assert state.completed_steps == ["ok"]
    assert state.error == "Unknown step type: bogus"
    assert len(failures) == 1
    assert failures[0].step_id == "weird"
    assert "bogus" in failures[0].error


@pytest.mark.asyncio
async def test_provide_input_rejected_while_running(engine: WorkflowEngine) -> None:
    errors: list[Exception] = []

    class ReentrantRunner:
        async def run(self, step: WorkflowStep, state: WorkflowInstance) -> Any:
            assert state.status == WorkflowStatus.RUNNING
            try:
                await engine.provide_human_input(state.id, "too early")
            except InvalidStateError as e:
                errors.append(e)
            return {"ok": True}

    engine.agent_runner = ReentrantRunner()
    engine.register(_definition(WorkflowStep(id="agent", type="agent")))

    instance_id = await engine.start("wf")

    assert len(errors) == 1
    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.COMPLETED


@pytest.mark.asyncio
async def test_provide_input_rejects_unknown_and_finished_instances(
    engine: WorkflowEngine,
) -> None:
    engine.register(_definition(WorkflowStep(id="only", type="system")))
    instance_id = await engine.start("wf")

    with pytest.raises(InvalidStateError):
        await engine.provide_human_input("missing", "x")
    with pytest.raises(InvalidStateError):
        await engine.provide_human_input(instance_id, "x")


@pytest.mark.asyncio
async def test_second_answer_is_rejected(
    engine: WorkflowEngine, linear_definition: WorkflowDefinition
) -> None:
    engine.register(linear_definition)
    instance_id = await engine.start("review")
    await engine.provide_human_input(instance_id, "yes")

    with pytest.raises(InvalidStateError):
        await engine.provide_human_input(instance_id, "yes again")


def _two_questions() -> WorkflowDefinition:
    return _definition(
        WorkflowStep(id="ask1", type="human"),
        WorkflowStep(id="ask2", type="human", dependencies=("ask1",)),
    )


@pytest.mark.asyncio
async def test_concurrent_answers_to_same_step_record_one(engine: WorkflowEngine) -> None:
    engine.register(_two_questions())
    instance_id = await engine.start("wf")

    results = await asyncio.gather(
        engine.provide_human_input(instance_id, "first", step_id="ask1"),
        engine.provide_human_input(instance_id, "second", step_id="ask1"),
        return_exceptions=True,
    )

    assert sum(result is None for result in results) == 1
    assert sum(isinstance(result, InvalidStateError) for result in results) == 1
    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.PAUSED
    assert state.completed_steps == ["ask1"]
    assert "ask2" not in state.step_data
    pending = engine.get_pending_input(instance_id)
    assert pending is not None
    assert pending.step_id == "ask2"


@pytest.mark.asyncio
async def test_answer_for_other_step_is_rejected(engine: WorkflowEngine) -> None:
    engine.register(_two_questions())
    instance_id = await engine.start("wf")

    with pytest.raises(InvalidStateError, match="waiting on step ask1"):
        await engine.provide_human_input(instance_id, "early", step_id="ask2")

    await engine.provide_human_input(instance_id, "one", step_id="ask1")
    await engine.provide_human_input(instance_id, "two", step_id="ask2")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.COMPLETED
    assert state.step_data["ask1"] == {HUMAN_INPUT_KEY: "one"}
    assert state.step_data["ask2"] == {HUMAN_INPUT_KEY: "two"}


@pytest.mark.asyncio
async def test_independent_steps_run_in_declared_order(engine: WorkflowEngine) -> None:
    engine.register(
        _definition(
            WorkflowStep(id="b", type="system"),
            WorkflowStep(id="a", type="system"),
            WorkflowStep(id="c", type="system"),
        )
    )

    for _ in range(3):
        instance_id = await engine.start("wf")
        state = engine.get_state(instance_id)
        assert state is not None
        assert state.completed_steps == ["b", "a", "c"]


@pytest.mark.asyncio
async def test_dependencies_complete_before_dependents(engine: WorkflowEngine) -> None:
    definition = _definition(
        WorkflowStep(id="report", type="system", dependencies=("fetch", "clean")),
        WorkflowStep(id="clean", type="system", dependencies=("fetch",)),
        WorkflowStep(id="fetch", type="system"),
        WorkflowStep(id="notify", type="system"),
    )
    engine.register(definition)

    instance_id = await engine.start("wf")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.COMPLETED
    order = state.completed_steps
    assert sorted(order) == ["clean", "fetch", "notify", "report"]
    for step in definition.steps:
        for dep in step.dependencies:
            assert order.index(dep) < order.index(step.id)


@pytest.mark.asyncio
async def test_workflow_without_human_steps_never_pauses(engine: WorkflowEngine) -> None:
    engine.register(
        _definition(
            WorkflowStep(id="one", type="system"),
            WorkflowStep(id="two", type="agent", dependencies=("one",)),
        )
    )

    instance_id = await engine.start("wf")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.COMPLETED
    assert state.step_data["two"] == {"message": "Agent step two completed"}


@pytest.mark.asyncio
async def test_pending_input_present_iff_paused(
    engine: WorkflowEngine, linear_definition: WorkflowDefinition
) -> None:
    violations: list[str] = []

    def check(event: Any) -> None:
        state = engine.get_state(event.instance_id)
        pending = engine.get_pending_input(event.instance_id)
        assert state is not None
        if (state.status == WorkflowStatus.PAUSED) != (pending is not None):
            violations.append(f"{event.type}: status={state.status.value}")

    engine.events.subscribe(check)
    engine.register(linear_definition)

    instance_id = await engine.start("review")
    await engine.provide_human_input(instance_id, "yes")

    assert violations == []


@pytest.mark.asyncio
async def test_get_state_is_a_snapshot(
    engine: WorkflowEngine, linear_definition: WorkflowDefinition
) -> None:
    engine.register(linear_definition)
    instance_id = await engine.start("review", {"topic": "release"})

    first = engine.get_state(instance_id)
    assert first is not None
    first.completed_steps.append("tampered")
    first.step_data["topic"] = "changed"

    second = engine.get_state(instance_id)
    third = engine.get_state(instance_id)
    assert second == third
    assert second is not None
    assert second.completed_steps == ["prepare"]
    assert second.step_data["topic"] == "release"


@pytest.mark.asyncio
async def test_lookups_return_none_for_unknown_ids(engine: WorkflowEngine) -> None:
    assert engine.get_state("nope") is None
    assert engine.get_pending_input("nope") is None


@pytest.mark.asyncio
async def test_start_unknown_workflow_raises(engine: WorkflowEngine) -> None:
    with pytest.raises(WorkflowNotFoundError):
        await engine.start("missing")


@pytest.mark.asyncio
async def test_initial_data_is_copied(engine: WorkflowEngine) -> None:
    engine.register(_definition(WorkflowStep(id="s", type="system")))
    initial = {"customer": "acme"}

    instance_id = await engine.start("wf", initial)
    initial["customer"] = "changed"

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.step_data["customer"] == "acme"
    assert state.step_data["s"] == {"message": "System step s completed"}


@pytest.mark.asyncio
async def test_human_input_merges_with_existing_step_data(engine: WorkflowEngine) -> None:
    engine.register(_definition(WorkflowStep(id="ask", type="human")))

    instance_id = await engine.start("wf", {"ask": {"draft": "v1"}})
    pending = engine.get_pending_input(instance_id)
    assert pending is not None
    assert pending.prompt == "Input required for step: ask"
    assert pending.input_type == "text"

    await engine.provide_human_input(instance_id, {"comment": "fine"})

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.step_data["ask"] == {"draft": "v1", HUMAN_INPUT_KEY: {"comment": "fine"}}


@pytest.mark.asyncio
async def test_human_input_keeps_non_mapping_step_data(engine: WorkflowEngine) -> None:
    engine.register(_definition(WorkflowStep(id="ask", type="human")))

    instance_id = await engine.start("wf", {"ask": "seed"})
    await engine.provide_human_input(instance_id, "answer")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.step_data["ask"] == {"data": "seed", HUMAN_INPUT_KEY: "answer"}


@pytest.mark.asyncio
async def test_agent_runner_exception_fails_workflow(engine: WorkflowEngine) -> None:
    class BrokenRunner:
        async def run(self, step: WorkflowStep, state: WorkflowInstance) -> Any:
            raise RuntimeError("model exploded")

    failures: list[WorkflowFailed] = []
    engine.events.subscribe(failures.append, "workflow_failed")
    engine.agent_runner = BrokenRunner()
    engine.register(_definition(WorkflowStep(id="think", type="agent")))

    instance_id = await engine.start("wf")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.FAILED
    assert failures[0].step_id == "think"
    assert failures[0].error == "model exploded"


@pytest.mark.asyncio
async def test_agent_runner_output_is_stored(engine: WorkflowEngine) -> None:
    seen: list[dict[str, Any]] = []

    class EchoRunner:
        async def run(self, step: WorkflowStep, state: WorkflowInstance) -> Any:
            seen.append(dict(state.step_data))
            return {"echo": state.step_data.get("text")}

    engine.agent_runner = EchoRunner()
    engine.register(_definition(WorkflowStep(id="echo", type="agent")))

    instance_id = await engine.start("wf", {"text": "hi"})

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.step_data["echo"] == {"echo": "hi"}
    assert seen == [{"text": "hi"}]


@pytest.mark.asyncio
async def test_invalid_human_config_fails_workflow(engine: WorkflowEngine) -> None:
    engine.register(
        _definition(WorkflowStep(id="ask", type="human", config={"input_type": "telepathy"}))
    )

    instance_id = await engine.start("wf")

    state = engine.get_state(instance_id)
    assert state is not None
    assert state.status == WorkflowStatus.FAILED
    assert engine.get_pending_input(instance_id) is None


@pytest.mark.asyncio
async def test_event_sequence(
    engine: WorkflowEngine, linear_definition: WorkflowDefinition
) -> None:
    seen: list[str] = []
    engine.events.subscribe(lambda event: seen.append(event.type))
    engine.register(linear_definition)

    instance_id = await engine.start("review")
    assert seen == ["step_started", "step_completed", "step_started", "human_input_required"]

    await engine.provide_human_input(instance_id, "yes")
    assert seen[4:] == ["step_completed", "step_started", "step_completed", "workflow_completed"]


@pytest.mark.asyncio
async def test_list_instances_filters_by_status(
    engine: WorkflowEngine, linear_definition: WorkflowDefinition
) -> None:
    engine.register(linear_definition)
    paused_id = await engine.start("review")
    done_id = await engine.start("review")
    await engine.provide_human_input(done_id, "yes")

    assert [i.id for i in engine.list_instances(WorkflowStatus.PAUSED)] == [paused_id]
    assert [i.id for i in engine.list_instances(WorkflowStatus.COMPLETED)] == [done_id]
    assert len(engine.list_instances()) == 2


def test_find_next_step_skips_blocked_steps() -> None:
    definition = _definition(
        WorkflowStep(id="late", type="system", dependencies=("early",)),
        WorkflowStep(id="early", type="system"),
    )
    instance = WorkflowInstance(workflow_id="wf")

    step = find_next_step(definition, instance)
    assert step is not None
    assert step.id == "early"

    instance.completed_steps.append("early")
    step = find_next_step(definition, instance)
    assert step is not None
    assert step.id == "late"

    instance.completed_steps.append("late")
    assert find_next_step(definition, instance) is None
