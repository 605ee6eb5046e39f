"""Tests for the workflow event bus."""

import asyncio

import pytest
from pydantic import TypeAdapter

from hitl_orchestrator.workflow.events import (
    EventBus,
    StepCompleted,
    WorkflowEvent,
    WorkflowFailed,
)


def _completed(instance_id: str = "i-1") -> StepCompleted:
    return StepCompleted(instance_id=instance_id, step_id="s", result={"ok": True})


@pytest.mark.asyncio
async def test_sync_handlers_run_inline_and_filter_by_type() -> None:
    bus = EventBus()
    everything: list[str] = []
    failures: list[str] = []
    bus.subscribe(lambda e: everything.append(e.type))
    bus.subscribe(lambda e: failures.append(e.step_id), "workflow_failed")

    bus.publish(_completed())
    bus.publish(WorkflowFailed(instance_id="i-1", step_id="bad", error="boom"))

    assert everything == ["step_completed", "workflow_failed"]
    assert failures == ["bad"]


@pytest.mark.asyncio
async def test_publish_does_not_wait_for_async_handlers() -> None:
    bus = EventBus()
    release = asyncio.Event()
    finished: list[str] = []

    async def slow(event: StepCompleted) -> None:
        await release.wait()
        finished.append(event.step_id)

    bus.subscribe(slow)
    bus.publish(_completed())

    assert finished == []
    assert bus.pending_tasks == 1

    release.set()
    await bus.drain()

    assert finished == ["s"]
    assert bus.pending_tasks == 0


@pytest.mark.asyncio
async def test_drain_waits_for_handlers_scheduled_by_handlers() -> None:
    bus = EventBus()
    seen: list[str] = []

    async def first(event: StepCompleted) -> None:
        await asyncio.sleep(0)
        bus.publish(WorkflowFailed(instance_id=event.instance_id, step_id="x", error="late"))

    async def second(event: WorkflowFailed) -> None:
        await asyncio.sleep(0)
        seen.append(event.error)

    bus.subscribe(first, "step_completed")
    bus.subscribe(second, "workflow_failed")
    bus.publish(_completed())
    await bus.drain()

    assert seen == ["late"]


@pytest.mark.asyncio
async def test_failing_handlers_do_not_stop_others() -> None:
    bus = EventBus()
    seen: list[str] = []

    def broken(event: StepCompleted) -> None:
        raise RuntimeError("sync boom")

    async def broken_async(event: StepCompleted) -> None:
        raise RuntimeError("async boom")

    bus.subscribe(broken)
    bus.subscribe(broken_async)
    bus.subscribe(lambda e: seen.append(e.step_id))

    bus.publish(_completed())
    await bus.drain()

    assert seen == ["s"]


@pytest.mark.asyncio
async def test_unsubscribe() -> None:
    bus = EventBus()
    seen: list[str] = []
    unsubscribe = bus.subscribe(lambda e: seen.append(e.instance_id))

    bus.publish(_completed("a"))
    unsubscribe()
    unsubscribe()
    bus.publish(_completed("b"))

    assert seen == ["a"]


def test_events_parse_by_type_tag() -> None:
    adapter = TypeAdapter(WorkflowEvent)

    event = adapter.validate_python(
        {"type": "workflow_failed", "instance_id": "i", "step_id": "s", "error": "e"}
    )

    assert isinstance(event, WorkflowFailed)
    assert event.id
    assert event.timestamp.tzinfo is not None
