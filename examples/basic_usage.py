#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the engine directly, without a gateway:

* register a three-step definition (system -> human -> system)
* start it and observe the pause at the human step
* answer the prompt and let the workflow finish
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from hitl_orchestrator.logging import configure_logging
from hitl_orchestrator.workflow.engine import WorkflowEngine
from hitl_orchestrator.workflow.models import WorkflowDefinition, WorkflowStep


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a small approval workflow.")
    parser.add_argument("--answer", default="yes", help="Answer given at the approval step")
    parser.add_argument("--log-level", default="WARNING", help="Root logging level")
    return parser.parse_args(argv)


async def _run(answer: str) -> None:
    engine = WorkflowEngine()
    engine.events.subscribe(lambda event: print(f"[{event.type}]"))
    engine.register(
        WorkflowDefinition(
            id="approval",
            name="Approval",
            steps=(
                WorkflowStep(id="prepare", type="system"),
                WorkflowStep(
                    id="approve",
                    type="human",
                    config={"prompt": "Ship it?", "input_type": "approval"},
                    dependencies=("prepare",),
                ),
                WorkflowStep(id="ship", type="system", dependencies=("approve",)),
            ),
        )
    )

    instance_id = await engine.start("approval")
    pending = engine.get_pending_input(instance_id)
    assert pending is not None
    print(f"Paused at {pending.step_id}: {pending.prompt}")

    await engine.provide_human_input(instance_id, answer)
    state = engine.get_state(instance_id)
    assert state is not None
    print(f"Status: {state.status.value}; completed: {', '.join(state.completed_steps)}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)
    asyncio.run(_run(args.answer))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
