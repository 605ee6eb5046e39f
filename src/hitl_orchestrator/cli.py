"""CLI entrypoint.

Runs workflow definition files against the console gateway and reports on
LLM provider availability.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from hitl_orchestrator import __version__
from hitl_orchestrator.core.config import OrchestratorConfig
from hitl_orchestrator.core.framework import HITLFramework
from hitl_orchestrator.errors import InvalidWorkflowError, NoProvidersAvailableError
from hitl_orchestrator.gateway.console import ConsoleGateway
from hitl_orchestrator.llm.manager import LLMManager
from hitl_orchestrator.llm.registry import ProviderRegistry
from hitl_orchestrator.workflow.models import WorkflowDefinition, WorkflowStatus

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hitl-orchestrator",
        description="Run human-in-the-loop workflows and inspect LLM providers",
    )
    parser.add_argument("--version", action="version", version=f"hitl-orchestrator {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a workflow definition file interactively")
    run.add_argument("path", type=Path, help="Path to a workflow definition JSON file")
    run.add_argument(
        "--data",
        default=None,
        help="Initial step data as a JSON object, e.g. '{\"topic\": \"release notes\"}'",
    )
    run.add_argument(
        "--no-llm",
        action="store_true",
        help="Do not initialize LLM providers; agent steps use the placeholder behavior",
    )

    providers = subparsers.add_parser("providers", help="List available LLM providers")
    providers.add_argument(
        "--health",
        action="store_true",
        help="Initialize configured providers and send each one a minimal request",
    )

    return parser


def _parse_data(value: str | None) -> dict[str, Any]:
    if value is None:
        return {}
    data = json.loads(value)
    if not isinstance(data, dict):
        raise ValueError("--data must be a JSON object")
    return data


async def _create_llm(config: OrchestratorConfig) -> LLMManager | None:
    try:
        return await LLMManager.create(config.llm.to_multi_llm_config())
    except NoProvidersAvailableError as e:
        logger.info(f"LLM dispatch disabled: {e}")
        return None


async def _run(args: argparse.Namespace, config: OrchestratorConfig) -> int:
    try:
        definition = WorkflowDefinition.from_json_file(args.path)
        initial_data = _parse_data(args.data)
    except (OSError, ValueError, ValidationError) as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2

    llm = None if args.no_llm else await _create_llm(config)
    framework = HITLFramework(ConsoleGateway(), llm=llm)
    try:
        framework.register_workflow(definition)
    except InvalidWorkflowError as e:
        print(f"Invalid workflow: {e}", file=sys.stderr)
        return 2

    state = await framework.run_to_completion(definition.id, initial_data)
    return 0 if state.status == WorkflowStatus.COMPLETED else 1


async def _providers(args: argparse.Namespace, config: OrchestratorConfig) -> int:
    registry = ProviderRegistry.default()
    for provider_type in registry.registered_types():
        status = "available" if registry.is_available(provider_type) else "not installed"
        print(f"{provider_type}: {status}")

    if not args.health:
        return 0

    try:
        manager = await LLMManager.create(config.llm.to_multi_llm_config(), registry)
    except NoProvidersAvailableError as e:
        print(str(e), file=sys.stderr)
        return 1

    print(f"primary: {manager.primary_provider}")
    for provider_type, healthy in (await manager.check_health()).items():
        print(f"{provider_type}: {'healthy' if healthy else 'unhealthy'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = OrchestratorConfig()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    config.setup_logging()

    try:
        if args.command == "run":
            return asyncio.run(_run(args, config))
        if args.command == "providers":
            return asyncio.run(_providers(args, config))

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
