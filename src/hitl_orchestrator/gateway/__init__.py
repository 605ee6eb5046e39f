"""Human-input gateways."""

from hitl_orchestrator.gateway.base import HumanInputGateway
from hitl_orchestrator.gateway.console import ConsoleGateway
from hitl_orchestrator.gateway.queue import PendingRequest, QueueGateway

__all__ = [
    "ConsoleGateway",
    "HumanInputGateway",
    "PendingRequest",
    "QueueGateway",
]
