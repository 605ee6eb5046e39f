"""FastAPI server adapter exposing the HTTP human-input gateway.

Design intent:
- Keep workflow logic in `hitl_orchestrator.workflow.*`
- Keep server-specific concerns (routing, CORS, startup wiring) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from hitl_orchestrator.server.app import create_app
