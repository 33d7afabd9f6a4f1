"""Application runtime composition helpers."""
from __future__ import annotations

from fastapi import Request

from agentrouter.config import Settings
from agentrouter.orchestration.registry import AgentRegistry


def build_registry(settings: Settings) -> AgentRegistry:
    registry = AgentRegistry(
        settings.registry_config(),
        orchestrator_config=settings.orchestrator_config(),
    )
    registry.initialize_core_agents()
    return registry


async def start_runtime(settings: Settings) -> AgentRegistry:
    """Create the registry with its core agents and start health monitoring."""
    registry = build_registry(settings)
    await registry.start()
    return registry


def get_registry(request: Request) -> AgentRegistry:
    return request.app.state.registry
