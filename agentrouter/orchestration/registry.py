"""Registry owning agent lifecycle, capacity and periodic health snapshots."""
from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Dict, List, Optional

from loguru import logger

from agentrouter.agents.base import BaseAgent
from agentrouter.agents.compatibility import CompatibilityAgent
from agentrouter.agents.deployment import DeploymentAgent
from agentrouter.agents.lint import LintAgent
from agentrouter.agents.orchestrator_agent import OrchestratorAgent
from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.models import (
    DEPLOYMENT_REQUEST,
    LINT_REQUEST,
    VERSION_CHECK,
    AgentHealthSnapshot,
    OrchestratorConfig,
    RegistryConfig,
)

ORCHESTRATOR = "orchestrator"
COMPATIBILITY = "compatibility"
LINT = "lint"
DEPLOYMENT = "deployment"


class AgentRegistry:
    """Hold every agent of one running system, the orchestrator included.

    Construct one per application, call ``initialize_core_agents`` and
    ``start`` on startup and ``dispose`` on shutdown.
    """

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        *,
        orchestrator_config: Optional[OrchestratorConfig] = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self._orchestrator_config = orchestrator_config or OrchestratorConfig(name=ORCHESTRATOR)
        self._agents: Dict[str, BaseAgent] = {}
        self._health: Dict[str, AgentHealthSnapshot] = {}
        self._orchestrator: Optional[OrchestratorAgent] = None
        self._health_task: Optional[asyncio.Task[None]] = None

    def initialize_core_agents(self) -> OrchestratorAgent:
        """Build the orchestrator and the built-in workers and wire their routes.

        Any previously registered agents are discarded. A live orchestrator
        owns a drain task, so it has to be released with ``dispose`` first.
        """
        if self._orchestrator is not None:
            raise AgentError(
                AgentErrorType.OPERATION,
                "Core agents already initialized",
                {"orchestrator": self._orchestrator.name},
            )
        self._agents.clear()
        self._health.clear()

        orchestrator = OrchestratorAgent(self._orchestrator_config)
        self.register_agent(orchestrator.name, orchestrator)
        self._orchestrator = orchestrator

        routes = (
            (CompatibilityAgent(), (VERSION_CHECK,)),
            (LintAgent(), (LINT_REQUEST,)),
            (DeploymentAgent(), (DEPLOYMENT_REQUEST,)),
        )
        for agent, message_types in routes:
            self.register_agent(agent.name, agent)
            orchestrator.register_agent(agent, message_types)

        logger.info("Initialized core agents: {}", ", ".join(self._agents))
        return orchestrator

    def register_agent(self, name: str, agent: Optional[BaseAgent]) -> None:
        if agent is None:
            raise AgentError(AgentErrorType.VALIDATION, "Invalid agent", {"name": name})
        if name in self._agents:
            raise AgentError(AgentErrorType.VALIDATION, f"Agent with name {name} already exists")
        if len(self._agents) >= self.config.max_agents:
            raise AgentError(
                AgentErrorType.QUEUE_FULL,
                "Maximum number of agents reached",
                {"max_agents": self.config.max_agents},
            )
        self._agents[name] = agent
        self._health[name] = AgentHealthSnapshot(name=name, state=agent.state, last_active=time.time())

    def unregister_agent(self, name: str) -> None:
        agent = self._agents.pop(name, None)
        if agent is None:
            raise AgentError(AgentErrorType.VALIDATION, f"Agent {name} is not registered")
        self._health.pop(name, None)
        if agent is self._orchestrator:
            self._orchestrator = None
        elif self._orchestrator is not None and self._orchestrator.get_agent(name) is agent:
            self._orchestrator.unregister_agent(name)

    def get_agent(self, name: str) -> Optional[BaseAgent]:
        return self._agents.get(name)

    @property
    def agent_names(self) -> List[str]:
        return list(self._agents)

    def get_orchestrator(self) -> OrchestratorAgent:
        if self._orchestrator is None:
            raise AgentError(AgentErrorType.OPERATION, "Orchestrator not initialized")
        return self._orchestrator

    def get_agent_health(self) -> List[AgentHealthSnapshot]:
        return list(self._health.values())

    def refresh_health(self) -> None:
        for name, agent in self._agents.items():
            self._health[name] = AgentHealthSnapshot(
                name=name,
                state=agent.state,
                last_active=agent.last_active_time,
            )

    async def start(self) -> None:
        """Begin refreshing health snapshots every ``health_check_interval_ms``."""
        if self._health_task is not None:
            return
        self.refresh_health()
        self._health_task = asyncio.create_task(self._health_loop(), name="agent-health-check")

    async def _health_loop(self) -> None:
        interval = self.config.health_check_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            self.refresh_health()

    async def dispose(self) -> None:
        task, self._health_task = self._health_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._orchestrator is not None:
            await self._orchestrator.shutdown()
            self._orchestrator = None
        self._agents.clear()
        self._health.clear()
