"""Configuration management for the agent router."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from agentrouter.core.models import OrchestratorConfig, RegistryConfig

ENV_PREFIX = "AGENTROUTER_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


@dataclass(frozen=True)
class Settings:
    """Application configuration loaded from environment variables."""

    max_agents: int = 10
    health_check_interval_ms: float = 1000
    orchestrator_timeout_ms: float = 30000
    orchestrator_routing_timeout_ms: Optional[float] = None
    orchestrator_max_retries: int = 3
    orchestrator_retry_delay_ms: float = 1000
    orchestrator_max_queue_size: int = 1000
    log_level: str = "INFO"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> Settings:
        """Load configuration from ``AGENTROUTER_*`` environment variables."""
        routing_timeout = os.getenv(f"{ENV_PREFIX}ORCHESTRATOR_ROUTING_TIMEOUT_MS")
        return cls(
            max_agents=int(_env("MAX_AGENTS", "10")),
            health_check_interval_ms=float(_env("HEALTH_CHECK_INTERVAL_MS", "1000")),
            orchestrator_timeout_ms=float(_env("ORCHESTRATOR_TIMEOUT_MS", "30000")),
            orchestrator_routing_timeout_ms=float(routing_timeout) if routing_timeout else None,
            orchestrator_max_retries=int(_env("ORCHESTRATOR_MAX_RETRIES", "3")),
            orchestrator_retry_delay_ms=float(_env("ORCHESTRATOR_RETRY_DELAY_MS", "1000")),
            orchestrator_max_queue_size=int(_env("ORCHESTRATOR_MAX_QUEUE_SIZE", "1000")),
            log_level=_env("LOG_LEVEL", "INFO"),
            environment=os.getenv("ENVIRONMENT", "development"),
            host=_env("HOST", "127.0.0.1"),
            port=int(_env("PORT", "8000")),
        )

    def registry_config(self) -> RegistryConfig:
        return RegistryConfig(
            max_agents=self.max_agents,
            health_check_interval_ms=self.health_check_interval_ms,
        )

    def orchestrator_config(self) -> OrchestratorConfig:
        return OrchestratorConfig(
            name="orchestrator",
            max_retries=self.orchestrator_max_retries,
            max_queue_size=self.orchestrator_max_queue_size,
            timeout_ms=self.orchestrator_timeout_ms,
            routing_timeout_ms=self.orchestrator_routing_timeout_ms,
            retry_delay_ms=self.orchestrator_retry_delay_ms,
        )
