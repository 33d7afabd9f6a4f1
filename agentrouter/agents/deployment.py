"""Worker simulating a project build and deployment."""
from __future__ import annotations

import asyncio
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from loguru import logger

from agentrouter.agents.base import BaseAgent
from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.models import AgentConfig, DeploymentRequestPayload, Message
from agentrouter.core.resilience import with_timeout


@dataclass(slots=True)
class DeploymentConfig(AgentConfig):
    min_build_ms: float = 1000
    max_build_ms: float = 3000
    failure_rate: float = 0.0
    build_timeout_ms: Optional[float] = None
    history_size: int = 20

    def __post_init__(self) -> None:
        AgentConfig.__post_init__(self)
        if not 0 <= self.min_build_ms <= self.max_build_ms:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Invalid agent configuration: build duration range is empty",
                {"min_build_ms": self.min_build_ms, "max_build_ms": self.max_build_ms},
            )
        if self.build_timeout_ms is not None and self.build_timeout_ms <= 0:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Invalid agent configuration: build_timeout_ms must be positive",
                {"field": "build_timeout_ms", "value": self.build_timeout_ms},
            )
        if not 0.0 <= self.failure_rate <= 1.0:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Invalid agent configuration: failure_rate must be between 0 and 1",
                {"field": "failure_rate", "value": self.failure_rate},
            )


@dataclass(slots=True)
class BuildResult:
    project_path: str
    status: str = "building"
    started_at: float = field(default_factory=time.time)
    duration_ms: float = 0.0
    artifacts: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class DeploymentAgent(BaseAgent):
    """Handle DEPLOYMENT_REQUEST messages with a mocked build step."""

    config: DeploymentConfig

    def __init__(self, config: Optional[DeploymentConfig] = None) -> None:
        super().__init__(config or DeploymentConfig(name="deployment"))
        self.current_build: Optional[BuildResult] = None
        self.history: Deque[BuildResult] = deque(maxlen=self.config.history_size)

    async def handle_message(self, message: Message) -> BuildResult:
        payload = message.payload
        if not isinstance(payload, DeploymentRequestPayload):
            raise AgentError(
                AgentErrorType.VALIDATION,
                f"Unsupported message type: {message.type}",
                {"message_id": message.id},
            )

        timeout_ms = payload.timeout if payload.timeout is not None else self.config.build_timeout_ms
        if timeout_ms is not None:
            return await with_timeout(self._build(payload), timeout_ms, "Build process")
        return await self._build(payload)

    async def _build(self, payload: DeploymentRequestPayload) -> BuildResult:
        build = BuildResult(project_path=payload.project_path)
        self.current_build = build
        started = time.perf_counter()
        try:
            await asyncio.sleep(random.uniform(self.config.min_build_ms, self.config.max_build_ms) / 1000)
            if random.random() < self.config.failure_rate:
                raise AgentError(
                    AgentErrorType.OPERATION,
                    "Build failed",
                    {"project_path": payload.project_path},
                )
        except (AgentError, asyncio.CancelledError) as exc:
            build.status = "failed"
            build.errors.append(str(exc) or "Build cancelled")
            raise
        finally:
            build.duration_ms = (time.perf_counter() - started) * 1000
            self.history.append(build)
            self.current_build = None

        build_config: Dict[str, Any] = payload.build_config or {}
        out_dir = str(build_config.get("outDir", "dist"))
        build.artifacts = [f"{out_dir}/index.html", f"{out_dir}/assets"]
        build.status = "success"
        logger.info("Agent '{}' built {} in {:.0f}ms", self.name, payload.project_path, build.duration_ms)
        return build
