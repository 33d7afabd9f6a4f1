"""Agent that routes messages to registered agents through circuit breakers."""
from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from loguru import logger

from agentrouter.agents.base import BaseAgent
from agentrouter.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.health import HealthMetrics
from agentrouter.core.models import (
    AgentState,
    DeliveryOutcome,
    DeliveryStatus,
    HealthCheckResult,
    Message,
    OrchestratorConfig,
    QueueStats,
    validate_message,
)
from agentrouter.core.priority_queue import PriorityMessageQueue
from agentrouter.core.resilience import with_retry, with_timeout


@dataclass(slots=True)
class AgentStateInfo:
    """What the orchestrator knows about one registered agent."""

    state: AgentState
    last_active_time: float
    error_count: int
    circuit_breaker: CircuitBreaker
    health_metrics: HealthMetrics
    message_types: FrozenSet[str] = frozenset()


class OrchestratorAgent(BaseAgent):
    """Central router draining a shared priority queue.

    Accepted messages wait in a three-tier queue. A single drain task pulls
    them one at a time and hands each to its target agent through that agent's
    circuit breaker, with bounded retries and an overall routing timeout.
    Failures found while draining are logged and counted, never raised to the
    caller that enqueued the message.
    """

    config: OrchestratorConfig

    def __init__(
        self,
        config: OrchestratorConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(config)
        self._clock = clock
        self._agents: Dict[str, BaseAgent] = {}
        self._agent_states: Dict[str, AgentStateInfo] = {}
        self._queue = PriorityMessageQueue(clock=clock)
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._deliveries: Counter[DeliveryStatus] = Counter()
        self.last_outcome: Optional[DeliveryOutcome] = None

    def register_agent(self, agent: BaseAgent, message_types: Iterable[str] = ()) -> None:
        name = agent.name
        if name in self._agents:
            raise AgentError(AgentErrorType.VALIDATION, f"Agent with name {name} is already registered")

        breaker_config = CircuitBreakerConfig(
            failure_threshold=max(1, self.config.max_retries),
            reset_timeout_ms=self.config.timeout_ms,
            half_open_timeout_ms=self.config.timeout_ms / 2,
        )
        self._agents[name] = agent
        self._agent_states[name] = AgentStateInfo(
            state=AgentState.IDLE,
            last_active_time=time.time(),
            error_count=0,
            circuit_breaker=CircuitBreaker(breaker_config, name=name, clock=self._clock),
            health_metrics=HealthMetrics(),
            message_types=frozenset(message_types),
        )
        logger.info("Registered agent '{}' for {}", name, sorted(message_types) or "any message type")

    def unregister_agent(self, name: str) -> None:
        if name not in self._agents:
            raise AgentError(AgentErrorType.VALIDATION, f"Agent {name} is not registered")
        del self._agents[name]
        del self._agent_states[name]
        logger.info("Unregistered agent '{}'", name)

    def get_agent(self, name: str) -> Optional[BaseAgent]:
        return self._agents.get(name)

    @property
    def registered_agents(self) -> List[str]:
        return list(self._agents)

    def agents_for_type(self, message_type: str) -> List[str]:
        return [
            name
            for name, info in self._agent_states.items()
            if not info.message_types or message_type in info.message_types
        ]

    def get_state_info(self, name: str) -> AgentStateInfo:
        info = self._agent_states.get(name)
        if info is None:
            raise AgentError(AgentErrorType.VALIDATION, f"Agent {name} is not registered")
        return info

    def get_agent_state(self, name: str) -> AgentState:
        return self.get_state_info(name).state

    def is_agent_healthy(self, name: str) -> bool:
        """An agent is healthy when its circuit breaker would let a call through.

        Agent state and last activity are reported by ``get_agent_health`` but
        do not gate routing: the breaker alone decides, so an agent that failed
        is retried once its cooldown has elapsed.
        """
        info = self._agent_states.get(name)
        if info is None:
            return False
        return info.circuit_breaker.allows_request()

    def get_agent_health(self, name: str) -> HealthCheckResult:
        info = self.get_state_info(name)
        return HealthCheckResult(
            healthy=self.is_agent_healthy(name),
            status=info.state,
            circuit_state=info.circuit_breaker.state,
            last_check=time.time(),
            metrics=info.health_metrics.get_metrics(),
        )

    async def process_message(self, message: Union[Message, Mapping[str, Any]]) -> QueueStats:
        """Accept a message for asynchronous routing.

        Returns once the message is queued; delivery happens on the drain task.
        """
        validated = validate_message(message)
        try:
            stats = await self.handle_message(validated)
        except AgentError:
            self._set_state(AgentState.ERROR)
            raise
        self._set_state(AgentState.IDLE)
        return stats

    async def handle_message(self, message: Message) -> QueueStats:
        if self._queue.size >= self.config.max_queue_size:
            raise AgentError(
                AgentErrorType.OPERATION,
                "Message queue is full",
                {"current_size": self._queue.size},
            )
        self._queue.enqueue(message)
        self._ensure_draining()
        return self.get_queue_stats()

    async def enqueue_message(self, message: Union[Message, Mapping[str, Any]]) -> None:
        await self.process_message(message)

    def _ensure_draining(self) -> None:
        if self._queue.is_processing:
            return
        self._queue.is_processing = True
        self._drain_task = asyncio.create_task(self._drain(), name=f"{self.name}-drain")

    async def _drain(self) -> None:
        try:
            while self._queue.size:
                await self.drain_step()
        finally:
            self._queue.is_processing = False

    async def drain_step(self) -> Optional[DeliveryOutcome]:
        """Dequeue one message and deliver, requeue or drop it."""
        message = self._queue.dequeue()
        if message is None:
            return None

        target = message.target_agent
        agent = self._agents.get(target)
        info = self._agent_states.get(target)
        if agent is None or info is None:
            return self._record(DeliveryStatus.DROPPED, message, f"Target agent {target} not found")

        if info.message_types and message.type not in info.message_types:
            return self._record(
                DeliveryStatus.DROPPED,
                message,
                f"Agent {target} does not handle message type {message.type}",
            )

        if not self.is_agent_healthy(target):
            if info.error_count < self.config.max_retries:
                # Each requeue is a strike against the target so a message
                # cannot bounce forever.
                info.error_count += 1
                self._queue.enqueue(message)
                outcome = self._record(DeliveryStatus.REQUEUED, message, f"Agent {target} is unhealthy")
                await asyncio.sleep(0)
                return outcome
            return self._record(DeliveryStatus.DROPPED, message, f"Agent {target} is unhealthy")

        try:
            await with_timeout(
                with_retry(
                    lambda: self._route_message(message, agent, info),
                    self.config.max_retries,
                    self.config.retry_delay_ms,
                    f"routing to {target}",
                ),
                self.config.effective_routing_timeout_ms,
                "message routing",
            )
        except Exception as exc:  # noqa: BLE001
            return self._record(DeliveryStatus.DROPPED, message, str(exc))
        return self._record(DeliveryStatus.DELIVERED, message)

    async def _route_message(self, message: Message, agent: BaseAgent, info: AgentStateInfo) -> Any:
        started = time.perf_counter()

        async def invoke() -> Any:
            info.state = AgentState.WORKING
            info.last_active_time = time.time()
            return await agent.process_message(message)

        try:
            result = await info.circuit_breaker.execute(invoke, f"processing message for agent {agent.name}")
        except asyncio.CancelledError:
            self._mark_failed(info, started)
            raise
        except Exception as exc:
            self._mark_failed(info, started)
            raise AgentError(
                AgentErrorType.OPERATION,
                f"Message processing failed for agent {agent.name}",
                {"target_agent": agent.name, "message_id": message.id},
            ) from exc

        info.state = AgentState.IDLE
        info.error_count = 0
        info.last_active_time = time.time()
        info.health_metrics.record_success((time.perf_counter() - started) * 1000)
        return result

    @staticmethod
    def _mark_failed(info: AgentStateInfo, started: float) -> None:
        info.state = AgentState.ERROR
        info.error_count += 1
        info.last_active_time = time.time()
        info.health_metrics.record_error((time.perf_counter() - started) * 1000)

    def _record(self, status: DeliveryStatus, message: Message, reason: Optional[str] = None) -> DeliveryOutcome:
        outcome = DeliveryOutcome(
            status=status,
            message_id=message.id,
            target_agent=message.target_agent,
            reason=reason,
        )
        self._deliveries[status] += 1
        self.last_outcome = outcome
        if status is DeliveryStatus.DELIVERED:
            logger.debug("Delivered message {} to '{}'", message.id, message.target_agent)
        elif status is DeliveryStatus.REQUEUED:
            logger.warning("Requeued message {}: {}", message.id, reason)
        else:
            logger.error("Dropped message {}: {}", message.id, reason)
        return outcome

    def get_queue_stats(self) -> QueueStats:
        return self._queue.get_stats()

    def get_delivery_stats(self) -> Dict[str, int]:
        return {status.name: self._deliveries[status] for status in DeliveryStatus}

    async def wait_for_drain(self) -> None:
        """Block until the drain task has emptied the queue."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.wait({self._drain_task})

    async def shutdown(self) -> None:
        task, self._drain_task = self._drain_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        self._queue.clear()
        self._queue.is_processing = False
