"""Base agent definition used by the orchestrator and every worker."""
from __future__ import annotations

import abc
import asyncio
import dataclasses
import time
from typing import Any, Mapping, Union

from loguru import logger

from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.message_queue import MessageQueue
from agentrouter.core.models import AgentConfig, AgentState, Message, validate_message
from agentrouter.core.resilience import with_timeout


class BaseAgent(abc.ABC):
    """Abstract agent encapsulating lifecycle state and message handling.

    ``process_message`` is the entry point callers use: it moves the agent to
    WORKING, runs ``handle_message`` against the configured timeout and lands
    on IDLE or ERROR. An agent in ERROR stays there until the next message
    succeeds. Retrying is left to the caller.
    """

    def __init__(self, config: AgentConfig) -> None:
        self.config = config
        self._state = AgentState.IDLE
        self._last_active_time = time.time()
        self._slots = asyncio.Semaphore(config.max_concurrent_tasks)
        self._queue = MessageQueue(self.process_message, config.max_queue_size)
        self.task_count = 0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def last_active_time(self) -> float:
        return self._last_active_time

    @property
    def queue(self) -> Any:
        return self._queue

    def _set_state(self, state: AgentState) -> None:
        self._state = state
        self._last_active_time = time.time()

    async def process_message(self, message: Union[Message, Mapping[str, Any]]) -> Any:
        """Run one message through ``handle_message`` with timeout and state tracking."""
        message = validate_message(message)
        async with self._slots:
            self._set_state(AgentState.WORKING)
            try:
                result = await with_timeout(
                    self.handle_message(message),
                    self.config.timeout_ms,
                    f"Agent '{self.name}' processing message {message.id}",
                )
            except (AgentError, asyncio.CancelledError):
                self._set_state(AgentState.ERROR)
                raise
            except Exception as exc:
                self._set_state(AgentState.ERROR)
                raise AgentError(
                    AgentErrorType.OPERATION,
                    str(exc) or exc.__class__.__name__,
                    {"agent": self.name, "message_id": message.id},
                ) from exc
            self._set_state(AgentState.IDLE)
            self.task_count += 1
            return result

    @abc.abstractmethod
    async def handle_message(self, message: Message) -> Any:
        """Domain logic for a single message."""

    async def enqueue_message(self, message: Union[Message, Mapping[str, Any]]) -> None:
        """Validate ``message`` and add it to this agent's own queue."""
        await self._queue.enqueue(validate_message(message))

    def emergency_stop(self) -> None:
        """Drop every queued message and force the agent back to IDLE."""
        dropped = self._queue.size
        self._queue.clear()
        self._set_state(AgentState.IDLE)
        logger.warning("Agent '{}' emergency stop, discarded {} queued message(s)", self.name, dropped)

    def reset(self) -> None:
        self._queue.clear()
        self._set_state(AgentState.IDLE)

    def get_config(self) -> AgentConfig:
        """Return the base configuration, without subclass extensions."""
        return AgentConfig(
            **{field.name: getattr(self.config, field.name) for field in dataclasses.fields(AgentConfig)}
        )
