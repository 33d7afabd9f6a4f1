"""Shared test helpers."""
from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from agentrouter.agents.base import BaseAgent
from agentrouter.core.models import AgentConfig, Message


class FakeClock:
    """Monotonic clock advanced by hand, in seconds like ``time.monotonic``."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


class StubAgent(BaseAgent):
    """Worker failing its first ``failures`` calls, optionally slow."""

    def __init__(
        self,
        name: str = "worker",
        *,
        failures: int = 0,
        delay: float = 0.0,
        config: Optional[AgentConfig] = None,
    ) -> None:
        super().__init__(config or AgentConfig(name=name))
        self.failures = failures
        self.delay = delay
        self.calls = 0
        self.cancelled = False
        self.handled: list = []

    async def handle_message(self, message: Message) -> Any:
        self.calls += 1
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        self.handled.append(message.id)
        return message.id


def make_message(
    message_id: str,
    *,
    target: str = "worker",
    priority: Optional[float] = None,
    message_type: str = "PING",
    payload: Any = None,
) -> Message:
    return Message(
        id=message_id,
        type=message_type,
        target_agent=target,
        payload=payload if payload is not None else {},
        priority=priority,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
