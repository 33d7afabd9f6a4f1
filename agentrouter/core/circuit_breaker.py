"""Three-state circuit breaker guarding calls into one agent."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from .errors import AgentError, AgentErrorType, CircuitOpenError
from .models import CircuitMetrics, CircuitState

T = TypeVar("T")


@dataclass(frozen=True)
class CircuitBreakerConfig:
    failure_threshold: int = 3
    reset_timeout_ms: float = 30000
    half_open_timeout_ms: float = 15000


class CircuitBreaker:
    """Isolate a chronically failing agent, then probe it again after a cooldown.

    CLOSED lets calls through and counts consecutive failures; reaching
    ``failure_threshold`` opens the circuit. OPEN rejects calls without running
    them until ``reset_timeout_ms`` has passed, after which the next call moves
    the circuit to HALF_OPEN and runs. In HALF_OPEN a success closes the
    circuit, a failure counts again and may re-open it, and once
    ``half_open_timeout_ms`` has passed the circuit closes before the next call
    regardless of outcome.
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        name: str = "circuit",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CircuitBreakerConfig()
        self.name = name
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_time = 0.0
        self._last_state_change = clock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    def _elapsed_ms(self) -> float:
        return (self._clock() - self._last_state_change) * 1000

    def remaining_cooldown_ms(self) -> float:
        if self._state is not CircuitState.OPEN:
            return 0.0
        return max(0.0, self.config.reset_timeout_ms - self._elapsed_ms())

    def allows_request(self) -> bool:
        """Whether a call made now would be attempted. Does not change state."""
        if self._state is CircuitState.OPEN:
            return self._elapsed_ms() >= self.config.reset_timeout_ms
        return True

    async def execute(self, operation: Callable[[], Awaitable[T]], context: str) -> T:
        self._check_state()
        try:
            result = await operation()
        except Exception as exc:
            self._on_failure()
            raise AgentError(
                AgentErrorType.OPERATION,
                f"Circuit breaker: {context} failed",
                {"context": context, "circuit_state": self._state.name},
            ) from exc
        self._on_success()
        return result

    def _check_state(self) -> None:
        if self._state is CircuitState.OPEN:
            elapsed = self._elapsed_ms()
            if elapsed < self.config.reset_timeout_ms:
                raise CircuitOpenError(self.config.reset_timeout_ms - elapsed)
            self._transition_to(CircuitState.HALF_OPEN)
        elif self._state is CircuitState.HALF_OPEN:
            if self._elapsed_ms() >= self.config.half_open_timeout_ms:
                self._transition_to(CircuitState.CLOSED)

    def _on_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.CLOSED)
        self._failures = 0

    def _on_failure(self) -> None:
        self._failures += 1
        self._last_failure_time = self._clock()
        if self._failures >= self.config.failure_threshold and self._state is not CircuitState.OPEN:
            self._transition_to(CircuitState.OPEN)

    def _transition_to(self, state: CircuitState) -> None:
        logger.info("Circuit '{}': {} -> {}", self.name, self._state.name, state.name)
        self._state = state
        self._last_state_change = self._clock()
        if state is CircuitState.CLOSED:
            self._failures = 0

    def get_metrics(self) -> CircuitMetrics:
        return CircuitMetrics(
            state=self._state,
            failures=self._failures,
            last_failure_time=self._last_failure_time,
            last_state_change=self._last_state_change,
        )

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_time = 0.0
        self._last_state_change = self._clock()
