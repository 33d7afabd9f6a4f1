"""Error taxonomy shared by agents, queues and the orchestrator."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class AgentErrorType(Enum):
    """Kinds of failure an agent operation can report."""

    VALIDATION = "validation"
    TIMEOUT = "timeout"
    QUEUE_FULL = "queue_full"
    OPERATION = "operation"


class AgentError(Exception):
    """Failure raised by any agent-facing operation.

    ``kind`` drives how callers react: validation errors fail fast before any
    queueing, timeout and operation errors are retried by the orchestrator and
    capacity errors are reported back to whoever tried to add work.
    """

    def __init__(
        self,
        kind: AgentErrorType,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.details = details or {}

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logs and HTTP responses."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
            "cause": str(self.__cause__) if self.__cause__ else None,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} kind={self.kind.value} message={self.message!r}>"


class CircuitOpenError(AgentError):
    """Rejection issued by an OPEN circuit without invoking the operation."""

    def __init__(self, remaining_timeout_ms: float) -> None:
        super().__init__(
            AgentErrorType.OPERATION,
            "Circuit breaker is OPEN",
            {"remaining_timeout_ms": remaining_timeout_ms},
        )
        self.remaining_timeout_ms = remaining_timeout_ms


def is_circuit_open(exc: BaseException) -> bool:
    """Return True when ``exc`` or anything in its cause chain is a circuit rejection."""
    current: Optional[BaseException] = exc
    while current is not None:
        if isinstance(current, CircuitOpenError):
            return True
        current = current.__cause__
    return False
