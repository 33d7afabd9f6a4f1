"""Core data models shared across orchestrator components."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import AgentError, AgentErrorType

VERSION_CHECK = "VERSION_CHECK"
LINT_REQUEST = "LINT_REQUEST"
DEPLOYMENT_REQUEST = "DEPLOYMENT_REQUEST"


class AgentState(Enum):
    """Lifecycle states shared by every agent, the orchestrator included."""

    IDLE = auto()
    WORKING = auto()
    ERROR = auto()


class CircuitState(Enum):
    CLOSED = auto()
    OPEN = auto()
    HALF_OPEN = auto()


class DeliveryStatus(Enum):
    """What the drain loop did with a single dequeued message."""

    DELIVERED = auto()
    REQUEUED = auto()
    DROPPED = auto()


def _require_positive(config: Any, *names: str) -> None:
    for name in names:
        value = getattr(config, name)
        if value is None or value <= 0:
            raise AgentError(
                AgentErrorType.VALIDATION,
                f"Invalid agent configuration: {name} must be positive",
                {"field": name, "value": value},
            )


@dataclass(slots=True)
class AgentConfig:
    """Configuration every agent is constructed with."""

    name: str
    max_retries: int = 3
    max_queue_size: int = 1000
    max_concurrent_tasks: int = 1
    timeout_ms: float = 30000

    def __post_init__(self) -> None:
        if not self.name:
            raise AgentError(AgentErrorType.VALIDATION, "Invalid agent configuration: name is required")
        if self.max_retries < 0:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Invalid agent configuration: max_retries must not be negative",
                {"field": "max_retries", "value": self.max_retries},
            )
        _require_positive(self, "max_queue_size", "max_concurrent_tasks", "timeout_ms")


@dataclass(slots=True)
class OrchestratorConfig(AgentConfig):
    """Agent configuration extended with routing knobs."""

    max_concurrent_messages: int = 1
    routing_timeout_ms: Optional[float] = None
    retry_delay_ms: float = 1000

    def __post_init__(self) -> None:
        AgentConfig.__post_init__(self)
        _require_positive(self, "max_concurrent_messages")
        if self.retry_delay_ms < 0:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Invalid agent configuration: retry_delay_ms must not be negative",
                {"field": "retry_delay_ms", "value": self.retry_delay_ms},
            )
        if self.routing_timeout_ms is not None:
            _require_positive(self, "routing_timeout_ms")

    @property
    def effective_routing_timeout_ms(self) -> float:
        return self.routing_timeout_ms if self.routing_timeout_ms is not None else self.timeout_ms


@dataclass(slots=True)
class RegistryConfig:
    max_agents: int = 10
    health_check_interval_ms: float = 1000

    def __post_init__(self) -> None:
        _require_positive(self, "max_agents", "health_check_interval_ms")


class _WireModel(BaseModel):
    """Accepts both the camelCase wire names and the Python field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VersionCheckPayload(_WireModel):
    vite_version: str
    react_version: Optional[str] = None
    next_version: Optional[str] = None


class LintRequestPayload(_WireModel):
    code: str
    file_path: str
    fix: bool = False


class DeploymentRequestPayload(_WireModel):
    project_path: str
    build_config: Optional[Dict[str, Any]] = None
    timeout: Optional[float] = Field(default=None, gt=0)


PAYLOAD_MODELS: Dict[str, Type[BaseModel]] = {
    VERSION_CHECK: VersionCheckPayload,
    LINT_REQUEST: LintRequestPayload,
    DEPLOYMENT_REQUEST: DeploymentRequestPayload,
}


class Message(_WireModel):
    """Work request routed by the orchestrator.

    Known message types get their payload validated into the matching payload
    model; any other type carries its payload through untouched.
    """

    id: str
    type: str
    target_agent: str
    payload: Any
    priority: Optional[Union[StrictInt, StrictFloat]] = None
    timestamp: Optional[Union[StrictInt, StrictFloat]] = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "Message":
        payload_model = PAYLOAD_MODELS.get(self.type)
        if payload_model is not None and not isinstance(self.payload, payload_model):
            try:
                self.payload = payload_model.model_validate(self.payload)
            except ValidationError as exc:
                raise ValueError(f"invalid payload for {self.type}: {exc}") from exc
        return self

    @property
    def effective_priority(self) -> float:
        return self.priority or 0

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def validate_message(raw: Union[Message, Mapping[str, Any]]) -> Message:
    """Check ``raw`` against the common message schema.

    Raises ``AgentError`` of kind VALIDATION on any schema violation.
    """
    if isinstance(raw, Message):
        return raw
    if not isinstance(raw, Mapping):
        raise AgentError(
            AgentErrorType.VALIDATION,
            "Invalid message format: expected a mapping",
            {"received": type(raw).__name__},
        )
    try:
        return Message.model_validate(dict(raw))
    except ValidationError as exc:
        raise AgentError(
            AgentErrorType.VALIDATION,
            f"Invalid message format: {exc.error_count()} validation error(s)",
            {"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


@dataclass(slots=True)
class QueueItem:
    message: Message
    enqueued_at: float


@dataclass(slots=True)
class HealthMetricsData:
    message_count: int
    error_count: int
    success_rate: float
    avg_processing_time: float
    last_processing_time: float
    last_error_time: float
    last_success_time: float


@dataclass(slots=True)
class CircuitMetrics:
    state: CircuitState
    failures: int
    last_failure_time: float
    last_state_change: float


@dataclass(slots=True)
class HealthCheckResult:
    """Detailed health of one agent as seen by the orchestrator."""

    healthy: bool
    status: AgentState
    circuit_state: CircuitState
    last_check: float
    metrics: HealthMetricsData


@dataclass(slots=True)
class QueueStats:
    total: int
    high: int
    normal: int
    low: int
    is_processing: bool = False


@dataclass(slots=True)
class AgentHealthSnapshot:
    """Coarse, periodically refreshed view kept by the registry."""

    name: str
    state: AgentState
    last_active: float


@dataclass(slots=True)
class DeliveryOutcome:
    status: DeliveryStatus
    message_id: str
    target_agent: str
    reason: Optional[str] = None
