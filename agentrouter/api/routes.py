"""HTTP API exposing registry and orchestrator capabilities."""
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel

from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.models import AgentHealthSnapshot, HealthCheckResult, QueueStats
from agentrouter.orchestration.registry import AgentRegistry
from agentrouter.runtime import get_registry

agents_router = APIRouter(prefix="/agents", tags=["agents"])
messages_router = APIRouter(tags=["messages"])


class AgentSummaryResponse(BaseModel):
    name: str
    state: str
    last_active: float

    @classmethod
    def from_snapshot(cls, snapshot: AgentHealthSnapshot) -> "AgentSummaryResponse":
        return cls(name=snapshot.name, state=snapshot.state.name, last_active=snapshot.last_active)


class HealthMetricsResponse(BaseModel):
    message_count: int
    error_count: int
    success_rate: float
    avg_processing_time: float
    last_processing_time: float
    last_error_time: float
    last_success_time: float


class AgentHealthResponse(BaseModel):
    name: str
    healthy: bool
    status: str
    circuit_state: str
    last_check: float
    metrics: HealthMetricsResponse

    @classmethod
    def from_result(cls, name: str, result: HealthCheckResult) -> "AgentHealthResponse":
        metrics = result.metrics
        return cls(
            name=name,
            healthy=result.healthy,
            status=result.status.name,
            circuit_state=result.circuit_state.name,
            last_check=result.last_check,
            metrics=HealthMetricsResponse(
                message_count=metrics.message_count,
                error_count=metrics.error_count,
                success_rate=metrics.success_rate,
                avg_processing_time=metrics.avg_processing_time,
                last_processing_time=metrics.last_processing_time,
                last_error_time=metrics.last_error_time,
                last_success_time=metrics.last_success_time,
            ),
        )


class QueueStatsResponse(BaseModel):
    total: int
    high: int
    normal: int
    low: int
    is_processing: bool

    @classmethod
    def from_stats(cls, stats: QueueStats) -> "QueueStatsResponse":
        return cls(
            total=stats.total,
            high=stats.high,
            normal=stats.normal,
            low=stats.low,
            is_processing=stats.is_processing,
        )


def _unknown_agent(name: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown agent '{name}'")


@agents_router.get("", response_model=List[AgentSummaryResponse])
async def list_agents(registry: AgentRegistry = Depends(get_registry)) -> List[AgentSummaryResponse]:
    return [AgentSummaryResponse.from_snapshot(snapshot) for snapshot in registry.get_agent_health()]


@agents_router.get("/{name}/health", response_model=AgentHealthResponse)
async def agent_health(name: str, registry: AgentRegistry = Depends(get_registry)) -> AgentHealthResponse:
    try:
        result = registry.get_orchestrator().get_agent_health(name)
    except AgentError as exc:
        raise _unknown_agent(name) from exc
    return AgentHealthResponse.from_result(name, result)


@agents_router.post("/{name}/emergency-stop", status_code=status.HTTP_204_NO_CONTENT)
async def emergency_stop(name: str, registry: AgentRegistry = Depends(get_registry)) -> None:
    agent = registry.get_agent(name)
    if agent is None:
        raise _unknown_agent(name)
    agent.emergency_stop()


@messages_router.post("/messages", response_model=QueueStatsResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_message(
    message: Dict[str, Any] = Body(...),
    registry: AgentRegistry = Depends(get_registry),
) -> QueueStatsResponse:
    try:
        stats = await registry.get_orchestrator().process_message(message)
    except AgentError as exc:
        if exc.kind is AgentErrorType.VALIDATION:
            code = status.HTTP_422_UNPROCESSABLE_ENTITY
        else:
            code = status.HTTP_503_SERVICE_UNAVAILABLE
        raise HTTPException(status_code=code, detail=exc.to_dict()) from exc
    return QueueStatsResponse.from_stats(stats)


@messages_router.get("/queue", response_model=QueueStatsResponse)
async def queue_stats(registry: AgentRegistry = Depends(get_registry)) -> QueueStatsResponse:
    return QueueStatsResponse.from_stats(registry.get_orchestrator().get_queue_stats())


@messages_router.get("/queue/deliveries")
async def delivery_stats(registry: AgentRegistry = Depends(get_registry)) -> Dict[str, int]:
    return registry.get_orchestrator().get_delivery_stats()
