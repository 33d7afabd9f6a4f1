"""Tests for message validation and configuration models."""
from __future__ import annotations

import pytest

from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.models import (
    AgentConfig,
    LintRequestPayload,
    OrchestratorConfig,
    RegistryConfig,
    VersionCheckPayload,
    validate_message,
)


def _wire(**overrides):
    message = {
        "id": "msg-1",
        "type": "VERSION_CHECK",
        "targetAgent": "compatibility",
        "payload": {"viteVersion": "5.0.0", "reactVersion": "18.2.0"},
        "priority": 4,
    }
    message.update(overrides)
    return message


def test_wire_message_is_parsed_with_typed_payload() -> None:
    message = validate_message(_wire())

    assert message.target_agent == "compatibility"
    assert isinstance(message.payload, VersionCheckPayload)
    assert message.payload.react_version == "18.2.0"
    assert message.payload.next_version is None
    assert message.to_wire()["targetAgent"] == "compatibility"


def test_unknown_message_type_keeps_payload_as_is() -> None:
    message = validate_message(_wire(type="CUSTOM", payload=[1, 2, 3]))

    assert message.payload == [1, 2, 3]
    assert message.effective_priority == 4


@pytest.mark.parametrize(
    "overrides",
    [
        {"targetAgent": None},
        {"id": 42},
        {"priority": "5"},
        {"priority": True},
        {"type": "LINT_REQUEST", "payload": {"filePath": "a.ts"}},
    ],
)
def test_invalid_messages_raise_validation(overrides) -> None:
    with pytest.raises(AgentError) as excinfo:
        validate_message(_wire(**overrides))

    assert excinfo.value.kind is AgentErrorType.VALIDATION
    assert excinfo.value.details["errors"]


def test_missing_payload_is_rejected() -> None:
    raw = _wire()
    del raw["payload"]

    with pytest.raises(AgentError) as excinfo:
        validate_message(raw)
    assert excinfo.value.kind is AgentErrorType.VALIDATION


def test_non_mapping_is_rejected() -> None:
    with pytest.raises(AgentError) as excinfo:
        validate_message("not a message")  # type: ignore[arg-type]

    assert excinfo.value.kind is AgentErrorType.VALIDATION
    assert excinfo.value.to_dict()["kind"] == "validation"


def test_python_field_names_are_accepted() -> None:
    message = validate_message(
        {
            "id": "lint-1",
            "type": "LINT_REQUEST",
            "target_agent": "lint",
            "payload": LintRequestPayload(code="x", file_path="a.ts"),
        }
    )

    assert message.payload.fix is False
    assert message.priority is None
    assert message.effective_priority == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": ""},
        {"name": "a", "max_retries": -1},
        {"name": "a", "max_queue_size": 0},
        {"name": "a", "timeout_ms": 0},
        {"name": "a", "max_concurrent_tasks": 0},
    ],
)
def test_invalid_agent_config(kwargs) -> None:
    with pytest.raises(AgentError) as excinfo:
        AgentConfig(**kwargs)
    assert excinfo.value.kind is AgentErrorType.VALIDATION


def test_orchestrator_config_routing_timeout_defaults_to_timeout() -> None:
    config = OrchestratorConfig(name="orchestrator", timeout_ms=5000)
    assert config.effective_routing_timeout_ms == 5000

    config = OrchestratorConfig(name="orchestrator", timeout_ms=5000, routing_timeout_ms=200)
    assert config.effective_routing_timeout_ms == 200

    with pytest.raises(AgentError):
        OrchestratorConfig(name="orchestrator", max_concurrent_messages=0)


def test_registry_config_defaults() -> None:
    config = RegistryConfig()
    assert (config.max_agents, config.health_check_interval_ms) == (10, 1000)

    with pytest.raises(AgentError):
        RegistryConfig(max_agents=0)
