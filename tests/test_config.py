"""Tests for environment-driven settings."""
from __future__ import annotations

import logging
import sys

from loguru import logger

from agentrouter.config import Settings
from agentrouter.logging_config import configure_logging


def test_defaults_without_environment(monkeypatch) -> None:
    for name in ("AGENTROUTER_MAX_AGENTS", "AGENTROUTER_ORCHESTRATOR_ROUTING_TIMEOUT_MS", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.max_agents == 10
    assert settings.orchestrator_routing_timeout_ms is None
    assert settings.environment == "development"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("AGENTROUTER_MAX_AGENTS", "4")
    monkeypatch.setenv("AGENTROUTER_HEALTH_CHECK_INTERVAL_MS", "250")
    monkeypatch.setenv("AGENTROUTER_ORCHESTRATOR_MAX_RETRIES", "5")
    monkeypatch.setenv("AGENTROUTER_ORCHESTRATOR_ROUTING_TIMEOUT_MS", "1500")
    monkeypatch.setenv("AGENTROUTER_LOG_LEVEL", "debug")

    settings = Settings.from_env()
    registry_config = settings.registry_config()
    orchestrator_config = settings.orchestrator_config()

    assert (registry_config.max_agents, registry_config.health_check_interval_ms) == (4, 250.0)
    assert orchestrator_config.max_retries == 5
    assert orchestrator_config.effective_routing_timeout_ms == 1500.0
    assert settings.log_level == "debug"


def test_configure_logging_routes_stdlib_records_to_loguru() -> None:
    records: list = []
    configure_logging("debug", sink=records.append)
    try:
        logger.debug("from loguru")
        logging.getLogger("uvicorn.error").warning("from stdlib")
    finally:
        logger.remove()
        logger.add(sys.stderr)

    assert any("from loguru" in record for record in records)
    assert any("from stdlib" in record for record in records)
