"""Worker checking framework versions against a supported-version matrix."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import nodesemver
from loguru import logger

from agentrouter.agents.base import BaseAgent
from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.models import AgentConfig, Message, VersionCheckPayload

DEFAULT_VERSION_MATRIX: Dict[str, List[str]] = {
    "vite": ["5.x"],
    "react": ["18.x"],
    "next": ["14.x"],
}


def version_satisfies(version: str, version_range: str) -> bool:
    """Whether ``version`` falls within the npm-style ``version_range``.

    The version is cleaned loosely first, so ``v18.2.0`` and ``=18.2.0`` are
    accepted. Anything that is still not a version never matches.
    """
    cleaned = nodesemver.clean(version, loose=True) if version else None
    if cleaned is None:
        return False
    return nodesemver.satisfies(cleaned, version_range, loose=True)


@dataclass(slots=True)
class CompatibilityConfig(AgentConfig):
    supported_versions: Optional[Dict[str, List[str]]] = None


class CompatibilityAgent(BaseAgent):
    """Handle VERSION_CHECK messages."""

    config: CompatibilityConfig

    def __init__(self, config: Optional[CompatibilityConfig] = None) -> None:
        super().__init__(config or CompatibilityConfig(name="compatibility"))
        matrix = self.config.supported_versions or DEFAULT_VERSION_MATRIX
        self._matrix: Dict[str, List[str]] = {tool: list(patterns) for tool, patterns in matrix.items()}

    @property
    def version_matrix(self) -> Dict[str, List[str]]:
        return {tool: list(patterns) for tool, patterns in self._matrix.items()}

    def update_version_matrix(self, updates: Mapping[str, List[str]]) -> None:
        for tool, patterns in updates.items():
            self._matrix[tool] = list(patterns)
        logger.info("Agent '{}' updated version matrix for {}", self.name, sorted(updates))

    async def handle_message(self, message: Message) -> Dict[str, Any]:
        payload = message.payload
        if not isinstance(payload, VersionCheckPayload):
            raise AgentError(
                AgentErrorType.VALIDATION,
                f"Unsupported message type: {message.type}",
                {"message_id": message.id},
            )

        requested = {
            "vite": payload.vite_version,
            "react": payload.react_version,
            "next": payload.next_version,
        }
        checked: Dict[str, str] = {}
        incompatibilities: List[Dict[str, Any]] = []
        for tool, version in requested.items():
            if version is None:
                continue
            checked[tool] = version
            supported = self._matrix.get(tool, [])
            if not any(version_satisfies(version, pattern) for pattern in supported):
                incompatibilities.append({"tool": tool, "version": version, "supported": list(supported)})

        if incompatibilities:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Incompatible versions detected",
                {"incompatibilities": incompatibilities},
            )
        return {"compatible": True, "checked": checked}
