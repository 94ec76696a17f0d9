from __future__ import annotations

from collections.abc import Iterable

from agentdesk.core.config.schema import HandlerDescriptor
from agentdesk.core.runtime.errors import AgentNotFoundError


class CapabilityRegistry:
    """Read-only view over the configured handlers."""

    def __init__(self, descriptors: Iterable[HandlerDescriptor]) -> None:
        self._descriptors: dict[str, HandlerDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._descriptors:
                raise ValueError(f"duplicate agent id: {descriptor.id}")
            self._descriptors[descriptor.id] = descriptor

    def list(self) -> list[HandlerDescriptor]:
        return list(self._descriptors.values())

    def ids(self) -> list[str]:
        return list(self._descriptors.keys())

    def find(self, agent_id: str) -> HandlerDescriptor | None:
        return self._descriptors.get(agent_id)

    def require(self, agent_id: str) -> HandlerDescriptor:
        descriptor = self.find(agent_id)
        if descriptor is None:
            raise AgentNotFoundError(agent_id)
        return descriptor

    def capability_listing(self) -> str:
        return "\n\n".join(
            f"- {d.name} ({d.id}): {d.description}\n  Capabilities: {', '.join(d.capabilities)}" for d in self.list()
        )
