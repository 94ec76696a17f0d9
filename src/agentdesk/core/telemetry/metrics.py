from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any

from agentdesk.core.runtime.locks import KeyedLockManager

EVENT_TYPES = ("request", "response", "error", "delegation")


@dataclass(slots=True)
class UsageEvent:
    agent_id: str
    event_type: str
    timestamp: float
    duration_ms: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class AgentAnalytics:
    agent_id: str
    total_requests: int = 0
    total_responses: int = 0
    total_errors: int = 0
    total_delegations: int = 0
    average_response_ms: float = 0.0
    last_used: float | None = None
    events: list[UsageEvent] = field(default_factory=list)

    def snapshot(self) -> dict[str, Any]:
        return asdict(self)


class UsageMetrics:
    """Write-mostly event sink with per-agent aggregates."""

    def __init__(self, *, max_events_per_agent: int = 100, locks: KeyedLockManager | None = None) -> None:
        self.max_events_per_agent = max(1, max_events_per_agent)
        self._locks = locks or KeyedLockManager()
        self._store: dict[str, AgentAnalytics] = {}

    async def track(
        self,
        agent_id: str,
        event_type: str,
        *,
        duration_ms: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UsageEvent:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"unsupported event type: {event_type}")
        event = UsageEvent(
            agent_id=agent_id,
            event_type=event_type,
            timestamp=time.time(),
            duration_ms=duration_ms,
            metadata=dict(metadata or {}),
        )
        lock = await self._locks.get_lock(f"metrics:{agent_id}")
        async with lock:
            stats = self._store.setdefault(agent_id, AgentAnalytics(agent_id=agent_id))
            stats.events.append(event)
            stats.last_used = event.timestamp
            if event_type == "request":
                stats.total_requests += 1
            elif event_type == "response":
                stats.total_responses += 1
                if duration_ms:
                    total = stats.average_response_ms * (stats.total_responses - 1)
                    stats.average_response_ms = (total + duration_ms) / stats.total_responses
            elif event_type == "error":
                stats.total_errors += 1
            else:
                stats.total_delegations += 1
            if len(stats.events) > self.max_events_per_agent:
                del stats.events[: len(stats.events) - self.max_events_per_agent]
        return event

    def for_agent(self, agent_id: str) -> dict[str, Any] | None:
        stats = self._store.get(agent_id)
        return stats.snapshot() if stats else None

    def all_agents(self) -> list[dict[str, Any]]:
        return [s.snapshot() for s in list(self._store.values())]

    def most_active(self, limit: int = 5) -> list[dict[str, Any]]:
        ranked = sorted(self._store.values(), key=lambda s: s.total_requests, reverse=True)
        return [s.snapshot() for s in ranked[:limit]]

    def average_response_ms(self) -> float:
        agents = list(self._store.values())
        if not agents:
            return 0.0
        return sum(s.average_response_ms for s in agents) / len(agents)

    def reset(self, agent_id: str | None = None) -> None:
        if agent_id is None:
            self._store.clear()
        elif agent_id in self._store:
            self._store[agent_id] = AgentAnalytics(agent_id=agent_id)
