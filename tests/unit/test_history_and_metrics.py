from __future__ import annotations

import asyncio

import pytest

from agentdesk.core.memory.history import ConversationHistory
from agentdesk.core.telemetry.metrics import UsageMetrics


@pytest.mark.asyncio
async def test_history_round_trip_preserves_order_and_roles():
    history = ConversationHistory()
    await history.append("mother-agent", "user", "list files")
    await history.append("mother-agent", "agent", "No files found.", agent_id="script-launcher")

    items = await history.recent("mother-agent", 10)
    assert [(i.role, i.content) for i in items] == [("user", "list files"), ("agent", "No files found.")]
    assert items[1].agent_id == "script-launcher"
    assert items[0].timestamp <= items[1].timestamp


@pytest.mark.asyncio
async def test_history_caps_entries_per_key():
    history = ConversationHistory(max_items_per_key=100)
    for i in range(150):
        await history.append("k", "user", f"m{i}")

    items = await history.recent("k", 500)
    assert len(items) == 100
    assert items[0].content == "m50"
    assert items[-1].content == "m149"
    assert [i.content for i in await history.recent("k", 2)] == ["m148", "m149"]
    assert await history.recent("missing", 5) == []


@pytest.mark.asyncio
async def test_history_concurrent_appends_and_snapshot():
    history = ConversationHistory()
    await asyncio.gather(*(history.append("k", "user", f"c{i}") for i in range(40)))
    snapshot = await history.recent("k", 100)
    await history.append("k", "agent", "late")

    assert len(snapshot) == 40
    assert {i.content for i in snapshot} == {f"c{i}" for i in range(40)}
    assert len(await history.recent("k", 100)) == 41


@pytest.mark.asyncio
async def test_history_formatting_and_clear():
    history = ConversationHistory()
    assert await history.format_history("k") == "No previous conversation history."
    await history.append("k", "user", "hi")
    await history.append("k", "agent", "hello")
    assert await history.format_history("k") == "User: hi\n\nAgent: hello"
    assert history.summary()[0]["message_count"] == 2

    await history.clear("k")
    assert await history.recent("k") == []
    with pytest.raises(ValueError):
        await history.append("k", "system", "nope")


@pytest.mark.asyncio
async def test_metrics_aggregates_per_agent():
    metrics = UsageMetrics(max_events_per_agent=3)
    await metrics.track("data-processor", "request")
    await metrics.track("data-processor", "response", duration_ms=10.0)
    await metrics.track("data-processor", "response", duration_ms=30.0)
    await metrics.track("data-processor", "error", metadata={"error": "boom"})
    await metrics.track("mother-agent", "delegation", duration_ms=5.0)

    stats = metrics.for_agent("data-processor")
    assert stats is not None
    assert stats["total_requests"] == 1
    assert stats["total_responses"] == 2
    assert stats["total_errors"] == 1
    assert stats["average_response_ms"] == pytest.approx(20.0)
    assert len(stats["events"]) == 3
    assert stats["events"][-1]["metadata"] == {"error": "boom"}

    assert metrics.for_agent("mother-agent")["total_delegations"] == 1
    assert metrics.most_active(1)[0]["agent_id"] == "data-processor"
    assert metrics.for_agent("nobody") is None

    with pytest.raises(ValueError):
        await metrics.track("x", "unknown")

    metrics.reset("data-processor")
    assert metrics.for_agent("data-processor")["total_requests"] == 0
    metrics.reset()
    assert metrics.all_agents() == []
