from __future__ import annotations

from agentdesk.core.telemetry.logging import get_logger
from agentdesk.core.telemetry.tracing import TraceContext, recent_traces, trace_event


def test_trace_event_emits_structured_fields(capsys):
    logger = get_logger("test.logger")
    ctx = TraceContext(
        request_id="req1",
        conversation_key="mother-agent",
        agent_id="data-processor",
        phase="dispatch",
    )

    trace_event(logger, ctx, event="hello", status="ok", extra={"k": "v"})
    out = capsys.readouterr().out
    assert '"event": "hello"' in out
    assert '"request_id": "req1"' in out
    assert '"agent_id": "data-processor"' in out
    assert '"status": "ok"' in out

    traces = recent_traces("req1")
    assert traces[-1]["event"] == "hello"
    assert traces[-1]["k"] == "v"
