"""Delegation decisions and parsing of the backend's delegation reply.

The reply is read in three tiers: a JSON object (possibly wrapped in prose),
then field-by-field pattern extraction, then a static default that keeps the
request with the coordinator.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from agentdesk.core.runtime.errors import MalformedUpstreamReply

DEFAULT_REASON = "Handling directly as coordination agent"
API_ERROR_REASON = "Failed to determine appropriate agent due to API error"
DIRECT_REASON = "The coordinator will handle this request directly"

COMMAND_AGENT_MAP: dict[str, str] = {
    "create": "script-launcher",
    "analyze": "data-processor",
    "search": "text-generator",
    "schedule": "decision-maker",
    "list": "",
}

_COORDINATOR_ALIASES = {"", "null", "none", "mother-agent", "mother agent", "coordinator"}

_AGENT_FIELD = re.compile(r'"agent"\s*:\s*(?:"([^"]*)"|(null))', re.IGNORECASE)
_REASON_FIELD = re.compile(r'"reason"\s*:\s*"((?:[^"\\]|\\.)*)"')
_CONTEXT_FIELD = re.compile(r'"contextInfo"\s*:\s*(\{[^{}]*\})')


@dataclass(slots=True)
class DelegationDecision:
    target_handler_id: str
    reason: str
    extracted_context: dict[str, Any] = field(default_factory=dict)
    source: str = "direct"

    @property
    def handled_by_coordinator(self) -> bool:
        return not self.target_handler_id


def direct_mapping(command_type: str) -> str | None:
    """Handler id for a command type; "" means the coordinator, None means unmapped."""
    return COMMAND_AGENT_MAP.get(command_type)


def normalize_agent_id(agent: Any, coordinator_id: str) -> str:
    if agent is None:
        return ""
    value = str(agent).strip()
    if value.lower() in _COORDINATOR_ALIASES or value == coordinator_id:
        return ""
    return value


def _first_json_object(text: str) -> dict[str, Any]:
    start = text.find("{")
    if start < 0:
        raise MalformedUpstreamReply("no JSON object in delegation reply")
    try:
        value, _ = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as exc:
        raise MalformedUpstreamReply(f"delegation reply is not valid JSON: {exc}") from exc
    if not isinstance(value, dict) or "agent" not in value:
        raise MalformedUpstreamReply("delegation reply has no agent field")
    return value


def _from_fields(text: str) -> tuple[str | None, str | None, dict[str, Any]]:
    agent_match = _AGENT_FIELD.search(text)
    reason_match = _REASON_FIELD.search(text)
    context: dict[str, Any] = {}
    context_match = _CONTEXT_FIELD.search(text)
    if context_match:
        try:
            parsed = json.loads(context_match.group(1))
        except json.JSONDecodeError:
            parsed = {}
        if isinstance(parsed, dict):
            context = parsed
    agent = None
    if agent_match:
        agent = agent_match.group(1) if agent_match.group(1) is not None else "null"
    reason = reason_match.group(1) if reason_match else None
    return agent, reason, context


def parse_delegation_reply(text: str, coordinator_id: str) -> DelegationDecision:
    content = (text or "").strip()
    try:
        data = _first_json_object(content)
    except MalformedUpstreamReply:
        data = None

    if data is not None:
        context = data.get("contextInfo")
        reason = data.get("reason")
        target = normalize_agent_id(data.get("agent"), coordinator_id)
        if not reason:
            reason = f"Delegated to {target}" if target else DIRECT_REASON
        return DelegationDecision(
            target_handler_id=target,
            reason=str(reason),
            extracted_context=context if isinstance(context, dict) else {},
            source="generative",
        )

    agent, reason, context = _from_fields(content)
    if agent is not None and reason is not None:
        return DelegationDecision(
            target_handler_id=normalize_agent_id(agent, coordinator_id),
            reason=reason,
            extracted_context=context,
            source="generative",
        )

    return DelegationDecision(target_handler_id="", reason=DEFAULT_REASON, source="default")
