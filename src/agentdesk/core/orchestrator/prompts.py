from __future__ import annotations

import json
from typing import Any

from agentdesk.core.commands.parser import StructuredCommand

DELEGATION_SYSTEM_PROMPT = (
    "You are a coordination system that determines which specialized agent should handle a request "
    "and extracts key contextual information."
)
DIRECT_SYSTEM_PROMPT = (
    "You are the coordinator in a multi-agent system, designed to route work between specialized agents "
    "and respond directly to general queries."
)


def delegation_prompt(
    *,
    capability_listing: str,
    history: str,
    command: str,
    parsed: StructuredCommand | None,
    coordinator_id: str,
) -> str:
    command_info = f'Current user command: "{command}"'
    if parsed is not None:
        command_info += f"\n\nParsed command structure: {json.dumps(parsed.to_dict(), indent=2)}"
    return f"""
You coordinate between specialized agents. Based on the user's command and the conversation history, decide which agent is best suited to handle it.

Available agents:
{capability_listing}

Recent conversation history:
{history}

{command_info}

If none of the specialized agents fits, set "agent" to null (or "{coordinator_id}") and you will handle it directly.
Extract any key information from the command and history that the selected agent needs.
Respond in JSON with the fields:
- "agent": the agent ID, or null
- "reason": a brief explanation of the choice
- "contextInfo": an object with extracted parameters, entities or other information for the agent
""".strip()


def direct_prompt(*, capability_listing: str, history: str, command: str, context: dict[str, Any] | None) -> str:
    context_info = ""
    if context:
        context_info = f"\nExtracted context information: {json.dumps(context, indent=2, default=str)}"
    return f"""
You are the coordinator of a multi-agent system.

Available agents in the system:
{capability_listing}

Recent conversation history:
{history}{context_info}

Current user command: "{command}"

Provide a helpful, concise response. You are the main coordination point for the specialized agents and should be knowledgeable about the system as a whole.
""".strip()
