from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from agentdesk.core.commands.parser import StructuredCommand
from agentdesk.core.config.schema import HandlerDescriptor
from agentdesk.core.memory.history import ConversationHistory
from agentdesk.core.providers.client import GenerationClient

_SIMULATED = {
    "text-generator": "As the Text Generator agent, I've analyzed your request: \"{command}\". Here's a creative response based on your input.",
    "data-processor": "I've processed the data in your request: \"{command}\". Here's my structured analysis.",
    "decision-maker": "Based on your request: \"{command}\", I've evaluated the options and here's my recommendation.",
    "script-launcher": "I've processed your script request: \"{command}\". Here's how the execution would proceed.",
}
_SIMULATED_DEFAULT = "I'm a simulated agent response for: \"{command}\"."
_SIMULATED_SUFFIX = " [Simulated response - generative backend not available]"


@dataclass(slots=True)
class AgentReply:
    text: str
    generated: bool
    error: str = ""


def simulate_response(agent_id: str, command: str, context: dict[str, Any] | None = None) -> str:
    prefix = "Using the context information you provided, " if context else ""
    body = _SIMULATED.get(agent_id, _SIMULATED_DEFAULT).format(command=command)
    if prefix:
        body = body[0].lower() + body[1:]
    return f"{prefix}{body}{_SIMULATED_SUFFIX}"


class AgentResponder:
    """Answers a command as one specific handler through the generative backend."""

    def __init__(self, generation: GenerationClient, history: ConversationHistory, *, history_window: int = 5) -> None:
        self.generation = generation
        self.history = history
        self.history_window = history_window

    async def build_prompt(
        self,
        descriptor: HandlerDescriptor,
        command: str,
        context: dict[str, Any] | None,
        parsed: StructuredCommand | None,
    ) -> tuple[str, str]:
        capabilities = ", ".join(descriptor.capabilities)
        system_prompt = (
            f"You are the {descriptor.name} agent with these capabilities: {capabilities}. {descriptor.description}"
        )
        history = await self.history.format_history(descriptor.id, self.history_window)

        parts = [
            f"You are the {descriptor.name} agent. You are specialized in: {capabilities}.",
            descriptor.description,
            "",
            "Recent conversation history:",
            history,
        ]
        if context:
            parts.append(f"\nAdditional context from the coordinator: {json.dumps(context, indent=2, default=str)}")
        parts.append(f'\nCurrent user command: "{command}"')
        if parsed is not None:
            parts.append(f"Parsed command: {json.dumps(parsed.to_dict(), indent=2)}")
        parts.append(
            "\nRespond based on your specialization. Keep the answer relevant to your capabilities "
            "and use any context provided by the coordinator."
        )
        return system_prompt, "\n".join(parts)

    async def respond(
        self,
        descriptor: HandlerDescriptor,
        command: str,
        context: dict[str, Any] | None = None,
        parsed: StructuredCommand | None = None,
    ) -> AgentReply:
        if not self.generation.available():
            return AgentReply(text=simulate_response(descriptor.id, command, context), generated=False)

        system_prompt, user_prompt = await self.build_prompt(descriptor, command, context, parsed)
        result = await self.generation.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            model=descriptor.config.model,
            temperature=descriptor.config.temperature,
            max_tokens=descriptor.config.max_tokens,
        )
        if not result.ok:
            return AgentReply(text=simulate_response(descriptor.id, command, context), generated=False, error=result.error)
        return AgentReply(text=result.text, generated=True)
