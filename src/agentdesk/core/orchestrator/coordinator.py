from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from agentdesk.core.agents.dispatch import HandlerDispatch
from agentdesk.core.agents.registry import CapabilityRegistry
from agentdesk.core.agents.responder import AgentResponder
from agentdesk.core.commands.help import command_help
from agentdesk.core.commands.parser import StructuredCommand, detect
from agentdesk.core.config.schema import AppConfig, HandlerDescriptor
from agentdesk.core.memory.history import ConversationHistory
from agentdesk.core.orchestrator.delegation import (
    API_ERROR_REASON,
    DelegationDecision,
    direct_mapping,
    parse_delegation_reply,
)
from agentdesk.core.orchestrator.prompts import (
    DELEGATION_SYSTEM_PROMPT,
    DIRECT_SYSTEM_PROMPT,
    delegation_prompt,
    direct_prompt,
)
from agentdesk.core.providers.client import GenerationClient
from agentdesk.core.runtime.errors import AgentNotFoundError, RequestValidationError, compact_error_summary
from agentdesk.core.telemetry.metrics import UsageMetrics
from agentdesk.core.telemetry.tracing import TraceContext, trace_event

APOLOGY = "I apologize, but I encountered an error while processing your request. Please try again later."
ERROR_REASON = "Error occurred, handling directly"


def _ms(started: float) -> float:
    return round((perf_counter() - started) * 1000, 3)


@dataclass(slots=True)
class CommandResult:
    command: str
    delegated_agent: str
    reason: str
    response: str
    responding_agent: str
    context: dict[str, Any] = field(default_factory=dict)
    parsed_command: StructuredCommand | None = None
    metrics: dict[str, float] = field(default_factory=dict)
    request_id: str = ""
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "requestId": self.request_id,
            "command": self.command,
            "delegatedAgent": self.delegated_agent,
            "respondingAgent": self.responding_agent,
            "reason": self.reason,
            "context": self.context,
            "parsedCommand": self.parsed_command.to_dict() if self.parsed_command else None,
            "response": self.response,
            "metrics": self.metrics,
        }


@dataclass(slots=True)
class ExecutionResult:
    agent_id: str
    command: str
    response: str
    parsed_command: StructuredCommand | None
    deterministic: bool
    total_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "agentId": self.agent_id,
            "command": self.command,
            "response": self.response,
            "parsedCommand": self.parsed_command.to_dict() if self.parsed_command else None,
            "metrics": {"totalDuration": self.total_ms},
        }


class Coordinator:
    """Top-level request handling: extract, delegate, dispatch, respond.

    Failures inside delegation or dispatch are logged, recorded as metric
    events and answered with a best-effort direct response. Only request
    validation errors and unknown explicitly requested agents reach the
    caller.
    """

    def __init__(
        self,
        *,
        cfg: AppConfig,
        registry: CapabilityRegistry,
        dispatch: HandlerDispatch,
        responder: AgentResponder,
        generation: GenerationClient,
        history: ConversationHistory,
        metrics: UsageMetrics,
        logger,
    ) -> None:
        self.cfg = cfg
        self.registry = registry
        self.dispatch = dispatch
        self.responder = responder
        self.generation = generation
        self.history = history
        self.metrics = metrics
        self.logger = logger
        self.coordinator_id = cfg.runtime.coordinator_id

    async def handle(self, command: str | None, *, conversation_key: str | None = None) -> CommandResult:
        if not isinstance(command, str) or not command.strip():
            raise RequestValidationError("Missing required field: command is required")

        key = conversation_key or self.cfg.runtime.conversation_key
        request_started = perf_counter()
        request_id = uuid.uuid4().hex[:12]
        trace = TraceContext(request_id=request_id, conversation_key=key, agent_id=self.coordinator_id, phase="received")
        trace_event(self.logger, trace, event="command_received", status="ok")

        started = perf_counter()
        parsed = detect(command)
        extraction_ms = _ms(started)
        trace.phase = "extracted"
        trace_event(
            self.logger,
            trace,
            event="command_extracted",
            status="ok" if parsed else "none",
            extra={"command_type": parsed.command_type if parsed else "", "latency_ms": extraction_ms},
        )

        if parsed is not None and parsed.command_type == "help":
            trace.phase = "responded"
            trace_event(self.logger, trace, event="command_responded", status="help")
            return CommandResult(
                command=command,
                delegated_agent="",
                reason="Providing command help",
                response=command_help(),
                responding_agent=self.coordinator_id,
                parsed_command=parsed,
                metrics={
                    "totalDuration": _ms(request_started),
                    "extractionDuration": extraction_ms,
                    "delegationDuration": 0.0,
                    "responseDuration": 0.0,
                },
                request_id=request_id,
            )

        await self.metrics.track(
            self.coordinator_id,
            "request",
            metadata={"command": command, "parsedCommand": parsed.command_type if parsed else None},
        )

        delegation_ms = 0.0
        response_ms = 0.0
        try:
            started = perf_counter()
            decision = await self.decide(command, parsed, conversation_key=key)
            delegation_ms = _ms(started)
            trace.phase = "delegated"
            trace_event(
                self.logger,
                trace,
                event="delegation_decided",
                status=decision.source,
                extra={"target": decision.target_handler_id or self.coordinator_id, "reason": decision.reason},
            )
            await self.metrics.track(
                self.coordinator_id,
                "delegation",
                duration_ms=delegation_ms,
                metadata={
                    "delegatedTo": decision.target_handler_id or self.coordinator_id,
                    "reason": decision.reason,
                    "contextInfo": decision.extracted_context,
                    "commandParsed": parsed is not None,
                },
            )

            started = perf_counter()
            response, responding_agent = await self._respond(decision, command, parsed, conversation_key=key)
            response_ms = _ms(started)
            trace.phase = "dispatched"
            trace_event(self.logger, trace, event="dispatch_complete", status="ok", extra={"agent": responding_agent})
        except Exception as exc:  # noqa: BLE001
            detail = compact_error_summary(exc)
            trace.phase = "error"
            trace_event(self.logger, trace, event="command_failed", status="error", extra={"detail": detail})
            self.logger.error("command_failed", request_id=request_id, command=command, detail=detail)
            await self.metrics.track(self.coordinator_id, "error", metadata={"error": detail, "command": command})
            decision = DelegationDecision(target_handler_id="", reason=ERROR_REASON, source="error")
            started = perf_counter()
            response = await self._best_effort(command, conversation_key=key)
            response_ms = _ms(started)
            responding_agent = self.coordinator_id

        await self.history.append(key, "user", command)
        await self.history.append(
            key,
            "agent",
            response,
            agent_id=responding_agent if responding_agent != self.coordinator_id else None,
        )

        total_ms = _ms(request_started)
        await self.metrics.track(
            responding_agent,
            "response",
            duration_ms=response_ms,
            metadata={"command": command, "responseLength": len(response)},
        )
        if responding_agent != self.coordinator_id:
            await self.metrics.track(
                self.coordinator_id,
                "response",
                duration_ms=total_ms,
                metadata={"delegatedTo": responding_agent, "command": command},
            )

        trace.phase = "responded"
        trace_event(self.logger, trace, event="command_responded", status="ok", extra={"latency_ms": total_ms})
        return CommandResult(
            command=command,
            delegated_agent=decision.target_handler_id,
            reason=decision.reason,
            response=response,
            responding_agent=responding_agent,
            context=decision.extracted_context,
            parsed_command=parsed,
            metrics={
                "totalDuration": total_ms,
                "extractionDuration": extraction_ms,
                "delegationDuration": delegation_ms,
                "responseDuration": response_ms,
            },
            request_id=request_id,
        )

    async def decide(
        self,
        command: str,
        parsed: StructuredCommand | None,
        *,
        conversation_key: str | None = None,
    ) -> DelegationDecision:
        if parsed is not None:
            target = direct_mapping(parsed.command_type)
            if target:
                return DelegationDecision(
                    target_handler_id=target,
                    reason=f"Command '{parsed.command_type}' is best handled by this specialized agent",
                    extracted_context={
                        "parsedCommand": parsed.to_dict(),
                        "commandType": parsed.command_type,
                        "params": dict(parsed.params),
                    },
                    source="direct",
                )

        key = conversation_key or self.cfg.runtime.conversation_key
        history = await self.history.format_history(key, self.cfg.runtime.delegation_history_window)
        prompt = delegation_prompt(
            capability_listing=self.registry.capability_listing(),
            history=history,
            command=command,
            parsed=parsed,
            coordinator_id=self.coordinator_id,
        )
        result = await self.generation.complete(
            system_prompt=DELEGATION_SYSTEM_PROMPT,
            user_prompt=prompt,
            max_tokens=self.cfg.providers.openai.delegation_max_tokens,
        )
        if not result.ok:
            await self.metrics.track(self.coordinator_id, "error", metadata={"error": result.error, "phase": "delegation"})
            return DelegationDecision(target_handler_id="", reason=API_ERROR_REASON, source="error")

        decision = parse_delegation_reply(result.text, self.coordinator_id)
        if decision.source == "default":
            self.logger.warning("delegation_reply_unparsed", reply=result.text[:200])
            await self.metrics.track(
                self.coordinator_id,
                "error",
                metadata={"error": "MalformedUpstreamReply: delegation reply could not be parsed", "phase": "delegation"},
            )
        return decision

    async def respond_directly(
        self,
        command: str,
        context: dict[str, Any] | None,
        *,
        conversation_key: str | None = None,
    ) -> str:
        key = conversation_key or self.cfg.runtime.conversation_key
        history = await self.history.format_history(key, self.cfg.runtime.direct_history_window)
        prompt = direct_prompt(
            capability_listing=self.registry.capability_listing(),
            history=history,
            command=command,
            context=context,
        )
        result = await self.generation.complete(system_prompt=DIRECT_SYSTEM_PROMPT, user_prompt=prompt)
        if not result.ok:
            await self.metrics.track(
                self.coordinator_id,
                "error",
                metadata={"error": result.error, "command": command, "phase": "direct_response"},
            )
            return APOLOGY
        return result.text

    async def _best_effort(self, command: str, *, conversation_key: str) -> str:
        """Direct answer after a failed request. Never raises."""
        try:
            return await self.respond_directly(
                f'The request "{command}" could not be completed normally. Please answer it as best you can.',
                None,
                conversation_key=conversation_key,
            )
        except Exception as exc:  # noqa: BLE001
            detail = compact_error_summary(exc)
            self.logger.error("best_effort_failed", command=command, detail=detail)
            await self.metrics.track(
                self.coordinator_id,
                "error",
                metadata={"error": detail, "command": command, "phase": "best_effort"},
            )
            return APOLOGY

    async def _respond(
        self,
        decision: DelegationDecision,
        command: str,
        parsed: StructuredCommand | None,
        *,
        conversation_key: str,
    ) -> tuple[str, str]:
        target = decision.target_handler_id
        if not target or target == self.coordinator_id:
            text = await self.respond_directly(command, decision.extracted_context, conversation_key=conversation_key)
            return text, self.coordinator_id

        descriptor = self.registry.find(target)
        if descriptor is None:
            await self.metrics.track(target, "error", metadata={"error": f'Agent with ID "{target}" not found'})
            text = await self.respond_directly(command, decision.extracted_context, conversation_key=conversation_key)
            return f'I couldn\'t find an agent with ID "{target}". Let me answer your query directly instead.\n\n{text}', self.coordinator_id

        text, _ = await self._run_agent(descriptor, command, decision.extracted_context, parsed)
        return text, descriptor.id

    async def _run_agent(
        self,
        descriptor: HandlerDescriptor,
        command: str,
        context: dict[str, Any] | None,
        parsed: StructuredCommand | None,
    ) -> tuple[str, bool]:
        started = perf_counter()
        await self.history.append(descriptor.id, "user", command)
        await self.metrics.track(
            descriptor.id,
            "request",
            metadata={"command": command, "requestedBy": self.coordinator_id, "context": context or {}},
        )

        text = None
        if parsed is not None:
            text = await self.dispatch.apply(parsed, descriptor.id, context)
        deterministic = text is not None
        if text is None:
            if parsed is not None:
                await self.metrics.track(
                    descriptor.id,
                    "error",
                    metadata={
                        "error": f"DispatchMiss: no deterministic behavior for '{parsed.command_type}'",
                        "command": command,
                    },
                )
            reply = await self.responder.respond(descriptor, command, context, parsed)
            if reply.error:
                await self.metrics.track(
                    descriptor.id,
                    "error",
                    metadata={"error": reply.error, "command": command, "fallbackToSimulation": True},
                )
            text = reply.text

        await self.history.append(descriptor.id, "agent", text)
        await self.metrics.track(
            descriptor.id,
            "response",
            duration_ms=_ms(started),
            metadata={
                "command": command,
                "commandType": parsed.command_type if parsed else None,
                "deterministic": deterministic,
                "responseLength": len(text),
            },
        )
        return text, deterministic

    async def execute(self, agent_id: str | None, command: str | None, context: dict[str, Any] | None = None) -> ExecutionResult:
        """Run one command against an explicitly chosen agent."""
        if not agent_id or not isinstance(command, str) or not command.strip():
            await self.metrics.track(agent_id or "unknown", "error", metadata={"error": "Missing required fields"})
            raise RequestValidationError("Missing required fields: agentId and command are required")

        started = perf_counter()
        descriptor = self.registry.find(agent_id)
        if descriptor is None:
            await self.metrics.track(agent_id, "error", metadata={"error": f'Agent with ID "{agent_id}" not found'})
            raise AgentNotFoundError(agent_id)

        context = dict(context or {})
        parsed = None
        if isinstance(context.get("parsedCommand"), dict):
            parsed = StructuredCommand.from_dict(context["parsedCommand"])
        if parsed is None:
            parsed = detect(command)

        text, deterministic = await self._run_agent(descriptor, command, context, parsed)
        return ExecutionResult(
            agent_id=descriptor.id,
            command=command,
            response=text,
            parsed_command=parsed,
            deterministic=deterministic,
            total_ms=_ms(started),
        )
