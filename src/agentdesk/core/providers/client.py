from __future__ import annotations

import asyncio
from dataclasses import dataclass
from time import perf_counter

from agentdesk.core.providers.base import ChatMessage, ProviderAdapter, ProviderRequest
from agentdesk.core.runtime.errors import UpstreamError, compact_error_summary


@dataclass(slots=True)
class GenerationResult:
    """Outcome of one backend call.

    ``ok`` is False when the call failed and the caller must take its degrade
    branch; ``error`` then carries a compact description of the failure.
    """

    ok: bool
    text: str = ""
    error: str = ""
    latency_ms: float = 0.0

    @property
    def recovered(self) -> bool:
        return not self.ok


class GenerationClient:
    def __init__(
        self,
        adapter: ProviderAdapter | None,
        *,
        default_model: str,
        default_temperature: float,
        default_max_tokens: int,
        timeout_seconds: float,
        logger,
    ) -> None:
        self.adapter = adapter
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.timeout_seconds = timeout_seconds
        self.logger = logger

    def available(self) -> bool:
        return self.adapter is not None and self.adapter.configured()

    def configured_providers(self) -> list[str]:
        return [self.adapter.name] if self.available() else []

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        request = ProviderRequest(
            model=model or self.default_model,
            messages=[ChatMessage(role="system", content=system_prompt), ChatMessage(role="user", content=user_prompt)],
            temperature=self.default_temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.default_max_tokens,
        )
        started = perf_counter()
        if self.adapter is None:
            return GenerationResult(ok=False, error="UpstreamError: no generative backend configured")
        try:
            response = await asyncio.wait_for(self.adapter.generate(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            detail = f"UpstreamError: backend call timed out after {self.timeout_seconds}s"
            self.logger.warning("backend_call", status="timeout", model=request.model, detail=detail)
            return GenerationResult(ok=False, error=detail, latency_ms=_elapsed(started))
        except UpstreamError as exc:
            detail = compact_error_summary(exc)
            self.logger.warning("backend_call", status="error", model=request.model, detail=detail)
            return GenerationResult(ok=False, error=detail, latency_ms=_elapsed(started))

        self.logger.info("backend_call", status="ok", model=request.model, provider=response.provider)
        return GenerationResult(ok=True, text=response.output_text, latency_ms=_elapsed(started))


def _elapsed(started: float) -> float:
    return round((perf_counter() - started) * 1000, 3)
