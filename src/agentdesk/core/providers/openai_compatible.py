from __future__ import annotations

import os

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

from agentdesk.core.config.schema import OpenAIProviderConfig
from agentdesk.core.providers.base import ProviderAdapter, ProviderRequest, ProviderResponse
from agentdesk.core.runtime.errors import UpstreamError, classify_error


def _is_retryable(exc: BaseException) -> bool:
    if not isinstance(exc, Exception):
        return False
    return classify_error(exc, category="provider", component="openai_compatible").retryable


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str):
            return err
    return resp.reason_phrase


class OpenAICompatibleAdapter(ProviderAdapter):
    name = "openai"

    def __init__(self, cfg: OpenAIProviderConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.cfg = cfg
        self.base_url = cfg.base_url.rstrip("/")
        self._transport = transport

    def _api_key(self) -> str:
        return os.getenv(self.cfg.api_key_env, "").strip()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key()}", "Content-Type": "application/json"}

    def configured(self) -> bool:
        return self.cfg.enabled and bool(self._api_key())

    @retry(stop=stop_after_attempt(2), wait=wait_fixed(0.2), retry=retry_if_exception(_is_retryable), reraise=True)
    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        if not self.configured():
            raise UpstreamError(f"API key is not configured ({self.cfg.api_key_env})")

        try:
            async with httpx.AsyncClient(timeout=self.cfg.timeout_seconds, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}/chat/completions", json=request.payload(), headers=self._headers())
        except httpx.HTTPError as exc:
            raise UpstreamError(f"backend request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise UpstreamError(f"backend returned {resp.status_code}: {_error_message(resp)}", status_code=resp.status_code)

        try:
            body = resp.json()
            text = body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamError(f"backend reply missing choices: {exc}") from exc

        return ProviderResponse(provider=self.name, model=request.model, output_text=(text or "").strip(), raw=body)
