from __future__ import annotations

from dataclasses import dataclass

from agentdesk.core.agents.dispatch import HandlerDispatch
from agentdesk.core.agents.registry import CapabilityRegistry
from agentdesk.core.agents.responder import AgentResponder
from agentdesk.core.config.loader import load_app_config
from agentdesk.core.config.schema import AppConfig
from agentdesk.core.files.store import FileStore
from agentdesk.core.memory.history import ConversationHistory
from agentdesk.core.orchestrator.coordinator import Coordinator
from agentdesk.core.providers.base import ProviderAdapter
from agentdesk.core.providers.client import GenerationClient
from agentdesk.core.providers.openai_compatible import OpenAICompatibleAdapter
from agentdesk.core.telemetry.logging import configure_logging, get_logger
from agentdesk.core.telemetry.metrics import UsageMetrics


@dataclass(slots=True)
class AgentDeskRuntime:
    cfg: AppConfig
    registry: CapabilityRegistry
    history: ConversationHistory
    metrics: UsageMetrics
    file_store: FileStore
    generation: GenerationClient
    coordinator: Coordinator


def build_runtime(
    config_path: str | None = None,
    *,
    cfg: AppConfig | None = None,
    adapter: ProviderAdapter | None = None,
) -> AgentDeskRuntime:
    cfg = cfg or load_app_config(instance_path=config_path)
    configure_logging(cfg.telemetry.log_level, cfg.telemetry.json_logs)
    logger = get_logger("agentdesk.coordinator")

    openai_cfg = cfg.providers.openai
    if adapter is None and openai_cfg.enabled:
        adapter = OpenAICompatibleAdapter(openai_cfg)

    registry = CapabilityRegistry(cfg.agents)
    history = ConversationHistory(max_items_per_key=cfg.history.max_items_per_key)
    metrics = UsageMetrics(max_events_per_agent=cfg.metrics.max_events_per_agent)
    file_store = FileStore(cfg.files.root_dir, max_bytes=cfg.files.max_bytes)
    generation = GenerationClient(
        adapter,
        default_model=openai_cfg.model,
        default_temperature=openai_cfg.temperature,
        default_max_tokens=openai_cfg.max_tokens,
        timeout_seconds=cfg.runtime.backend_timeout_seconds,
        logger=get_logger("agentdesk.generation"),
    )
    coordinator = Coordinator(
        cfg=cfg,
        registry=registry,
        dispatch=HandlerDispatch(file_store, preview_chars=cfg.files.preview_chars),
        responder=AgentResponder(generation, history, history_window=cfg.runtime.agent_history_window),
        generation=generation,
        history=history,
        metrics=metrics,
        logger=logger,
    )
    return AgentDeskRuntime(
        cfg=cfg,
        registry=registry,
        history=history,
        metrics=metrics,
        file_store=file_store,
        generation=generation,
        coordinator=coordinator,
    )
