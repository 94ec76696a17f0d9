from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class InstanceConfig(BaseModel):
    name: str = "agentdesk"


class RuntimeConfig(BaseModel):
    coordinator_id: str = "mother-agent"
    conversation_key: str = "mother-agent"
    backend_timeout_seconds: float = 20.0
    delegation_history_window: int = 10
    direct_history_window: int = 8
    agent_history_window: int = 5


class HistoryConfig(BaseModel):
    max_items_per_key: int = 100


class MetricsConfig(BaseModel):
    max_events_per_agent: int = 100


class FilesConfig(BaseModel):
    root_dir: str = "user-files"
    max_bytes: int = 1024 * 1024
    preview_chars: int = 500


class TelemetryConfig(BaseModel):
    log_level: str = "INFO"
    json_logs: bool = True


class OpenAIProviderConfig(BaseModel):
    enabled: bool = True
    base_url: str = "https://api.openai.com/v1"
    api_key_env: str = "OPENAI_API_KEY"
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 1024
    delegation_max_tokens: int = 350
    timeout_seconds: float = 30.0


class ProvidersConfig(BaseModel):
    openai: OpenAIProviderConfig = Field(default_factory=OpenAIProviderConfig)


class AgentModelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


class HandlerDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    capabilities: tuple[str, ...] = ()
    config: AgentModelConfig = Field(default_factory=AgentModelConfig)


def default_agents() -> list[HandlerDescriptor]:
    return [
        HandlerDescriptor(
            id="text-generator",
            name="Text Generator",
            description="Generates written content, answers questions and searches for information.",
            capabilities=("text generation", "summarization", "information search", "question answering"),
        ),
        HandlerDescriptor(
            id="data-processor",
            name="Data Processor",
            description="Parses, analyzes and reports on structured and unstructured data.",
            capabilities=("json analysis", "data parsing", "file statistics", "data transformation"),
            config=AgentModelConfig(temperature=0.2),
        ),
        HandlerDescriptor(
            id="decision-maker",
            name="Decision Maker",
            description="Evaluates options, plans tasks and schedules events.",
            capabilities=("scheduling", "planning", "option evaluation", "recommendations"),
        ),
        HandlerDescriptor(
            id="script-launcher",
            name="Script Launcher",
            description="Creates, reads, lists and deletes scripts and files in the user workspace.",
            capabilities=("file creation", "file management", "script generation", "code execution planning"),
            config=AgentModelConfig(temperature=0.3),
        ),
    ]


class AppConfig(BaseModel):
    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    environment: str = "dev"
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    agents: list[HandlerDescriptor] = Field(default_factory=default_agents)
