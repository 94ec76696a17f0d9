from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from agentdesk import __version__
from agentdesk.apps.runtime_support import AgentDeskRuntime, build_runtime
from agentdesk.cli import base_parser
from agentdesk.core.runtime.errors import AgentNotFoundError, RequestValidationError


class CommandRequest(BaseModel):
    command: str | None = None


class ExecuteRequest(BaseModel):
    agentId: str | None = None
    command: str | None = None
    context: dict[str, Any] | None = None


def create_app(config_path: str | None = None, runtime: AgentDeskRuntime | None = None) -> FastAPI:
    runtime = runtime or build_runtime(config_path=config_path)
    app = FastAPI(title="AgentDesk API", version=__version__)

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "version": __version__,
            "environment": runtime.cfg.environment,
            "backend_available": runtime.generation.available(),
        }

    @app.get("/agents")
    def agents() -> dict:
        return {
            "agents": [d.model_dump(mode="json") for d in runtime.registry.list()],
            "providers": runtime.generation.configured_providers(),
        }

    @app.post("/mother-agent")
    async def mother_agent(payload: CommandRequest) -> dict:
        try:
            result = await runtime.coordinator.handle(payload.command)
        except RequestValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return result.to_dict()

    @app.post("/agents/execute")
    async def execute(payload: ExecuteRequest) -> dict:
        try:
            result = await runtime.coordinator.execute(payload.agentId, payload.command, payload.context)
        except RequestValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except AgentNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return result.to_dict()

    @app.get("/analytics")
    def analytics() -> dict:
        return {
            "items": runtime.metrics.all_agents(),
            "most_active": [a["agent_id"] for a in runtime.metrics.most_active()],
            "average_response_ms": runtime.metrics.average_response_ms(),
        }

    @app.get("/analytics/{agent_id}")
    def agent_analytics(agent_id: str) -> dict:
        stats = runtime.metrics.for_agent(agent_id)
        if stats is None:
            raise HTTPException(status_code=404, detail=f"no analytics for agent {agent_id}")
        return stats

    @app.get("/memory")
    def memory() -> dict:
        return {"items": runtime.history.summary()}

    return app


def main() -> int:
    parser = base_parser("agentdesk-api", "AgentDesk HTTP API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    args = parser.parse_args()

    api = create_app(config_path=args.config)
    uvicorn.run(api, host=args.host, port=args.port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
