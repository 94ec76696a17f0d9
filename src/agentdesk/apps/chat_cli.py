from __future__ import annotations

import asyncio
import json

from agentdesk.apps.runtime_support import AgentDeskRuntime, build_runtime
from agentdesk.cli import base_parser
from agentdesk.core.runtime.errors import AgentNotFoundError, RequestValidationError


async def _run_one(runtime: AgentDeskRuntime, command: str, agent_id: str | None, as_json: bool) -> int:
    try:
        if agent_id:
            result = await runtime.coordinator.execute(agent_id, command)
        else:
            result = await runtime.coordinator.handle(command)
    except (RequestValidationError, AgentNotFoundError) as exc:
        print(f"error: {exc}")
        return 2

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    elif agent_id:
        print(result.response)
    else:
        print(f"[{result.responding_agent}] {result.response}")
    return 0


async def _interactive(runtime: AgentDeskRuntime, agent_id: str | None, as_json: bool) -> int:
    print("AgentDesk chat. Type 'help' for commands, 'exit' to quit.")
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            return 0
        line = line.strip()
        if line in {"exit", "quit"}:
            return 0
        if line:
            await _run_one(runtime, line, agent_id, as_json)


def main() -> int:
    parser = base_parser("agentdesk-chat", "Send commands to the AgentDesk coordinator")
    parser.add_argument("command", nargs="*", help="Command text; omit for an interactive session")
    parser.add_argument("--agent", default=None, help="Run the command against one agent directly")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    args = parser.parse_args()

    runtime = build_runtime(config_path=args.config)
    if args.command:
        return asyncio.run(_run_one(runtime, " ".join(args.command), args.agent, args.json))
    return asyncio.run(_interactive(runtime, args.agent, args.json))


if __name__ == "__main__":
    raise SystemExit(main())
