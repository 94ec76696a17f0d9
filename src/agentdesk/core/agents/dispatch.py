from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import PurePath
from typing import Any

from agentdesk.core.commands.parser import StructuredCommand, filename_for
from agentdesk.core.files.analysis import analyze_json, text_stats
from agentdesk.core.files.store import FileOperationResult, FileStore

SCRIPT_LAUNCHER = "script-launcher"
DATA_PROCESSOR = "data-processor"
TEXT_GENERATOR = "text-generator"
DECISION_MAKER = "decision-maker"

CODE_FENCE_EXTENSIONS = frozenset({"js", "jsx", "ts", "tsx", "html", "css", "py", "rb", "java", "c", "cpp", "cs"})
LISTABLE_TYPES = frozenset({"", "files", "documents", "scripts"})

Behavior = Callable[[StructuredCommand, dict[str, Any]], Awaitable[str | None]]


def _extension(filename: str) -> str:
    return PurePath(filename).suffix.lstrip(".").lower()


def _failure_detail(result: FileOperationResult) -> str:
    if result.error and result.message:
        return f"{result.error} ({result.message})"
    return result.error or result.message


class HandlerDispatch:
    """Deterministic command behaviors keyed by (handler id, command type).

    ``apply`` returns None when no behavior is registered for the pair; the
    caller then falls back to the handler's generative path. Behaviors report
    missing parameters and store failures as messages instead of raising.
    """

    def __init__(self, file_store: FileStore, *, preview_chars: int = 500) -> None:
        self.file_store = file_store
        self.preview_chars = preview_chars
        self._table: dict[tuple[str, str], Behavior] = {
            (SCRIPT_LAUNCHER, "create"): self._create,
            (SCRIPT_LAUNCHER, "list"): self._list,
            (SCRIPT_LAUNCHER, "read"): self._read_raw,
            (SCRIPT_LAUNCHER, "delete"): self._delete,
            (DATA_PROCESSOR, "analyze"): self._analyze,
            (DATA_PROCESSOR, "read"): self._read_with_stats,
            (DECISION_MAKER, "schedule"): self._schedule,
            (TEXT_GENERATOR, "search"): self._search,
        }

    def supports(self, handler_id: str, command_type: str) -> bool:
        return (handler_id, command_type) in self._table

    def routes(self) -> list[tuple[str, str]]:
        return list(self._table.keys())

    async def apply(self, command: StructuredCommand, handler_id: str, context: dict[str, Any] | None = None) -> str | None:
        behavior = self._table.get((handler_id, command.command_type))
        if behavior is None:
            return None
        return await behavior(command, context or {})

    def _preview(self, content: str) -> str:
        if len(content) > self.preview_chars:
            return content[: self.preview_chars] + "..."
        return content

    async def _create(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        params = command.params
        type_name = (params.get("type") or "file").lower()
        name = params.get("filename") or params.get("name") or ""
        if not name:
            return f"Please specify a name for the {type_name} to create."
        filename = filename_for(type_name, name)
        content = params.get("content", "")

        result = await self.file_store.save(filename, content)
        if not result.success:
            return (
                f"Failed to create {type_name}:\n"
                f"- Name: {filename}\n"
                f"- Error: {result.error}\n"
                f"- Message: {result.message}\n\n"
                "Please check the filename and content and try again."
            )
        size = len(content.encode("utf-8"))
        return (
            f"{type_name.capitalize()} created successfully:\n"
            f"- Name: {filename}\n"
            f"- Path: {result.path}\n"
            f"- Size: {size} bytes\n\n"
            f"The file has been saved to your workspace. You can access it at {result.path}."
        )

    async def _list(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        if command.params.get("type", "").lower() not in LISTABLE_TYPES:
            return None
        result = await self.file_store.list()
        if not result.success:
            return f"Failed to list files: {_failure_detail(result)}"
        if not result.files:
            return "No files found in the workspace directory."
        lines = "\n".join(f"- {name}" for name in result.files)
        return f"Files in your workspace directory:\n{lines}\n\nTotal: {len(result.files)} file(s)"

    async def _read_raw(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        filename = command.params.get("filename", "")
        if not filename:
            return "Please specify a filename to read."
        result = await self.file_store.read(filename)
        if not result.success or result.content is None:
            return f'Failed to read file "{filename}": {_failure_detail(result)}'

        ext = _extension(filename)
        body = self._preview(result.content)
        if ext in CODE_FENCE_EXTENSIONS:
            body = f"```{ext}\n{body}\n```"
        return f"File: {filename}\nPath: {result.path}\n\n{body}"

    async def _read_with_stats(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        filename = command.params.get("filename", "")
        if not filename:
            return "Please specify a filename to read."
        result = await self.file_store.read(filename)
        if not result.success or result.content is None:
            return f'Failed to read file "{filename}": {_failure_detail(result)}'

        stats = text_stats(result.content)
        return (
            f"File Analysis: {filename}\n"
            f"Path: {result.path}\n\n"
            "Stats:\n"
            f"- Lines: {stats.lines}\n"
            f"- Words: {stats.words}\n"
            f"- Characters: {stats.characters}\n"
            f"- File type: {_extension(filename) or 'unknown'}\n\n"
            f"Preview:\n{self._preview(result.content)}"
        )

    async def _delete(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        filename = command.params.get("filename", "")
        if not filename:
            return "Please specify a filename to delete."
        result = await self.file_store.delete(filename)
        if not result.success:
            return f'Failed to delete file "{filename}": {_failure_detail(result)}'
        return f'File "{filename}" has been successfully deleted.'

    async def _analyze(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        params = command.params
        file = params.get("file") or params.get("filename") or ""
        if file and not params.get("content"):
            result = await self.file_store.read(file)
            if not result.success or result.content is None:
                return f'Failed to read file "{file}": {_failure_detail(result)}'
            params["content"] = result.content
            if not params.get("type") or params.get("type") == "file":
                ext = _extension(file)
                if ext == "json":
                    params["type"] = "json"
                elif ext in {"txt", "md"}:
                    params["type"] = "text"
                else:
                    params["type"] = ext or "unknown"

        type_name = params.get("type") or "content"
        content = params.get("content", "")
        in_file = f' in file "{file}"' if file else ""

        if type_name == "json" and content:
            shape = analyze_json(content)
            if not shape.valid:
                return (
                    f"Invalid JSON provided{in_file}. Please check the formatting and try again. "
                    f"Error: {shape.error}"
                )
            types = ", ".join(f"{k}: {v}" for k, v in shape.types.items())
            return (
                "JSON Analysis Results:\n"
                "- Valid JSON structure: Yes\n"
                f"- Number of top-level keys: {len(shape.keys)}\n"
                f"- Keys: {', '.join(shape.keys)}\n"
                f"- Data types: {types}\n\n"
                f"This represents a basic analysis of the JSON structure{in_file}."
            )

        if content:
            stats = text_stats(content)
            return (
                f"{type_name.capitalize()} Analysis Results{in_file}:\n"
                f"- Lines: {stats.lines}\n"
                f"- Words: {stats.words}\n"
                f"- Characters: {stats.characters}"
            )

        for_file = f' for file "{file}"' if file else ""
        return f"Analysis of {type_name} initiated{for_file}. Provide content to receive a detailed analysis."

    async def _schedule(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        params = command.params
        type_name = params.get("type") or "event"
        description = params.get("description", "")
        if not description:
            return f"Please describe the {type_name} to schedule."
        return (
            f"{type_name.capitalize()} scheduled:\n"
            f"- Description: {description}\n"
            f"- Time: {params.get('time') or 'Not specified'}\n\n"
            f"I've logged this {type_name} for you."
        )

    async def _search(self, command: StructuredCommand, context: dict[str, Any]) -> str | None:
        query = command.params.get("query", "")
        if not query:
            return "Please specify what to search for."
        source = command.params.get("source", "")
        in_source = f" in {source}" if source else ""
        return (
            f'Search results for "{query}"{in_source}:\n\n'
            f'No search index is connected, so this is a simulated result confirming the search for "{query}" '
            "was recognized."
        )
