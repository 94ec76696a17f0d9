"""Structured command extraction.

Free text is matched against an ordered rule table; the first matching rule
wins. Rule order is part of the grammar: ``create`` is tried before
``schedule`` so that "create file x" is a file creation while "create meeting
x" falls through to scheduling, and ``list`` is tried before ``read`` so that
"show files" lists instead of reading.

Text that no rule accepts goes through a looser extractor that only needs a
leading verb, then collects ``key: value`` / ``key=value`` pairs and a bare
``name.ext`` token.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

HELP_SYNONYMS = frozenset({"help", "commands", "help with commands", "show commands"})

FREE_FORM_VERBS = ("create", "list", "analyze", "search", "read", "delete", "schedule")

TYPE_EXTENSIONS = {
    "script": ".js",
    "file": ".txt",
    "document": ".md",
    "json": ".json",
    "html": ".html",
    "css": ".css",
    "python": ".py",
    "typescript": ".ts",
    "javascript": ".js",
}
DEFAULT_EXTENSION = ".txt"

FILENAME_SHAPE = re.compile(r"^[a-zA-Z0-9._-]+\.[a-zA-Z0-9]+$")
_FILENAME_TOKEN = re.compile(r"\b([a-zA-Z0-9._-]+\.[a-zA-Z0-9]+)\b")
_LEADING_VERB = re.compile(r"^(?:please\s+)?(?:can\s+you\s+)?(" + "|".join(FREE_FORM_VERBS) + r")\b", re.IGNORECASE)
_KEY_VALUE = re.compile(r"(?:^|\s+)([a-z0-9_]+)(?::|=)\s*(\"[^\"]*\"|'[^']*'|[^,;\s]+)", re.IGNORECASE)


@dataclass(slots=True)
class StructuredCommand:
    command_type: str
    params: dict[str, str] = field(default_factory=dict)
    action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"command": self.command_type, "params": dict(self.params)}
        if self.action is not None:
            out["action"] = self.action
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructuredCommand | None:
        command_type = data.get("command") or data.get("command_type")
        if not isinstance(command_type, str) or command_type not in KNOWN_COMMAND_TYPES:
            return None
        raw_params = data.get("params") or {}
        if not isinstance(raw_params, dict):
            return None
        params = {str(k).lower(): "" if v is None else str(v) for k, v in raw_params.items()}
        action = data.get("action")
        return cls(command_type=command_type, params=params, action=action if isinstance(action, str) else None)


def filename_for(type_name: str, name: str) -> str:
    if "." in name:
        return name
    return f"{name}{TYPE_EXTENSIONS.get(type_name.lower(), DEFAULT_EXTENSION)}"


def looks_like_filename(value: str) -> bool:
    return bool(FILENAME_SHAPE.match(value.strip()))


def _extract_create(m: re.Match[str]) -> dict[str, str]:
    type_name = m.group(1).lower()
    name = m.group(2)
    content = m.group(3) or m.group(4) or ""
    return {"type": type_name, "name": name, "content": content, "filename": filename_for(type_name, name)}


def _extract_list(m: re.Match[str]) -> dict[str, str]:
    return {"type": m.group(1).lower(), "location": (m.group(2) or "").strip()}


def _extract_analyze(m: re.Match[str]) -> dict[str, str]:
    value = m.group(2) or ""
    if value and looks_like_filename(value):
        return {"type": m.group(1).lower(), "content": "", "file": value.strip()}
    return {"type": m.group(1).lower(), "content": value, "file": ""}


def _extract_search(m: re.Match[str]) -> dict[str, str]:
    return {"query": m.group(1).strip(), "source": (m.group(2) or "").strip()}


def _extract_schedule(m: re.Match[str]) -> dict[str, str]:
    return {"type": m.group(1).lower(), "description": m.group(2).strip(), "time": (m.group(3) or "").strip()}


def _extract_filename(m: re.Match[str]) -> dict[str, str]:
    return {"filename": m.group(1).strip()}


Extractor = Callable[[re.Match[str]], dict[str, str]]

# Declared order: create, list, analyze, search, schedule, read, delete.
COMMAND_RULES: tuple[tuple[str, re.Pattern[str], Extractor], ...] = (
    (
        "create",
        re.compile(
            r"^(?:please\s+)?(?:create|make|write)(?:\s+(?:a|an))?\s+"
            r"(file|document|script|json|html|css|python|typescript|javascript)"
            r"(?:\s+(?:called|named))?\s+([a-zA-Z0-9._-]+)"
            r"(?:\s+with\s+content(?:\s*:\s*|:?\s+)(.*)|\s*(.*))?$",
            re.IGNORECASE | re.DOTALL,
        ),
        _extract_create,
    ),
    (
        "list",
        re.compile(
            r"^(?:please\s+)?(?:list|show|get)(?:\s+(?:all|my))?\s+"
            r"(files|documents|scripts|agents|commands|memory)(?:\s+in\s+(.+))?$",
            re.IGNORECASE,
        ),
        _extract_list,
    ),
    (
        "analyze",
        re.compile(
            r"^(?:please\s+)?(?:analyze|examine|parse|process)(?:\s+(?:this|the|my))?\s+"
            r"(json|text|code|data|file)(?:(?:\s*:\s*|\s+)(.+))?$",
            re.IGNORECASE | re.DOTALL,
        ),
        _extract_analyze,
    ),
    (
        "search",
        re.compile(
            r"^(?:please\s+)?(?:search|find|look)(?:\s+for)?\s+"
            r"(?:(?:information|data|content)\s+(?:about|on|related\s+to)\s+)?"
            r"([^:]+?)(?:\s+in\s+([^:]+))?$",
            re.IGNORECASE,
        ),
        _extract_search,
    ),
    (
        "schedule",
        re.compile(
            r"^(?:please\s+)?(?:schedule|create|book|plan|set\s+up)(?:\s+(?:a|an))?\s+"
            r"(meeting|event|task|reminder|appointment)(?:\s+(?:called|titled|named))?\s+"
            r"([^:]+?)(?:\s+(?:for|at|on)\s+(.+))?$",
            re.IGNORECASE,
        ),
        _extract_schedule,
    ),
    (
        "read",
        re.compile(
            r"^(?:please\s+)?(?:read|open|show|display|view|get)(?:\s+(?:the|my))?\s+"
            r"(?:contents?\s+of\s+)?(?:file\s+)?([a-zA-Z0-9._-]+\.[a-zA-Z0-9]+)$",
            re.IGNORECASE,
        ),
        _extract_filename,
    ),
    (
        "delete",
        re.compile(
            r"^(?:please\s+)?(?:delete|remove|trash)(?:\s+(?:the|my))?\s+"
            r"(?:file\s+)?([a-zA-Z0-9._-]+\.[a-zA-Z0-9]+)$",
            re.IGNORECASE,
        ),
        _extract_filename,
    ),
)

KNOWN_COMMAND_TYPES = frozenset([name for name, _, _ in COMMAND_RULES] + ["help"])


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def extract_free_form(text: str) -> StructuredCommand | None:
    verb = _LEADING_VERB.match(text)
    if verb is None:
        return None

    params: dict[str, str] = {}
    for m in _KEY_VALUE.finditer(text):
        params[m.group(1).lower()] = _unquote(m.group(2))

    if "filename" not in params and "file" not in params:
        token = _FILENAME_TOKEN.search(text)
        if token:
            params["filename"] = token.group(1)

    return StructuredCommand(command_type=verb.group(1).lower(), params=params)


def detect(text: str) -> StructuredCommand | None:
    trimmed = (text or "").strip()
    if not trimmed:
        return None
    if trimmed.lower() in HELP_SYNONYMS:
        return StructuredCommand(command_type="help")

    for name, pattern, extractor in COMMAND_RULES:
        m = pattern.match(trimmed)
        if m:
            return StructuredCommand(command_type=name, params=extractor(m))

    return extract_free_form(trimmed)
