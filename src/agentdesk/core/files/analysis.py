from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class JsonShape:
    valid: bool
    keys: list[str]
    types: dict[str, str]
    error: str = ""


@dataclass(slots=True)
class TextStats:
    lines: int
    words: int
    characters: int


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def analyze_json(content: str) -> JsonShape:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        return JsonShape(valid=False, keys=[], types={}, error=str(exc))
    if isinstance(parsed, dict):
        keys = list(parsed.keys())
        return JsonShape(valid=True, keys=keys, types={k: json_type_name(parsed[k]) for k in keys})
    if isinstance(parsed, list):
        keys = [str(i) for i in range(len(parsed))]
        return JsonShape(valid=True, keys=keys, types={str(i): json_type_name(v) for i, v in enumerate(parsed)})
    return JsonShape(valid=True, keys=[], types={})


def text_stats(content: str) -> TextStats:
    return TextStats(lines=len(content.split("\n")), words=len(content.split()), characters=len(content))
