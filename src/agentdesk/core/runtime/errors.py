from __future__ import annotations

import re
from dataclasses import dataclass


class AgentDeskError(Exception):
    """Base class for errors raised by the command pipeline."""


class RequestValidationError(AgentDeskError):
    """A request is missing required fields. Surfaced to the caller as a client error."""


class AgentNotFoundError(AgentDeskError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f'Agent with ID "{agent_id}" not found')
        self.agent_id = agent_id


class UpstreamError(AgentDeskError):
    """The generative backend failed: non-2xx status, transport error or timeout."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedUpstreamReply(AgentDeskError):
    """A delegation reply could not be read as JSON."""


@dataclass(slots=True)
class ErrorInfo:
    category: str
    component: str
    error_type: str
    message_signature: str
    retryable: bool
    http_status: int | None = None


def _normalize_message(message: str, max_len: int = 180) -> str:
    msg = message.lower()
    msg = re.sub(r"\s+", " ", msg)
    msg = re.sub(r"\d+", "#", msg)
    return msg.strip()[:max_len]


def _compact_message(message: str, max_len: int = 220) -> str:
    msg = re.sub(r"\s+", " ", message)
    return msg.strip()[:max_len]


def classify_error(exc: Exception, *, category: str, component: str) -> ErrorInfo:
    name = exc.__class__.__name__.lower()
    msg = str(exc)
    normalized = _normalize_message(msg)

    status = getattr(exc, "status_code", None)
    if status is None:
        m = re.search(r"\b(4\d\d|5\d\d)\b", msg)
        if m:
            status = int(m.group(1))

    lowered = f"{name} {normalized}"
    retryable = any(k in lowered for k in ["timeout", "temporar", "connection", "reset", "unavailable"])
    if status is not None:
        retryable = status >= 500 or status in {408, 429}
    if any(k in lowered for k in ["auth", "unauthorized", "forbidden", "permission"]):
        retryable = False

    return ErrorInfo(
        category=category,
        component=component,
        error_type=exc.__class__.__name__,
        message_signature=normalized,
        retryable=retryable,
        http_status=status,
    )


def compact_error_summary(exc: Exception, max_len: int = 220) -> str:
    return f"{exc.__class__.__name__}: {_compact_message(str(exc), max_len=max_len)}"
