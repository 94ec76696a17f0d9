from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from agentdesk.core.runtime.locks import KeyedLockManager


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class ConversationItem:
    role: str
    content: str
    timestamp: datetime
    agent_id: str | None = None


@dataclass(slots=True)
class _Conversation:
    items: list[ConversationItem] = field(default_factory=list)
    last_updated: datetime = field(default_factory=_utcnow)


class ConversationHistory:
    """Per-key conversation log, bounded to the most recent entries.

    Appends for one key are serialized; reads return a copied snapshot.
    """

    def __init__(self, *, max_items_per_key: int = 100, locks: KeyedLockManager | None = None) -> None:
        self.max_items_per_key = max(1, max_items_per_key)
        self._locks = locks or KeyedLockManager()
        self._store: dict[str, _Conversation] = {}

    async def append(self, key: str, role: str, content: str, agent_id: str | None = None) -> ConversationItem:
        if role not in {"user", "agent"}:
            raise ValueError(f"unsupported role: {role}")
        item = ConversationItem(role=role, content=content, timestamp=_utcnow(), agent_id=agent_id)
        lock = await self._locks.get_lock(key)
        async with lock:
            convo = self._store.setdefault(key, _Conversation())
            convo.items.append(item)
            if len(convo.items) > self.max_items_per_key:
                del convo.items[: len(convo.items) - self.max_items_per_key]
            convo.last_updated = item.timestamp
        return item

    async def recent(self, key: str, limit: int = 10) -> list[ConversationItem]:
        lock = await self._locks.get_lock(key)
        async with lock:
            convo = self._store.get(key)
            if convo is None or limit <= 0:
                return []
            return list(convo.items[-limit:])

    async def format_history(self, key: str, limit: int = 5) -> str:
        items = await self.recent(key, limit)
        if not items:
            return "No previous conversation history."
        return "\n\n".join(f"{'User' if i.role == 'user' else 'Agent'}: {i.content}" for i in items)

    async def clear(self, key: str) -> None:
        lock = await self._locks.get_lock(key)
        async with lock:
            if key in self._store:
                self._store[key] = _Conversation()

    def keys(self) -> list[str]:
        return list(self._store.keys())

    def summary(self) -> list[dict]:
        return [
            {"agent_id": key, "message_count": len(convo.items), "last_updated": convo.last_updated.isoformat()}
            for key, convo in list(self._store.items())
        ]
