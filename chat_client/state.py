# chat_client/state.py
"""
Client-side views of sessions and messages.

Locally created messages carry a tagged state:

    Pending(local_id) -> Confirmed(server_id) | Failed(local_id)

Only confirmed messages have a server `seq`; pending ones sort after them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

TEMP_ID_PREFIX = "temp-"


@dataclass(frozen=True)
class Pending:
    local_id: str


@dataclass(frozen=True)
class Confirmed:
    server_id: str


@dataclass(frozen=True)
class Failed:
    local_id: str
    error: str


MessageState = Union[Pending, Confirmed, Failed]


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass
class ChatMessage:
    id: str
    content: str
    role: str
    status: str
    created_at: datetime
    seq: Optional[int] = None
    state: Optional[MessageState] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ChatMessage":
        msg_id = str(data["id"])
        return cls(
            id=msg_id,
            content=data.get("content", ""),
            role=data.get("role", "user"),
            status=data.get("status") or "sent",
            created_at=parse_timestamp(data.get("created_at")),
            seq=data.get("seq"),
            state=Confirmed(msg_id),
        )

    @property
    def is_pending(self) -> bool:
        return isinstance(self.state, Pending)


@dataclass
class SessionSummary:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    version: int = 0
    messages: List[ChatMessage] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SessionSummary":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            version=int(data.get("version") or 0),
            messages=[ChatMessage.from_api(m) for m in data.get("messages") or []],
        )

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None


@dataclass
class SessionSnapshot:
    """One page of a session as the server returned it."""
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    version: int
    messages: List[ChatMessage]
    total_messages: int
    has_more: bool

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SessionSnapshot":
        messages = [ChatMessage.from_api(m) for m in data.get("messages") or []]
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            version=int(data.get("version") or 0),
            messages=messages,
            total_messages=int(data.get("total_messages", len(messages))),
            has_more=bool(data.get("has_more", False)),
        )

    def with_turn(self, new_messages: List[ChatMessage], *, version: int, name: Optional[str] = None) -> "SessionSnapshot":
        """Copy with a confirmed turn appended; temp and duplicate ids dropped."""
        new_ids = {m.id for m in new_messages}
        kept = [
            m for m in self.messages
            if not m.id.startswith(TEMP_ID_PREFIX) and m.id not in new_ids
        ]
        return replace(
            self,
            name=name or self.name,
            version=version,
            messages=kept + list(new_messages),
            total_messages=self.total_messages + len(new_messages),
        )


@dataclass
class SessionView:
    """What a UI renders: server header plus the locally reconciled messages."""
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    version: int
    messages: List[ChatMessage]
    total_messages: int
    has_more: bool
