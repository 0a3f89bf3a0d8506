# chat_client/hook.py
"""
Session sync hook: cached server state plus optimistic local messages.

While a send is in flight the local list is authoritative. Otherwise a
server snapshot is merged only when its session version is newer than the
last version this hook confirmed, and the merge is a union keyed by `seq`,
so a stale snapshot never shortens the local list.
"""
import itertools
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .cache import QueryCache
from .notifier import Notifier
from .state import (
    TEMP_ID_PREFIX,
    ChatMessage,
    Confirmed,
    Failed,
    Pending,
    SessionSnapshot,
    SessionSummary,
    SessionView,
)
from .transport import ApiError

logger = logging.getLogger(__name__)

SESSIONS_KEY = ("sessions",)
DEFAULT_PAGE_SIZE = 50
_NO_VERSION = -1


def session_key(session_id: str, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0):
    return ("session", session_id, limit, offset)


class ChatSessionHook:
    """
    Client view of the chat sessions of one user.

    Reads: `sessions`, `current_session`, `messages`, `has_more_messages`.
    Mutations: `create_session`, `send_message` (optimistic), `delete_session`
    (optimistic with compensation), `rename_session` (fire-and-forget) and
    `load_more_messages`. Failures surface through `notifier`.
    """

    def __init__(self, api, session_id: Optional[str] = None, *, cache: Optional[QueryCache] = None,
                 notifier: Optional[Notifier] = None, page_size: int = DEFAULT_PAGE_SIZE):
        self.api = api
        self.cache = cache or QueryCache()
        self.notifier = notifier or Notifier()
        self.page_size = page_size
        self.is_sending = False
        self.last_failure: Optional[Failed] = None
        self._temp_ids = itertools.count(1)
        self.session_id: Optional[str] = None
        self.select_session(session_id)

    # ----- queries -----

    @property
    def sessions(self) -> List[SessionSummary]:
        return self.cache.fetch(
            SESSIONS_KEY,
            lambda: [SessionSummary.from_api(data) for data in self.api.get_sessions()],
        )

    @property
    def current_session(self) -> Optional[SessionView]:
        if self.session_id is None:
            return None
        try:
            snapshot = self._load_snapshot()
        except ApiError as exc:
            self.notifier.error(f"Failed to load session: {exc.message}")
            raise
        confirmed = self._confirmed()
        return SessionView(
            id=snapshot.id,
            name=snapshot.name,
            created_at=snapshot.created_at,
            updated_at=snapshot.updated_at,
            version=max(snapshot.version, self._version),
            messages=list(self._local),
            total_messages=max(self._total, len(confirmed)),
            has_more=self._total > len(confirmed),
        )

    @property
    def messages(self) -> List[ChatMessage]:
        view = self.current_session
        return view.messages if view else []

    @property
    def has_more_messages(self) -> bool:
        """From local state only; read `current_session` first to load it."""
        return self._total > len(self._confirmed())

    def select_session(self, session_id: Optional[str]) -> None:
        if session_id is not None:
            session_id = str(session_id)
        if session_id == self.session_id and session_id is not None:
            return
        self.session_id = session_id
        self._local: List[ChatMessage] = []
        self._version = _NO_VERSION
        self._total = 0

    def refresh(self) -> None:
        self.cache.invalidate()

    # ----- mutations -----

    def create_session(self, name: Optional[str] = None) -> SessionSummary:
        try:
            data = self.api.create_session(name)
        except ApiError as exc:
            self.notifier.error(f"Failed to create session: {exc.message}")
            raise
        self.cache.invalidate(SESSIONS_KEY)
        self.notifier.success("New chat session created!")
        return SessionSummary.from_api(data)

    def send_message(self, content: str) -> Confirmed:
        """
        Optimistically append `content`, then swap in the server's turn.

        On failure the optimistic entry is removed, an error notification is
        raised and the ApiError propagates. No retry.
        """
        if self.session_id is None:
            raise ValueError("No chat session selected")
        session_id = self.session_id
        try:
            self._load_snapshot()
        except ApiError as exc:
            self.notifier.error(f"Failed to send message: {exc.message}")
            raise

        local_id = f"{TEMP_ID_PREFIX}{next(self._temp_ids)}"
        self._local.append(ChatMessage(
            id=local_id,
            content=content,
            role="user",
            status="sending",
            created_at=datetime.now(timezone.utc),
            state=Pending(local_id),
        ))
        self.is_sending = True
        try:
            try:
                data = self.api.send_message(session_id, content)
            except ApiError as exc:
                self._local = [m for m in self._local if m.id != local_id]
                self.last_failure = Failed(local_id, exc.message)
                self.notifier.error(f"Failed to send message: {exc.message}")
                raise

            turn = [ChatMessage.from_api(data["user_message"])]
            if data.get("ai_response"):
                turn.append(ChatMessage.from_api(data["ai_response"]))
            self._local = [m for m in self._local if m.id != local_id]
            self._merge(turn)
            self._total += len(turn)

            header = data.get("session") or {}
            server_version = int(header.get("version", 0))
            if server_version == self._version + len(turn):
                self._version = server_version
            else:
                # someone else wrote to this session; pick it up on the next read
                logger.info("chat_session_diverged sid=%s local=%s server=%s", session_id, self._version, server_version)
                self.cache.invalidate(("session", session_id))

            self.cache.update(
                session_key(session_id, self.page_size),
                lambda snap: snap.with_turn(turn, version=server_version, name=header.get("name")),
            )
            self.cache.invalidate(SESSIONS_KEY)

            if data.get("ai_error"):
                self.notifier.warning(data["ai_error"])
            return Confirmed(turn[0].id)
        finally:
            self.is_sending = False

    def delete_session(self, session_id: str) -> bool:
        session_id = str(session_id)
        self.cache.update(SESSIONS_KEY, lambda sessions: [s for s in sessions if s.id != session_id])
        self.cache.remove(("session", session_id))
        try:
            self.api.delete_session(session_id)
        except ApiError as exc:
            self.cache.invalidate(SESSIONS_KEY)
            self.notifier.error(f"Failed to delete session: {exc.message}")
            return False

        self.cache.invalidate()
        if session_id == self.session_id:
            self.select_session(None)
        self.notifier.success("Session deleted!")
        return True

    def rename_session(self, session_id: str, name: str) -> None:
        session_id = str(session_id)
        try:
            self.api.rename_session(session_id, name)
        except ApiError as exc:
            self.notifier.error(f"Failed to rename session: {exc.message}")
            return
        self.cache.invalidate(SESSIONS_KEY)
        self.cache.invalidate(("session", session_id))

    def load_more_messages(self) -> List[ChatMessage]:
        """Fetch the next older page and merge it; returns the messages it added."""
        if self.session_id is None or not self.has_more_messages:
            return []
        offset = len(self._confirmed())
        session_id = self.session_id
        try:
            page = self.cache.fetch(
                session_key(session_id, self.page_size, offset),
                lambda: SessionSnapshot.from_api(self.api.get_session(session_id, self.page_size, offset)),
            )
        except ApiError as exc:
            self.notifier.error(f"Failed to load messages: {exc.message}")
            return []
        known = {m.seq for m in self._confirmed()}
        added = [m for m in page.messages if m.seq not in known]
        self._merge(added)
        self._total = max(self._total, page.total_messages)
        return added

    # ----- internals -----

    def _load_snapshot(self) -> SessionSnapshot:
        session_id = self.session_id
        snapshot = self.cache.fetch(
            session_key(session_id, self.page_size),
            lambda: SessionSnapshot.from_api(self.api.get_session(session_id, self.page_size, 0)),
        )
        self._sync(snapshot)
        return snapshot

    def _sync(self, snapshot: SessionSnapshot) -> bool:
        if self.is_sending or snapshot.id != self.session_id:
            return False
        if snapshot.version <= self._version:
            return False
        self._merge(snapshot.messages)
        self._version = snapshot.version
        self._total = max(snapshot.total_messages, len(self._confirmed()))
        return True

    def _confirmed(self) -> List[ChatMessage]:
        return [m for m in self._local if m.seq is not None]

    def _merge(self, messages: Iterable[ChatMessage]) -> None:
        by_seq = {m.seq: m for m in self._confirmed()}
        for message in messages:
            by_seq[message.seq] = message
        pending = [m for m in self._local if m.seq is None]
        self._local = [by_seq[seq] for seq in sorted(by_seq)] + pending
