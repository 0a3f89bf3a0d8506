# chat/service.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from .llm import AIConfigError, AIProviderError, ChatProvider, Turn
from .models import ChatSession, Message, MessageRole, MessageStatus, DEFAULT_SESSION_NAME
from .monitoring import add_breadcrumb, capture_ai_failure
from .titles import generate_title

log = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class SessionNotFound(Exception):
    """The session does not exist or belongs to another user."""

    def __init__(self, message: str = "Session not found"):
        super().__init__(message)
        self.message = message


@dataclass
class SessionPage:
    session: ChatSession
    messages: List[Message]
    total_messages: int
    has_more: bool


@dataclass
class TurnResult:
    session: ChatSession
    user_message: Message
    ai_response: Optional[Message]
    ai_error: Optional[str]


class ChatService:
    """
    Chat procedures for one request. Every read and mutation is scoped to the
    owning user; the AI provider is injected so callers and tests pick it.
    """

    def __init__(self, provider: Optional[ChatProvider] = None):
        self.provider = provider

    # ----- reads -----

    def list_sessions(self, user) -> QuerySet:
        return (
            ChatSession.objects.filter(user=user)
            .prefetch_related("messages")
            .order_by("-updated_at", "-created_at")
        )

    def get_session(self, user, session_id) -> ChatSession:
        try:
            return ChatSession.objects.get(pk=session_id, user=user)
        except ChatSession.DoesNotExist:
            raise SessionNotFound()

    def get_session_page(self, user, session_id, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> SessionPage:
        """
        Newest-first window of `limit` messages skipping `offset`, returned
        oldest to newest.
        """
        session = self.get_session(user, session_id)
        total = session.messages.count()
        window = list(session.messages.order_by("-seq")[offset:offset + limit])
        window.reverse()
        return SessionPage(
            session=session,
            messages=window,
            total_messages=total,
            has_more=total > offset + limit,
        )

    # ----- mutations -----

    def create_session(self, user, name: Optional[str] = None) -> ChatSession:
        session = ChatSession.objects.create(user=user, name=(name or "").strip() or DEFAULT_SESSION_NAME)
        log.info("chat_session_created sid=%s user=%s", session.id, user.id)
        return session

    def rename_session(self, user, session_id, name: str) -> ChatSession:
        session = self.get_session(user, session_id)
        session.name = name.strip()[:120]
        session.save(update_fields=["name", "updated_at"])
        return session

    def delete_session(self, user, session_id) -> None:
        # owner filter in the delete itself; a foreign id matches zero rows
        deleted, _ = ChatSession.objects.filter(pk=session_id, user=user).delete()
        if not deleted:
            log.warning("chat_session_delete_denied sid=%s user=%s", session_id, user.id)
            raise SessionNotFound("Session not found or no permission")
        log.info("chat_session_deleted sid=%s user=%s", session_id, user.id)

    def send_message(self, user, session_id, content: str) -> TurnResult:
        """
        One chat turn. The user message always persists; the assistant reply
        persists only when the provider answers. Provider failures are logged
        and reported as `ai_error` instead of propagating.
        """
        session = self.get_session(user, session_id)

        # 1) user message as "sending" (also touches updated_at/version)
        user_msg = self._append_message(session.pk, MessageRole.USER, content, MessageStatus.SENDING)

        # 2) sending -> sent
        Message.objects.filter(pk=user_msg.pk).update(status=MessageStatus.SENT)
        user_msg.status = MessageStatus.SENT

        # 3) title from the first user message, decided by seq so it happens once
        is_first = not Message.objects.filter(
            session_id=session.pk, role=MessageRole.USER, seq__lt=user_msg.seq
        ).exists()
        if is_first:
            title = generate_title(content)
            ChatSession.objects.filter(pk=session.pk).update(name=title)
            log.info("chat_session_titled sid=%s title=%r", session.pk, title)

        # 4) history for context
        history = self._history(session.pk)

        # 5) provider call
        ai_msg: Optional[Message] = None
        ai_error: Optional[str] = None
        add_breadcrumb("Calling AI provider", category="chat.ai", data={"turns": len(history)})
        try:
            if self.provider is None:
                raise AIConfigError("no AI provider configured")
            reply = self.provider.complete(history)
        except Exception as exc:
            ai_error = getattr(exc, "user_message", AIProviderError.user_message)
            log.exception("ai_generation_failed sid=%s err=%s", session.pk, type(exc).__name__)
            capture_ai_failure(exc, session_id=str(session.pk), provider=getattr(self.provider, "name", "unknown"))
        else:
            ai_msg = self._append_message(session.pk, MessageRole.ASSISTANT, reply, MessageStatus.SENT)

        try:
            session.refresh_from_db()
        except ChatSession.DoesNotExist:
            raise SessionNotFound()
        return TurnResult(session=session, user_message=user_msg, ai_response=ai_msg, ai_error=ai_error)

    # ----- internals -----

    def _append_message(self, session_id, role: str, content: str, status: str) -> Message:
        """Insert a message at the next session version and touch the session."""
        with transaction.atomic():
            touched = ChatSession.objects.filter(pk=session_id).update(
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
            if not touched:
                # deleted after the ownership check
                log.warning("chat_session_vanished sid=%s", session_id)
                raise SessionNotFound()
            seq = ChatSession.objects.filter(pk=session_id).values_list("version", flat=True).get()
            return Message.objects.create(
                session_id=session_id,
                role=role,
                content=content,
                status=status,
                seq=seq,
            )

    def _history(self, session_id) -> List[Turn]:
        return [
            {"role": role, "content": content}
            for role, content in Message.objects.filter(session_id=session_id)
            .order_by("seq")
            .values_list("role", "content")
        ]
