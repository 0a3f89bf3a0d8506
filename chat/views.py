# chat/views.py
from django.conf import settings
from django_ratelimit.decorators import ratelimit
from rest_framework.decorators import api_view
from rest_framework.response import Response
import logging

from .llm import AIProviderError, build_provider
from .monitoring import track_chat_operation
from .serializers import (
    ChatSessionSerializer,
    CreateSessionSerializer,
    MessageSerializer,
    RenameSessionSerializer,
    SendMessageSerializer,
    SessionHeaderSerializer,
    SessionPageQuerySerializer,
    first_error,
)
from .service import ChatService, SessionNotFound

log = logging.getLogger(__name__)


def _chat_service(*, needs_provider: bool = False) -> ChatService:
    provider = None
    if needs_provider:
        try:
            provider = build_provider()
        except AIProviderError as exc:
            # the turn still persists; the service reports the missing provider as ai_error
            log.error("ai_provider_unavailable err=%s", exc)
    return ChatService(provider=provider)


def _invalid(serializer) -> Response:
    return Response({"error": first_error(serializer.errors), "errors": serializer.errors}, status=400)


def _not_found(exc: SessionNotFound) -> Response:
    return Response({"error": exc.message}, status=404)


def _send_rate(group, request):
    return settings.CHAT_SEND_RATE


@api_view(["GET", "POST"])
@track_chat_operation("sessions")
def sessions(request):
    """GET: list the caller's sessions (newest activity first)
       POST: create a new empty session
    """
    service = _chat_service()

    if request.method == "GET":
        qs = service.list_sessions(request.user)
        return Response({"sessions": ChatSessionSerializer(qs, many=True).data}, status=200)

    payload = CreateSessionSerializer(data=request.data or {})
    if not payload.is_valid():
        return _invalid(payload)
    session = service.create_session(request.user, payload.validated_data.get("name"))
    return Response(ChatSessionSerializer(session).data, status=201)


@api_view(["GET", "PATCH", "DELETE"])
@track_chat_operation("session_detail")
def session_detail(request, sid):
    service = _chat_service()

    if request.method == "GET":
        query = SessionPageQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return _invalid(query)
        try:
            page = service.get_session_page(request.user, sid, **query.validated_data)
        except SessionNotFound as exc:
            return _not_found(exc)
        data = SessionHeaderSerializer(page.session).data
        data.update({
            "messages": MessageSerializer(page.messages, many=True).data,
            "total_messages": page.total_messages,
            "has_more": page.has_more,
        })
        return Response(data, status=200)

    if request.method == "PATCH":
        payload = RenameSessionSerializer(data=request.data or {})
        if not payload.is_valid():
            return _invalid(payload)
        try:
            session = service.rename_session(request.user, sid, payload.validated_data["name"])
        except SessionNotFound as exc:
            return _not_found(exc)
        return Response(SessionHeaderSerializer(session).data, status=200)

    # DELETE
    try:
        service.delete_session(request.user, sid)
    except SessionNotFound as exc:
        return _not_found(exc)
    return Response({"success": True}, status=200)


@api_view(["POST"])
@track_chat_operation("send_message")
@ratelimit(key="user", rate=_send_rate, method="POST", block=False)
def send_message(request, sid):
    """
    Persist the user message, ask the provider and persist its reply.

    - 400 + {"error": ...} for blank/oversized content
    - 404 if the session is not the caller's
    - 429 when the caller exceeds CHAT_SEND_RATE
    - 200 + {"user_message", "ai_response", "ai_error", "session"}; an AI
      failure yields ai_response=null rather than an error status
    """
    if getattr(request, "limited", False):
        log.warning("chat_send_rate_limited user=%s", request.user.id)
        return Response({"error": "Too many requests. Please try again later."}, status=429)

    payload = SendMessageSerializer(data=request.data or {})
    if not payload.is_valid():
        return _invalid(payload)

    try:
        turn = _chat_service(needs_provider=True).send_message(request.user, sid, payload.validated_data["content"])
    except SessionNotFound as exc:
        return _not_found(exc)

    return Response({
        "user_message": MessageSerializer(turn.user_message).data,
        "ai_response": MessageSerializer(turn.ai_response).data if turn.ai_response else None,
        "ai_error": turn.ai_error,
        "session": SessionHeaderSerializer(turn.session).data,
    }, status=200)
