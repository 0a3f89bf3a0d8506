from rest_framework import serializers

from .models import ChatSession, Message
from .service import DEFAULT_PAGE_SIZE

MAX_PAGE_SIZE = 100
MAX_CONTENT_CHARS = 8000


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ['id', 'content', 'role', 'status', 'seq', 'created_at']
        read_only_fields = fields


class ChatSessionSerializer(serializers.ModelSerializer):
    messages = MessageSerializer(many=True, read_only=True)

    class Meta:
        model = ChatSession
        fields = ['id', 'name', 'created_at', 'updated_at', 'version', 'messages']
        read_only_fields = fields


class SessionHeaderSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChatSession
        fields = ['id', 'name', 'created_at', 'updated_at', 'version']
        read_only_fields = fields


class CreateSessionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, required=False, allow_blank=True)


class RenameSessionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)


class SendMessageSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MAX_CONTENT_CHARS)


class SessionPageQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=MAX_PAGE_SIZE, default=DEFAULT_PAGE_SIZE)
    offset = serializers.IntegerField(min_value=0, default=0)


def first_error(errors) -> str:
    """Pick one human-readable message out of DRF's nested error structure."""
    if isinstance(errors, dict):
        for field, value in errors.items():
            msg = first_error(value)
            if msg:
                return msg if field == "non_field_errors" else f"{field}: {msg}"
        return ""
    if isinstance(errors, (list, tuple)):
        for value in errors:
            msg = first_error(value)
            if msg:
                return msg
        return ""
    return str(errors)
