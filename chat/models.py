from django.db import models
import uuid

from authentication.models import User

DEFAULT_SESSION_NAME = "New Chat Session"


class MessageStatus(models.TextChoices):
    SENDING = "sending", "sending"
    SENT = "sent", "sent"
    # never set by any write path
    DELIVERED = "delivered", "delivered"
    READ = "read", "read"


class MessageRole(models.TextChoices):
    USER = "user", "user"
    ASSISTANT = "assistant", "assistant"


class ChatSession(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="chat_sessions")
    name = models.CharField(max_length=120, default=DEFAULT_SESSION_NAME)
    # bumped once per inserted message; Message.seq takes the bumped value
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [models.Index(fields=["user", "-updated_at"], name="chat_session_user_updated_idx")]

    def __str__(self):
        return f"{self.name} ({self.user_id})"


class Message(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(ChatSession, on_delete=models.CASCADE, related_name="messages")
    role = models.CharField(max_length=10, choices=MessageRole.choices)
    content = models.TextField()
    status = models.CharField(max_length=10, choices=MessageStatus.choices, default=MessageStatus.SENDING)
    seq = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["seq"]
        constraints = [
            models.UniqueConstraint(fields=["session", "seq"], name="unique_message_seq_per_session"),
        ]

    def __str__(self):
        return f"{self.role}#{self.seq}: {self.content[:40]}"
