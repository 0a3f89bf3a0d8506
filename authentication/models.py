from django.db import models
import uuid


class User(models.Model):
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    email = models.EmailField(
        unique=True
    )
    name = models.CharField(
        max_length=150,
        blank=True,
        default=''
    )
    image = models.URLField(
        max_length=500,
        blank=True,
        default=''
    )
    # Empty for accounts created through an external OAuth login
    password = models.CharField(
        max_length=255,
        blank=True,
        default=''
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    def __str__(self):
        return self.email

    @property
    def is_authenticated(self):
        """
        A user loaded from the session is authenticated when the row exists
        and the account is active.
        """
        if not getattr(self, 'id', None):
            return False
        return bool(self.is_active)

    @property
    def is_anonymous(self):
        return False

    @property
    def has_password(self):
        return bool(self.password)
