from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from authentication.models import User
from chat.models import ChatSession, Message


class Command(BaseCommand):
    help = "Delete chat sessions and their messages (all users, or one user with --email)."

    def add_arguments(self, parser):
        parser.add_argument("--email", help="Only clear the chats of this user.")

    def handle(self, *args, **options):
        email = options.get("email")
        sessions = ChatSession.objects.all()
        messages = Message.objects.all()

        if email:
            try:
                user = User.objects.get(email=email.lower().strip())
            except User.DoesNotExist:
                raise CommandError(f"No user with email {email}")
            sessions = sessions.filter(user=user)
            messages = messages.filter(session__user=user)

        self.stdout.write("Clearing chat sessions and messages...")
        with transaction.atomic():
            # messages first, then the sessions that owned them
            deleted_messages, _ = messages.delete()
            deleted_sessions, _ = sessions.delete()

        self.stdout.write(f"Deleted {deleted_messages} messages")
        self.stdout.write(f"Deleted {deleted_sessions} chat sessions")
        self.stdout.write(self.style.SUCCESS("Chat data cleared."))
