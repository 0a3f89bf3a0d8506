from unittest.mock import patch, Mock
import uuid

from django.test import TestCase

from authentication.models import User
from chat.llm import AIAuthError, AIConfigError
from chat.models import ChatSession, Message, MessageStatus, DEFAULT_SESSION_NAME
from chat.service import ChatService, SessionNotFound


class ChatServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create(email="sam@example.com", name="Sam")
        self.other = User.objects.create(email="kim@example.com", name="Kim")
        self.provider = Mock()
        self.provider.name = "fake"
        self.provider.complete.return_value = "Sure, let's talk."
        self.service = ChatService(provider=self.provider)

    def test_create_session_strips_and_defaults_name(self):
        self.assertEqual(self.service.create_session(self.user, "   ").name, DEFAULT_SESSION_NAME)
        self.assertEqual(self.service.create_session(self.user, " Goals ").name, "Goals")

    def test_get_session_scoped_to_owner(self):
        session = self.service.create_session(self.user)
        with self.assertRaises(SessionNotFound):
            self.service.get_session(self.other, session.id)

    def test_send_message_assigns_consecutive_seqs(self):
        session = self.service.create_session(self.user)
        first = self.service.send_message(self.user, session.id, "hello")
        second = self.service.send_message(self.user, session.id, "again")

        self.assertEqual(first.user_message.seq, 1)
        self.assertEqual(first.ai_response.seq, 2)
        self.assertEqual(second.user_message.seq, 3)
        self.assertEqual(second.ai_response.seq, 4)
        self.assertEqual(second.session.version, 4)
        self.assertEqual(
            list(Message.objects.filter(session=session).values_list("seq", flat=True)),
            [1, 2, 3, 4],
        )

    def test_user_message_ends_up_sent(self):
        session = self.service.create_session(self.user)
        turn = self.service.send_message(self.user, session.id, "hello")
        self.assertEqual(turn.user_message.status, MessageStatus.SENT)
        self.assertEqual(Message.objects.get(pk=turn.user_message.pk).status, MessageStatus.SENT)

    def test_explicitly_named_session_still_gets_title(self):
        session = self.service.create_session(self.user, "My notes")
        turn = self.service.send_message(self.user, session.id, "Help me learn Python skills")
        self.assertEqual(turn.session.name, "Skill Development")

    def test_title_not_reset_after_failed_first_reply(self):
        session = self.service.create_session(self.user)
        self.provider.complete.side_effect = AIAuthError("401")
        self.service.send_message(self.user, session.id, "Resume help please")
        self.provider.complete.side_effect = None
        turn = self.service.send_message(self.user, session.id, "What about interviews?")
        self.assertEqual(turn.session.name, "Resume Review")

    @patch("chat.service.capture_ai_failure")
    def test_provider_failure_is_reported(self, mock_capture):
        session = self.service.create_session(self.user)
        self.provider.complete.side_effect = AIAuthError("401")

        with self.assertLogs("chat.service", level="ERROR"):
            turn = self.service.send_message(self.user, session.id, "hi")

        self.assertIsNone(turn.ai_response)
        self.assertEqual(turn.ai_error, AIAuthError.user_message)
        mock_capture.assert_called_once()
        self.assertEqual(mock_capture.call_args.kwargs["provider"], "fake")

    def test_session_deleted_mid_turn_is_not_found(self):
        session = self.service.create_session(self.user)

        def delete_then_reply(turns):
            ChatSession.objects.filter(pk=session.id).delete()
            return "too late"

        self.provider.complete.side_effect = delete_then_reply
        with self.assertRaises(SessionNotFound):
            self.service.send_message(self.user, session.id, "hello")
        self.assertFalse(Message.objects.filter(session_id=session.id).exists())

    def test_append_to_missing_session_is_not_found(self):
        with self.assertRaises(SessionNotFound):
            self.service._append_message(uuid.uuid4(), "user", "hi", MessageStatus.SENT)

    def test_missing_provider_degrades_to_config_error(self):
        service = ChatService()
        session = service.create_session(self.user)
        turn = service.send_message(self.user, session.id, "hi")
        self.assertIsNone(turn.ai_response)
        self.assertEqual(turn.ai_error, AIConfigError.user_message)
        self.assertEqual(Message.objects.filter(session=session).count(), 1)

    def test_page_window(self):
        session = self.service.create_session(self.user)
        for i in range(3):
            self.service.send_message(self.user, session.id, f"q{i}")

        page = self.service.get_session_page(self.user, session.id, limit=4, offset=1)
        self.assertEqual([m.seq for m in page.messages], [2, 3, 4, 5])
        self.assertEqual(page.total_messages, 6)
        self.assertTrue(page.has_more)

    def test_delete_is_owner_scoped(self):
        session = self.service.create_session(self.user)
        with self.assertRaises(SessionNotFound):
            self.service.delete_session(self.other, session.id)
        self.assertTrue(ChatSession.objects.filter(pk=session.id).exists())

        self.service.delete_session(self.user, session.id)
        self.assertFalse(ChatSession.objects.filter(pk=session.id).exists())

    def test_rename_truncates(self):
        session = self.service.create_session(self.user)
        renamed = self.service.rename_session(self.user, session.id, "n" * 200)
        self.assertEqual(len(renamed.name), 120)
