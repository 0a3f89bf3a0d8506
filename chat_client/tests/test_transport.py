from unittest.mock import Mock

import requests
from django.test import SimpleTestCase

from chat_client.transport import ApiError, HttpChatApi


def _response(status=200, body=None, text=None):
    resp = Mock(status_code=status)
    if body is None:
        resp.json.side_effect = ValueError("no json")
        resp.content = (text or "").encode()
    else:
        resp.json.return_value = body
        resp.content = b"{...}"
    resp.text = text or ""
    return resp


class HttpChatApiTests(SimpleTestCase):
    def setUp(self):
        self.http = Mock(spec=requests.Session)
        self.api = HttpChatApi("https://careers.example.com/", session=self.http, timeout=5)

    def test_get_session_passes_paging(self):
        self.http.request.return_value = _response(body={"id": "s1", "messages": []})
        data = self.api.get_session("s1", limit=20, offset=40)

        self.assertEqual(data["id"], "s1")
        method, url = self.http.request.call_args[0]
        kwargs = self.http.request.call_args.kwargs
        self.assertEqual((method, url), ("GET", "https://careers.example.com/api/chat/sessions/s1/"))
        self.assertEqual(kwargs["params"], {"limit": 20, "offset": 40})
        self.assertEqual(kwargs["timeout"], 5)
        self.assertNotIn("X-CSRFToken", kwargs["headers"])

    def test_unsafe_requests_carry_csrf_token(self):
        self.http.request.side_effect = [
            _response(body={"csrfToken": "tok"}),
            _response(body={"user_message": {}}),
            _response(body={"success": True}),
        ]
        self.api.send_message("s1", "hi")
        self.assertTrue(self.api.delete_session("s1"))

        calls = self.http.request.call_args_list
        self.assertEqual(calls[0][0], ("GET", "https://careers.example.com/auth/csrf/"))
        self.assertEqual(calls[1].kwargs["json"], {"content": "hi"})
        self.assertEqual(calls[1].kwargs["headers"]["X-CSRFToken"], "tok")
        self.assertEqual(calls[2][0][0], "DELETE")
        self.assertEqual(len(calls), 3)

    def test_error_body_becomes_api_error(self):
        self.http.request.side_effect = [
            _response(body={"csrfToken": "tok"}),
            _response(status=404, body={"error": "Session not found"}),
        ]
        with self.assertRaises(ApiError) as ctx:
            self.api.rename_session("s1", "x")
        self.assertEqual(ctx.exception.message, "Session not found")
        self.assertEqual(ctx.exception.status, 404)

    def test_drf_detail_and_plain_text_errors(self):
        self.http.request.return_value = _response(status=403, body={"detail": "Authentication credentials were not provided."})
        with self.assertRaises(ApiError) as ctx:
            self.api.get_sessions()
        self.assertEqual(ctx.exception.message, "Authentication credentials were not provided.")

        self.http.request.return_value = _response(status=502, text="Bad Gateway")
        with self.assertRaises(ApiError) as ctx:
            self.api.get_sessions()
        self.assertEqual(ctx.exception.message, "Bad Gateway")

    def test_network_error(self):
        self.http.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ApiError) as ctx:
            self.api.get_sessions()
        self.assertIsNone(ctx.exception.status)
        self.assertIn("refused", ctx.exception.message)

    def test_login_resets_csrf_token(self):
        self.http.request.side_effect = [
            _response(body={"csrfToken": "before"}),
            _response(body={"user": {"email": "a@example.com"}}),
            _response(body={"csrfToken": "after"}),
            _response(body={"id": "s1"}),
        ]
        user = self.api.login("a@example.com", "Secret123")
        self.api.create_session()

        self.assertEqual(user["email"], "a@example.com")
        calls = self.http.request.call_args_list
        self.assertEqual(calls[3].kwargs["headers"]["X-CSRFToken"], "after")
        self.assertEqual(calls[3].kwargs["json"], {})
