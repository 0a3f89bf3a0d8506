# chat_client/transport.py
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30
_UNSAFE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class ApiError(Exception):
    """A chat API call failed; `status` is None for network errors."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "detail"):
            if body.get(key):
                return str(body[key])
    return response.text or f"HTTP {response.status_code}"


class HttpChatApi:
    """
    Remote procedures of the chat backend over HTTP.

    Uses a cookie-carrying requests.Session; the CSRF token is fetched once
    and sent with every unsafe request.
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT_S):
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()
        self.timeout = timeout
        self._csrf_token: Optional[str] = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _csrf(self) -> str:
        if self._csrf_token is None:
            data = self._request("GET", "/auth/csrf/")
            self._csrf_token = data.get("csrfToken", "")
        return self._csrf_token

    def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if method in _UNSAFE_METHODS:
            headers["X-CSRFToken"] = self._csrf()
        try:
            response = self.http.request(
                method, self._url(path), json=json, params=params, headers=headers, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("chat_api_unreachable method=%s path=%s err=%s", method, path, exc)
            raise ApiError(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.info("chat_api_error method=%s path=%s status=%s msg=%s", method, path, response.status_code, message)
            raise ApiError(message, status=response.status_code)
        if not response.content:
            return {}
        return response.json()

    # ----- auth -----

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login/", json={"email": email, "password": password})
        # the session key rotates on login, and the CSRF token with it
        self._csrf_token = None
        return data.get("user", {})

    def logout(self) -> None:
        self._request("POST", "/auth/logout/")
        self._csrf_token = None

    # ----- chat -----

    def get_sessions(self):
        return self._request("GET", "/api/chat/sessions/").get("sessions", [])

    def get_session(self, session_id: str, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        return self._request("GET", f"/api/chat/sessions/{session_id}/", params={"limit": limit, "offset": offset})

    def create_session(self, name: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/api/chat/sessions/", json={"name": name} if name else {})

    def send_message(self, session_id: str, content: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/chat/sessions/{session_id}/messages/", json={"content": content})

    def delete_session(self, session_id: str) -> bool:
        return bool(self._request("DELETE", f"/api/chat/sessions/{session_id}/").get("success"))

    def rename_session(self, session_id: str, name: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/chat/sessions/{session_id}/", json={"name": name})
