# chat/llm.py

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from django.conf import settings
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
import openai

logger = logging.getLogger(__name__)


# ===== Exceptions =====
class AIProviderError(RuntimeError):
    user_message = "Failed to generate AI response. Please try again later."

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.user_message)


class AIRateLimited(AIProviderError):
    user_message = (
        "AI service is currently rate limited. Please try again in a few minutes, "
        "or consider upgrading your API plan for higher limits."
    )


class AIAuthError(AIProviderError):
    user_message = "AI service authentication failed. Please check your API key configuration."


class AIForbidden(AIProviderError):
    user_message = "AI service access forbidden. Please check your account permissions."


class AIConfigError(AIProviderError):
    user_message = "AI service is not configured. Please contact the administrator."


# ===== Base config =====

SYSTEM_PROMPT = (
    "You are a professional career counselor AI. Provide complete, well-structured career "
    "advice that fully answers the user's question. Use clear sections with headers, bullet "
    "points for key information, and brief explanations. Keep responses focused and "
    "actionable but ensure they are complete - don't cut off important information. Aim for "
    "comprehensive but concise responses that provide real value."
)

MAX_TOKENS = 600
TEMPERATURE = 0.7

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_S = 30

FALLBACK_REPLY = "I apologize, but I couldn't generate a response right now."

Turn = Dict[str, str]


class ChatProvider(Protocol):
    def complete(self, turns: Sequence[Turn]) -> str: ...


# ===== Response helpers =====

def _extract_text(resp) -> str:
    """
    Safely extract text from Gemini SDK / mock responses.

    Supports resp.candidates[..].content.parts[..].text, resp.text and plain strings.
    Always returns a str.
    """
    if isinstance(resp, str):
        return resp.strip()

    candidates = getattr(resp, "candidates", None) or []
    for c in candidates:
        content = getattr(c, "content", None)
        parts = getattr(content, "parts", None) or []
        for p in parts:
            txt = getattr(p, "text", "") or ""
            if isinstance(txt, str) and txt.strip():
                return txt.strip()

    try:
        t = getattr(resp, "text", "") or ""
    except ValueError:
        # the SDK raises when the response carries no parts
        return ""
    return t.strip() if isinstance(t, str) else ""


def _translate_openai_error(exc: Exception) -> AIProviderError:
    status = getattr(exc, "status_code", None)
    code = getattr(exc, "code", None)
    if status == 429 or code == "rate_limit_exceeded":
        return AIRateLimited(str(exc))
    if status == 401:
        return AIAuthError(str(exc))
    if status == 403:
        return AIForbidden(str(exc))
    return AIProviderError(str(exc))


def _translate_google_error(exc: Exception) -> AIProviderError:
    if isinstance(exc, google_exceptions.ResourceExhausted):
        return AIRateLimited(str(exc))
    if isinstance(exc, google_exceptions.Unauthenticated):
        return AIAuthError(str(exc))
    if isinstance(exc, google_exceptions.PermissionDenied):
        return AIForbidden(str(exc))
    return AIProviderError(str(exc))


# ===== Providers =====

class OpenAIChatProvider:
    """Adapter over the OpenAI chat-completions API (or any compatible base URL)."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        model: str | None = None,
        base_url: str | None = None,
        timeout_s: int = DEFAULT_TIMEOUT_S,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model or DEFAULT_OPENAI_MODEL
        self.base_url = base_url
        self.timeout_s = timeout_s
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise AIConfigError("AI_API_KEY missing")
        self._client = openai.OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout_s,
            max_retries=0,
        )
        return self._client

    def complete(self, turns: Sequence[Turn]) -> str:
        client = self._get_client()
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend({"role": t["role"], "content": t["content"]} for t in turns)

        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
                stream=False,
            )
        except Exception as e:
            logger.warning("openai_completion_failed model=%s err=%s", self.model, type(e).__name__)
            raise _translate_openai_error(e) from e

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not isinstance(content, str) or not content.strip():
            return FALLBACK_REPLY
        return content.strip()


class GeminiChatProvider:
    """Adapter over google.generativeai GenerativeModel."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        *,
        model: str | None = None,
        timeout_s: int = DEFAULT_TIMEOUT_S,
        model_client: Any = None,
    ):
        self.api_key = api_key
        self.model = model or DEFAULT_GEMINI_MODEL
        self.timeout_s = timeout_s
        self._model_client = model_client

    def _get_model(self):
        if self._model_client is not None:
            return self._model_client
        if not self.api_key:
            raise AIConfigError("AI_API_KEY missing")
        try:
            genai.configure(api_key=self.api_key)
            self._model_client = genai.GenerativeModel(self.model, system_instruction=SYSTEM_PROMPT)
        except Exception as e:
            raise AIConfigError(f"gemini_config_error: {e}") from e
        return self._model_client

    @staticmethod
    def _to_contents(turns: Sequence[Turn]) -> List[Dict[str, Any]]:
        return [
            {"role": "model" if t["role"] == "assistant" else "user", "parts": [t["content"]]}
            for t in turns
        ]

    def complete(self, turns: Sequence[Turn]) -> str:
        model = self._get_model()
        try:
            resp = model.generate_content(
                self._to_contents(turns),
                generation_config={"temperature": TEMPERATURE, "max_output_tokens": MAX_TOKENS},
                request_options={"timeout": self.timeout_s},
            )
        except Exception as e:
            logger.warning("gemini_completion_failed model=%s err=%s", self.model, type(e).__name__)
            raise _translate_google_error(e) from e

        fb = getattr(resp, "prompt_feedback", None)
        if fb and getattr(fb, "block_reason", None):
            raise AIProviderError(f"blocked: {fb.block_reason}")

        return _extract_text(resp) or FALLBACK_REPLY


def build_provider(name: Optional[str] = None) -> ChatProvider:
    """Construct the configured provider from Django settings."""
    provider_name = (name or getattr(settings, "AI_PROVIDER", "") or OpenAIChatProvider.name).lower()
    api_key = getattr(settings, "AI_API_KEY", "")
    model = getattr(settings, "AI_MODEL", "") or None
    timeout_s = getattr(settings, "AI_TIMEOUT_S", DEFAULT_TIMEOUT_S)

    if provider_name == OpenAIChatProvider.name:
        return OpenAIChatProvider(
            api_key,
            model=model,
            base_url=getattr(settings, "AI_BASE_URL", None),
            timeout_s=timeout_s,
        )
    if provider_name == GeminiChatProvider.name:
        return GeminiChatProvider(api_key, model=model, timeout_s=timeout_s)
    raise AIConfigError(f"unknown AI provider: {provider_name}")
