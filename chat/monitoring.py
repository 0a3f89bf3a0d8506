"""
Sentry monitoring utilities for the chat module.
Provides a view decorator for timing/tagging operations and helpers for
reporting degraded AI turns.
"""

import functools
import logging
import time
from typing import Callable, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Performance thresholds (in seconds); AI turns dominate request latency
SLOW_OPERATION_THRESHOLD = 10.0
CRITICAL_OPERATION_THRESHOLD = 25.0

MODULE = "chat"


def add_breadcrumb(message: str, category: str = MODULE, level: str = "info", data: Optional[Dict] = None):
    """Add a breadcrumb to track execution flow."""
    sentry_sdk.add_breadcrumb(category=category, message=message, level=level, data=data or {})


def capture_ai_failure(exc: Exception, *, session_id: str, provider: str):
    """Report an AI failure that was degraded to a reply-less turn."""
    sentry_sdk.set_context("ai_failure", {
        "session_id": session_id,
        "provider": provider,
        "error_type": type(exc).__name__,
    })
    add_breadcrumb(f"AI reply failed: {type(exc).__name__}", category=f"{MODULE}.ai", level="error")
    sentry_sdk.capture_exception(exc)


def _log_operation_result(operation: str, user_id: str, status_code: int, execution_time: float):
    if execution_time > CRITICAL_OPERATION_THRESHOLD:
        logger.error("CRITICAL: chat %s took %.3fs for %s", operation, execution_time, user_id)
    elif execution_time > SLOW_OPERATION_THRESHOLD:
        logger.warning("SLOW: chat %s took %.3fs for %s", operation, execution_time, user_id)
    else:
        logger.info("chat %s completed in %.3fs [user=%s, status=%s]", operation, execution_time, user_id, status_code)


def track_chat_operation(operation_name: str):
    """
    Decorator for chat views: tags the Sentry scope, records timing and
    captures unexpected exceptions before re-raising them.

    Usage:
        @track_chat_operation("send_message")
        def send_message(request, sid):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(request, *args, **kwargs):
            user = getattr(request, "user", None)
            user_id = str(getattr(user, "id", "anonymous"))

            sentry_sdk.set_tag("module", MODULE)
            sentry_sdk.set_tag("operation", operation_name)
            add_breadcrumb(f"Starting {operation_name}", category=f"{MODULE}.view")

            start_time = time.time()
            try:
                response = func(request, *args, **kwargs)
            except Exception as e:
                execution_time = time.time() - start_time
                logger.error("chat %s failed after %.3fs [user=%s, error=%s]",
                             operation_name, execution_time, user_id, type(e).__name__)
                sentry_sdk.capture_exception(e)
                raise

            execution_time = time.time() - start_time
            _log_operation_result(operation_name, user_id, getattr(response, "status_code", 200), execution_time)
            return response
        return wrapper
    return decorator
