"""
Request size limiting for write requests.
"""
import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 1 * 1024 * 1024


class RequestSizeLimitMiddleware:
    """
    Rejects POST/PUT/PATCH bodies larger than settings.MAX_REQUEST_BYTES.
    Chat payloads are small JSON documents, so anything large is refused
    before it reaches a view.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.max_size = getattr(settings, "MAX_REQUEST_BYTES", DEFAULT_MAX_BYTES)

    def __call__(self, request):
        if request.method in ['POST', 'PUT', 'PATCH']:
            content_length = request.META.get('CONTENT_LENGTH')

            if content_length:
                try:
                    content_length = int(content_length)
                except (ValueError, TypeError):
                    # malformed header; the body parser will deal with it
                    content_length = 0
                if content_length > self.max_size:
                    logger.warning(
                        "Request size limit exceeded: %s bytes from IP %s",
                        content_length,
                        request.META.get('REMOTE_ADDR'),
                    )
                    return JsonResponse({
                        'error': 'Request too large',
                        'max_size_kb': round(self.max_size / 1024, 1),
                        'your_size_kb': round(content_length / 1024, 1),
                    }, status=413)

        return self.get_response(request)
