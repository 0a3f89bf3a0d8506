from django.utils.deprecation import MiddlewareMixin
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError

from authentication.models import User


class SessionAuthenticationMiddleware(MiddlewareMixin):
    """
    Middleware to set request.user based on session data.
    This ensures DRF's IsAuthenticated permission works with our custom User model.
    """
    def process_request(self, request):
        user_id = request.session.get('user_id')
        email = request.session.get('email')

        if user_id and email:
            try:
                user = User.objects.get(id=user_id, email=email)
            except (User.DoesNotExist, ValidationError, ValueError):
                request.user = AnonymousUser()
                return
            request.user = user if user.is_authenticated else AnonymousUser()
        else:
            request.user = AnonymousUser()
