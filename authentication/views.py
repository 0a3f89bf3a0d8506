from django.http import JsonResponse
from django.views.decorators.http import require_POST, require_GET
from django.views.decorators.csrf import csrf_exempt
from django.middleware.csrf import get_token
from django.db import transaction, IntegrityError
from django.contrib.auth.hashers import make_password

from .forms import LoginForm, RegistrationForm
from authentication.models import User
from authentication.helpers import parse_json_body, form_errors, set_user_session, serialize_user

import logging

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def register(request):
    data, error_response = parse_json_body(request)
    if error_response:
        return error_response

    form = RegistrationForm(data)
    if not form.is_valid():
        return JsonResponse({"errors": form_errors(form)}, status=400)

    email = form.cleaned_data['email']
    name = form.cleaned_data['name']
    image = form.cleaned_data.get('image') or ''
    encoded = make_password(form.cleaned_data['password'])

    # attempt insert (unique: email)
    try:
        with transaction.atomic():
            user = User.objects.create(
                email=email,
                name=name,
                image=image,
                password=encoded,
            )
    except IntegrityError:
        return JsonResponse({"error": "user already exists"}, status=409)

    logger.info("Registered user %s", user.id)
    return JsonResponse(
        {
            "user": serialize_user(user),
            "message": "Registration successful",
        },
        status=201
    )


@csrf_exempt
@require_POST
def login(request):
    data, error_response = parse_json_body(request)
    if error_response:
        return error_response

    form = LoginForm(data)
    if not form.is_valid():
        return JsonResponse({"errors": form_errors(form)}, status=400)

    user = form.authenticate()
    if user is None or not user.is_active:
        logger.info("Failed login for %s", form.cleaned_data.get('email'))
        return JsonResponse({"error": "Invalid credentials"}, status=401)

    set_user_session(request, user)
    return JsonResponse({"user": serialize_user(user), "message": "Login successful"}, status=200)


@csrf_exempt
@require_POST
def logout(request):
    request.session.flush()
    return JsonResponse({'message': 'Logged out'}, status=200)


@require_GET
def me(request):
    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        return JsonResponse({"error": "unauthorized"}, status=401)
    return JsonResponse({"user": serialize_user(user)}, status=200)


@require_GET
def csrf(request):
    # sets 'csrftoken' cookie and also returns it in JSON
    return JsonResponse({"csrfToken": get_token(request)})
