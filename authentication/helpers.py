import json
from django.http import JsonResponse

INVALID_PAYLOAD_MSG = "invalid payload"


def parse_json_body(request):
    raw = request.body or b''
    if not raw.strip():
        return {}, None
    try:
        text = raw.decode('utf-8')
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None, JsonResponse({"error": INVALID_PAYLOAD_MSG}, status=400)
    if not isinstance(data, dict):
        return None, JsonResponse({"error": INVALID_PAYLOAD_MSG}, status=400)
    return data, None


def form_errors(form) -> dict:
    """Flatten Django form errors to one message per field."""
    errors = {}
    for field, error_list in form.errors.items():
        errors[field] = error_list[0] if error_list else ""
    return errors


def set_user_session(request, user):
    # new session key on login to avoid fixation
    request.session.cycle_key()
    request.session['user_id'] = str(user.id)
    request.session['email'] = user.email


def serialize_user(user) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "image": user.image or None,
    }
