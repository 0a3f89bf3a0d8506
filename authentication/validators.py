from django import forms
import re


def validate_password(password: str):

    if not password:
        raise forms.ValidationError("Password cannot be empty.")
    if len(password) < 8:
        raise forms.ValidationError("Password must be at least 8 characters long.")
    if not re.search(r'[A-Z]', password):
        raise forms.ValidationError("Password must contain at least one uppercase letter.")
    if not re.search(r'[a-z]', password):
        raise forms.ValidationError("Password must contain at least one lowercase letter.")
    if not re.search(r'\d', password):
        raise forms.ValidationError("Password must contain at least one number.")

    return password


def validate_name(name: str):

    if not name or not name.strip():
        raise forms.ValidationError("A name is required")
    if re.search(r'[<>"/\\]', name):
        raise forms.ValidationError('Name cannot contain <, >, ", /, or \\ characters.')

    return name.strip()


def validate_email(email: str, model_cls):
    if not email or not email.strip():
        raise forms.ValidationError("Email is required.")

    email = email.lower().strip()
    if model_cls.objects.filter(email=email).exists():
        raise forms.ValidationError("This email is already registered.")

    return email
