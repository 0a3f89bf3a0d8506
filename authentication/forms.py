# authentication/forms.py
from django import forms
from django.contrib.auth.hashers import check_password
from authentication.models import User
from authentication.validators import validate_password, validate_name, validate_email


class LoginForm(forms.Form):
    email = forms.EmailField(
        max_length=254,
        required=True,
        error_messages={
            'required': 'Email is required.',
            'invalid': 'Please enter a valid email address.',
        }
    )
    password = forms.CharField(
        max_length=255,
        strip=True,
        required=True,
        error_messages={
            'required': 'Password is required.',
            'max_length': 'Password must be 255 characters or less.'
        }
    )

    def clean_email(self):
        return (self.cleaned_data.get('email') or '').lower().strip()

    def authenticate(self):
        if not self.is_valid():
            return None
        email = self.cleaned_data['email']
        password = self.cleaned_data['password']
        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            return None
        # OAuth-only accounts have no password to check against
        if not user.has_password:
            return None
        if check_password(password, user.password):
            return user
        return None


class RegistrationForm(forms.Form):
    email = forms.EmailField(
        required=True,
        error_messages={
            'required': 'Email is required.',
            'invalid': 'Please enter a valid email address.'
        }
    )
    password = forms.CharField(
        max_length=255,
        strip=True,
        required=True,
        error_messages={
            'required': 'Password is required.',
            'max_length': 'Password must be 255 characters or less.'
        }
    )
    confirm_password = forms.CharField(
        max_length=255,
        strip=True,
        required=True,
        error_messages={
            'required': 'Password confirmation is required.',
            'max_length': 'Password must be 255 characters or less.'
        }
    )
    name = forms.CharField(
        max_length=150,
        strip=True,
        required=True,
        error_messages={
            'required': 'Name is required.',
            'max_length': 'Name must be 150 characters or less.'
        }
    )
    image = forms.URLField(required=False, max_length=500)

    def clean_password(self):
        return validate_password(self.cleaned_data.get('password'))

    def clean_name(self):
        return validate_name(self.cleaned_data.get('name'))

    def clean_email(self):
        return validate_email(self.cleaned_data.get('email'), User)

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get('password')
        confirm_password = cleaned_data.get('confirm_password')
        if password and confirm_password and password != confirm_password:
            raise forms.ValidationError("Passwords do not match.")
        return cleaned_data
