from django.test import TestCase
from django.contrib.auth.hashers import make_password
from authentication.forms import LoginForm, RegistrationForm
from authentication.models import User


class LoginFormTest(TestCase):

    def setUp(self):
        self.test_user = User.objects.create(
            email="test@example.com",
            name="Test User",
            password=make_password("TestPass123"),
        )

    def test_valid_login_form(self):
        form = LoginForm(data={'email': 'TEST@example.com', 'password': 'TestPass123'})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['email'], 'test@example.com')
        self.assertEqual(form.authenticate(), self.test_user)

    def test_invalid_email(self):
        form = LoginForm(data={'email': 'not-an-email', 'password': 'TestPass123'})
        self.assertFalse(form.is_valid())
        self.assertIn('email', form.errors)

    def test_wrong_password(self):
        form = LoginForm(data={'email': 'test@example.com', 'password': 'WrongPass123'})
        self.assertIsNone(form.authenticate())


class RegistrationFormTest(TestCase):

    def _data(self, **overrides):
        data = {
            'email': 'new@example.com',
            'password': 'NewPass123',
            'confirm_password': 'NewPass123',
            'name': 'New User',
        }
        data.update(overrides)
        return data

    def test_valid_registration_form(self):
        form = RegistrationForm(data=self._data())
        self.assertTrue(form.is_valid(), form.errors)

    def test_name_rejects_markup(self):
        form = RegistrationForm(data=self._data(name='<script>'))
        self.assertFalse(form.is_valid())
        self.assertIn('name', form.errors)

    def test_blank_name(self):
        form = RegistrationForm(data=self._data(name='   '))
        self.assertFalse(form.is_valid())
        self.assertIn('name', form.errors)

    def test_optional_image_must_be_url(self):
        form = RegistrationForm(data=self._data(image='not a url'))
        self.assertFalse(form.is_valid())
        self.assertIn('image', form.errors)

    def test_existing_email_case_insensitive(self):
        User.objects.create(email='new@example.com')
        form = RegistrationForm(data=self._data(email='NEW@example.com'))
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['email'], ['This email is already registered.'])
