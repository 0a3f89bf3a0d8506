from django.urls import path
from authentication.views import register, login, logout, me, csrf

app_name = 'authentication'

urlpatterns = [
    path("register/", register, name="register"),
    path("login/", login, name="login"),
    path("logout/", logout, name="logout"),
    path("me/", me, name="me"),
    path("csrf/", csrf, name="csrf"),
]
