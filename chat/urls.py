from django.urls import path
from . import views

app_name = "chat"

urlpatterns = [
    # Sessions
    path("sessions/", views.sessions, name="sessions"),

    # Session detail: GET page of messages, PATCH rename, DELETE
    path("sessions/<uuid:sid>/", views.session_detail, name="session_detail"),

    # Send a message (one chat turn)
    path("sessions/<uuid:sid>/messages/", views.send_message, name="send_message"),
]
