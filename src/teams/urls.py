"""URL patterns for team endpoints."""

from django.urls import path

from .views import CurrentTeamView

urlpatterns = [
    path("current/", CurrentTeamView.as_view(), name="team-current"),
]
