"""Team endpoints."""

from typing import Any

from rest_framework.exceptions import NotAuthenticated, NotFound

from core.response import BaseAPIView, api_response
from .serializers import TeamSerializer
from .services import get_primary_team


class CurrentTeamView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the caller's primary team and its members."""
        if not request.user.is_authenticated:
            raise NotAuthenticated("Authentication required")
        team = get_primary_team(request.user)
        if team is None:
            raise NotFound("You are not a member of any team.")
        return api_response(TeamSerializer(team).data)


__all__ = ["CurrentTeamView"]
