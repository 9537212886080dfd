"""Resolve the caller's ``Identity`` from a request."""

from typing import Optional

from teams.services import get_primary_team
from .resolver import Identity

_CACHE_ATTR = "_access_identity"


def current_identity(request) -> Optional[Identity]:
    """Return the caller's identity, or None for anonymous requests.

    The result is memoised on the request so repeated permission checks
    within one request do not re-query team membership.
    """

    django_request = getattr(request, "_request", request)
    if hasattr(django_request, _CACHE_ATTR):
        return getattr(django_request, _CACHE_ATTR)

    user = getattr(request, "user", None)
    identity = None
    if user is not None and getattr(user, "is_authenticated", False):
        team = get_primary_team(user)
        identity = Identity(user_id=user.pk, team_id=team.pk if team else None)

    setattr(django_request, _CACHE_ATTR, identity)
    return identity


__all__ = ["current_identity"]
