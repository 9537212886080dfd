"""Team lookup, creation, and activity logging helpers."""

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from django.db import transaction

from .models import ActivityLog, ActivityType, Team, TeamMember

logger = logging.getLogger(__name__)


def get_primary_team(user) -> Optional[Team]:
    """Return the team the user joined first, or None."""

    if user is None or not getattr(user, "is_authenticated", False):
        return None
    membership = (
        TeamMember.objects.select_related("team").filter(user=user).order_by("joined_at", "id").first()
    )
    return membership.team if membership else None


@transaction.atomic
def create_team_for_user(user, name: str) -> Team:
    """Create a team and register ``user`` as its owner."""

    team = Team.objects.create(name=name)
    TeamMember.objects.create(user=user, team=team, role=TeamMember.Role.OWNER)
    ActivityLog.objects.create(team=team, user=user, action=ActivityType.CREATE_TEAM)
    logger.info("Created team %s for user %s", team.pk, user.pk)
    return team


def log_activity(user, action: str, team: Optional[Team] = None, ip_address: Optional[str] = None):
    """Record ``action`` against the user's team; users without a team are skipped."""

    team = team or get_primary_team(user)
    if team is None:
        return None
    return ActivityLog.objects.create(team=team, user=user, action=action, ip_address=ip_address)


def _valid_ip(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        validate_ipv46_address(value)
    except ValidationError:
        logger.debug("Ignoring malformed client address %r", value)
        return None
    return value


def client_ip(request) -> Optional[str]:
    """Client address from the first valid ``X-Forwarded-For`` entry or the socket peer.

    Malformed values are dropped so they never reach the ``inet`` column.
    """

    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        address = _valid_ip(forwarded.split(",")[0])
        if address:
            return address
    return _valid_ip(request.META.get("REMOTE_ADDR"))


__all__ = ["get_primary_team", "create_team_for_user", "log_activity", "client_ip"]
