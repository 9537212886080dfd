"""Team, TeamMember, and ActivityLog models."""

from django.conf import settings
from django.db import models


class Team(models.Model):
    """A group of users sharing a workspace."""

    name = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class TeamMember(models.Model):
    """Membership of a user in a team."""

    class Role(models.TextChoices):
        OWNER = "owner", "Owner"
        MEMBER = "member", "Member"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="team_memberships")
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="members")
    role = models.CharField(max_length=50, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("user", "team")
        ordering = ["joined_at", "id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.user_id} in {self.team_id} ({self.role})"


class ActivityType(models.TextChoices):
    SIGN_UP = "SIGN_UP"
    SIGN_IN = "SIGN_IN"
    SIGN_OUT = "SIGN_OUT"
    DELETE_ACCOUNT = "DELETE_ACCOUNT"
    UPDATE_ACCOUNT = "UPDATE_ACCOUNT"
    CREATE_TEAM = "CREATE_TEAM"
    CREATE_ARTICLE = "CREATE_ARTICLE"
    UPDATE_ARTICLE = "UPDATE_ARTICLE"
    DELETE_ARTICLE = "DELETE_ARTICLE"
    PUBLISH_ARTICLE = "PUBLISH_ARTICLE"
    UNPUBLISH_ARTICLE = "UNPUBLISH_ARTICLE"


class ActivityLog(models.Model):
    """Append-only audit trail of team activity."""

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="activity_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="activity_logs"
    )
    action = models.CharField(max_length=50, choices=ActivityType.choices)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-timestamp", "-id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.action} by {self.user_id}"


__all__ = ["Team", "TeamMember", "ActivityType", "ActivityLog"]
