"""Serializers for team resources."""

from rest_framework import serializers

from .models import Team, TeamMember


class TeamMemberSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(source="user.id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)

    class Meta:
        model = TeamMember
        fields = ["user_id", "email", "name", "role", "joined_at"]
        read_only_fields = fields


class TeamSerializer(serializers.ModelSerializer):
    """Team with its members, newest-joined last."""

    members = TeamMemberSerializer(many=True, read_only=True)

    class Meta:
        model = Team
        fields = ["id", "name", "members", "created_at", "updated_at"]
        read_only_fields = fields


__all__ = ["TeamSerializer", "TeamMemberSerializer"]
