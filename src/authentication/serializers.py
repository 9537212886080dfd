"""Serializers for authentication flows (register, login, profile)."""

from typing import cast

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from teams.models import ActivityType
from teams.services import create_team_for_user, get_primary_team, log_activity
from .managers import UserManager

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    """Validate and create a user together with their own team."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    name = serializers.CharField(required=True, allow_blank=False, max_length=100)
    team_name = serializers.CharField(required=False, allow_blank=True, max_length=100)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def validate(self, attrs):
        """Ensure provided passwords match before creation."""
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        """Create the user, a team they own, and a SIGN_UP activity entry."""
        validated_data.pop("repeat_password")
        team_name = validated_data.pop("team_name", "") or f"{validated_data['name']}'s Team"
        manager = cast(UserManager, User.objects)
        user = manager.create_user(**validated_data)
        team = create_team_for_user(user, team_name)
        log_activity(user, ActivityType.SIGN_UP, team=team, ip_address=self.context.get("ip_address"))
        return user


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via email/password using bcrypt verification."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        email = attrs.get("email")
        password = attrs.get("password")
        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not UserManager.verify_password(user, password):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only user profile payload for responses."""

    team_id = serializers.SerializerMethodField()

    class Meta:
        """Expose basic identity fields and the primary team id."""
        model = User
        fields = ["id", "email", "name", "team_id"]
        read_only_fields = fields

    @staticmethod
    def get_team_id(obj):
        team = get_primary_team(obj)
        return team.pk if team else None


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for /auth/me updates."""

    class Meta:
        model = User
        fields = ["name"]
        extra_kwargs = {"name": {"required": False, "allow_blank": True}}

    def validate(self, attrs):
        """Reject attempts to change email through the profile endpoint."""
        if "email" in getattr(self, "initial_data", {}):
            raise serializers.ValidationError("Email cannot be updated via this endpoint")
        return super().validate(attrs)
