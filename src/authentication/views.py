"""Authentication endpoints: register, login, refresh, logout, and profile."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response

from access_control.permissions import IsAuthenticatedOr401
from core.response import BaseAPIView, api_response
from teams.models import ActivityType
from teams.services import client_ip, log_activity
from .serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserDetailSerializer,
)
from .services import TokenService

logger = logging.getLogger(__name__)

User = get_user_model()


def _token_pair(user) -> dict[str, str]:
    access, refresh = TokenService.generate_tokens(user)
    return {"access": access, "refresh": refresh}


class RegisterView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Register a new user (and their team) and return their profile."""
        serializer = RegisterSerializer(data=request.data, context={"ip_address": client_ip(request)})
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user %s", user.pk)
        return api_response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        log_activity(user, ActivityType.SIGN_IN, ip_address=client_ip(request))
        return api_response(_token_pair(user))


class RefreshView(BaseAPIView):
    """Rotate a refresh token: the presented one is revoked, a new pair issued."""

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        payload = TokenService.decode_token(refresh_token, expected_type="refresh")
        jti = payload.get("jti")
        if not jti or TokenService.is_token_blocked(jti):
            raise AuthenticationFailed("Invalid or revoked refresh token")

        user = _get_active_user(payload.get("sub"))
        if not user:
            raise AuthenticationFailed("User not found or inactive")
        if not TokenService.matches_version(payload, user):
            raise AuthenticationFailed("Invalid or revoked refresh token")

        # Another request may have rotated the same token since the check above.
        if not TokenService.claim_token(jti, payload["exp"]):
            raise AuthenticationFailed("Invalid or revoked refresh token")
        return api_response(_token_pair(user))


class LogoutView(BaseAPIView):
    """Invalidate the current access token by blocklisting its jti."""

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        if not _revoke_bearer_token(request):
            raise NotAuthenticated("Missing token.")
        if request.user.is_authenticated:
            log_activity(request.user, ActivityType.SIGN_OUT, ip_address=client_ip(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class LogoutAllView(BaseAPIView):
    """Invalidate every token of the current user across devices."""

    permission_classes = [IsAuthenticatedOr401]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        user = request.user
        user.token_version = (user.token_version or 1) + 1
        user.save(update_fields=["token_version"])
        _revoke_bearer_token(request)
        log_activity(user, ActivityType.SIGN_OUT, ip_address=client_ip(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(BaseAPIView):
    permission_classes = [IsAuthenticatedOr401]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current user's profile."""
        return api_response(UserDetailSerializer(request.user).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request):
        """Update the display name of the current user."""
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        log_activity(request.user, ActivityType.UPDATE_ACCOUNT, ip_address=client_ip(request))
        return api_response(UserDetailSerializer(request.user).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request):
        """Deactivate the current user; their articles stay in place."""
        _revoke_bearer_token(request)
        log_activity(request.user, ActivityType.DELETE_ACCOUNT, ip_address=client_ip(request))
        request.user.is_active = False
        request.user.save(update_fields=["is_active"])
        logger.info("Deactivated user %s", request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


def _get_active_user(user_id) -> User | None:
    """Retrieve an active user by id, or None if missing/inactive."""
    if not user_id:
        return None
    try:
        user = User.objects.get(id=user_id)
    except (User.DoesNotExist, DjangoValidationError):
        return None
    return user if user.is_active else None


def _revoke_bearer_token(request) -> bool:
    """Blocklist the request's bearer access token; False when there is none."""
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if not auth_header.startswith("Bearer "):
        return False
    payload = TokenService.decode_token(auth_header.split(" ", 1)[1], expected_type="access")
    TokenService.block_token(payload["jti"], payload["exp"])
    return True
