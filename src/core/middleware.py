"""Middleware to authenticate requests via JWT and Redis blocklist."""

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.services import BlocklistUnavailable, TokenService

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(MiddlewareMixin):
    """Decode access JWT, check blocklist and token version, attach request.user.

    Requests without a bearer token are anonymous; whether anonymous callers
    may proceed is decided per view.
    """

    def process_request(self, request):  # type: ignore[override]
        """Authenticate request using Bearer access token if present."""
        auth_header = request.META.get("HTTP_AUTHORIZATION", "")
        if not auth_header or not auth_header.startswith("Bearer "):
            request.user = AnonymousUser()
            return None

        token = auth_header.split(" ", 1)[1]

        try:
            payload = TokenService.decode_token(token, expected_type="access")
            jti = payload.get("jti")
            if not jti:
                return _unauthorized("missing jti")

            if TokenService.is_token_blocked(jti):
                return _unauthorized("blocklisted token")

            user = self._get_user(payload.get("sub"))
            if not user or not user.is_active:
                return _unauthorized("unknown or inactive user")

            if not TokenService.matches_version(payload, user):
                return _unauthorized("stale token version")

            request.user = user
            return None

        except AuthenticationFailed as exc:
            return _unauthorized(str(exc.detail))
        except BlocklistUnavailable:
            return _service_unavailable()

    @staticmethod
    def _get_user(user_id: Optional[str]):
        if not user_id:
            return None
        User = get_user_model()
        try:
            return User.objects.get(id=user_id)
        except (User.DoesNotExist, DjangoValidationError):
            return None


def _unauthorized(reason: str) -> JsonResponse:
    logger.debug("Rejected bearer token: %s", reason)
    return JsonResponse(
        {
            "data": None,
            "errors": [
                "Authentication credentials were not provided or are invalid, token revoked, or user is inactive."
            ],
        },
        status=status.HTTP_401_UNAUTHORIZED,
    )


def _service_unavailable() -> JsonResponse:
    return JsonResponse(
        {"data": None, "errors": ["Authentication service unavailable (blocklist)."]},
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


__all__ = ["JWTAuthMiddleware"]
