"""Bridge between ``JWTAuthMiddleware`` and DRF authentication.

The middleware has already verified the bearer token by the time a view
runs; DRF only needs to see the user it attached.
"""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF.

    No credential parsing happens here. Anonymous or missing users skip
    authentication and DRF falls back to ``AnonymousUser``.
    """

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None

        if not getattr(user, "is_authenticated", False):
            return None

        return user, None

    def authenticate_header(self, request) -> str:
        # Lets DRF answer NotAuthenticated with 401 + WWW-Authenticate.
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
