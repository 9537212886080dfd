"""DRF permission classes backed by the owner/team access resolver."""

import logging

from django.conf import settings
from rest_framework import permissions
from rest_framework.exceptions import NotAuthenticated, NotFound, PermissionDenied

from .identity import current_identity
from .resolver import AccessVerdict, Operation, operation_for_method, resolve

logger = logging.getLogger(__name__)


def team_access_enabled() -> bool:
    return bool(getattr(settings, "ARTICLES_TEAM_ACCESS", False))


def enforce(verdict: AccessVerdict) -> None:
    """Raise the DRF exception matching a deny verdict; return on allow."""

    if verdict is AccessVerdict.ALLOW:
        return
    if verdict is AccessVerdict.DENY_NOT_FOUND:
        raise NotFound()
    if verdict is AccessVerdict.DENY_UNAUTHENTICATED:
        raise NotAuthenticated()
    raise PermissionDenied()


class ArticleAccessPermission(permissions.BasePermission):
    """Object-level owner/team check for articles and their sub-resources.

    Views using this permission implement ``get_access_subject(obj)`` and may
    set ``access_operation`` (an ``Operation`` or a mapping of action name to
    ``Operation``) to override the HTTP-method default.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        # Collection-level checks (list/create) are handled by the view.
        return True

    def has_object_permission(self, request, view, obj) -> bool:
        subject = view.get_access_subject(obj)
        operation = self._operation(request, view)
        verdict = resolve(subject, current_identity(request), operation, team_access=team_access_enabled())
        if not verdict.allowed:
            logger.debug(
                "Denied %s on %s #%s: %s", operation.value, type(obj).__name__, getattr(obj, "pk", None), verdict.value
            )
        enforce(verdict)
        return True

    @staticmethod
    def _operation(request, view) -> Operation:
        declared = getattr(view, "access_operation", None)
        if isinstance(declared, Operation):
            return declared
        if isinstance(declared, dict):
            action = getattr(view, "action", None)
            if action in declared:
                return declared[action]
        return operation_for_method(request.method)


class IsAuthenticatedOr401(permissions.BasePermission):
    """Require an authenticated caller; anonymous callers get 401, not 403."""

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            raise NotAuthenticated()
        return True


__all__ = ["ArticleAccessPermission", "IsAuthenticatedOr401", "enforce", "team_access_enabled"]
