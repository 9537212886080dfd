"""Owner/team based access decisions for articles and their comments.

``resolve`` is a pure function: callers load the article and the caller's
identity themselves and branch on the returned verdict. Reads of content that
is not published collapse "forbidden" into "not found" so that strangers
cannot probe for drafts. Writes and deletes keep 401 and 403 apart.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from django.db import models
from rest_framework import status


class ArticleStatus(models.TextChoices):
    """Closed set of article lifecycle states."""

    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    ARCHIVED = "archived", "Archived"


# Older clients still send "unpublished" for the archived state.
STATUS_ALIASES = {"unpublished": ArticleStatus.ARCHIVED}


def normalize_status(value: str) -> ArticleStatus:
    """Map a raw status string onto ``ArticleStatus``.

    Raises ``ValueError`` for anything outside the known states and aliases.
    """

    raw = (value or "").strip().lower()
    if raw in STATUS_ALIASES:
        return STATUS_ALIASES[raw]
    return ArticleStatus(raw)


class Operation(Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class AccessVerdict(Enum):
    ALLOW = "allow"
    DENY_FORBIDDEN = "deny_forbidden"
    DENY_NOT_FOUND = "deny_not_found"
    DENY_UNAUTHENTICATED = "deny_unauthenticated"

    @property
    def allowed(self) -> bool:
        return self is AccessVerdict.ALLOW

    @property
    def http_status(self) -> int:
        """Transport status a route handler should answer with."""
        return _VERDICT_STATUS[self]


_VERDICT_STATUS = {
    AccessVerdict.ALLOW: status.HTTP_200_OK,
    AccessVerdict.DENY_FORBIDDEN: status.HTTP_403_FORBIDDEN,
    AccessVerdict.DENY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AccessVerdict.DENY_UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
}


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, resolved once per request."""

    user_id: Any
    team_id: Optional[Any] = None


@dataclass(frozen=True)
class AccessSubject:
    """The fields of a guarded record that access decisions depend on."""

    owner_user_id: Any
    status: str
    team_id: Optional[Any] = None

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED


def subject_for(obj) -> AccessSubject:
    """Build an ``AccessSubject`` from a model instance (``owner_id``/``status``/``team_id``)."""

    return AccessSubject(
        owner_user_id=getattr(obj, "owner_id", None),
        status=getattr(obj, "status", ArticleStatus.DRAFT),
        team_id=getattr(obj, "team_id", None),
    )


def _is_member(subject: AccessSubject, identity: Identity, team_access: bool) -> bool:
    if identity.user_id == subject.owner_user_id:
        return True
    return (
        team_access
        and identity.team_id is not None
        and subject.team_id is not None
        and identity.team_id == subject.team_id
    )


def resolve(
    subject: AccessSubject,
    identity: Optional[Identity],
    operation: Operation,
    *,
    team_access: bool = False,
) -> AccessVerdict:
    """Decide whether ``identity`` may perform ``operation`` on ``subject``.

    ``identity`` is ``None`` for anonymous callers. With ``team_access`` on,
    members of the article's team are treated like its owner.
    """

    if operation is Operation.READ:
        if subject.is_published:
            return AccessVerdict.ALLOW
        if identity is None:
            return AccessVerdict.DENY_NOT_FOUND
        if _is_member(subject, identity, team_access):
            return AccessVerdict.ALLOW
        return AccessVerdict.DENY_NOT_FOUND

    if identity is None:
        return AccessVerdict.DENY_UNAUTHENTICATED
    if not _is_member(subject, identity, team_access):
        return AccessVerdict.DENY_FORBIDDEN
    return AccessVerdict.ALLOW


_METHOD_OPERATIONS = {
    "GET": Operation.READ,
    "HEAD": Operation.READ,
    "OPTIONS": Operation.READ,
    "POST": Operation.WRITE,
    "PUT": Operation.WRITE,
    "PATCH": Operation.WRITE,
    "DELETE": Operation.DELETE,
}


def operation_for_method(method: str) -> Operation:
    """Map an HTTP method onto an ``Operation``; unknown methods count as writes."""
    return _METHOD_OPERATIONS.get((method or "").upper(), Operation.WRITE)


__all__ = [
    "AccessSubject",
    "AccessVerdict",
    "ArticleStatus",
    "Identity",
    "Operation",
    "normalize_status",
    "operation_for_method",
    "resolve",
    "subject_for",
]
