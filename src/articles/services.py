"""Article domain services: slugs, status transitions, tags, and mutations.

All mutations run inside a transaction and leave an activity log entry on
the owner's team.
"""

import logging
import re
import unicodedata
from datetime import datetime
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from access_control.resolver import ArticleStatus
from core.exceptions import RevisionConflict
from teams.models import ActivityType
from teams.services import log_activity
from .models import Article, ArticleTag

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MAX_LENGTH = 500
TAG_MAX_LENGTH = 50
SLUG_TAKEN_MESSAGE = "An article with this slug already exists."

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def generate_slug(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Derive a URL slug from ``text``.

    Accented letters are folded to ASCII; every other run of characters
    outside ``[a-z0-9]`` becomes a single hyphen. May return an empty string
    when nothing slug-worthy remains (for example an all-CJK title).
    """

    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG_CHARS.sub("-", folded.lower()).strip("-")
    return slug[:max_length].rstrip("-")


def is_valid_slug(value: str) -> bool:
    return bool(value) and len(value) <= SLUG_MAX_LENGTH and SLUG_PATTERN.match(value) is not None


def slug_taken(slug: str, exclude_pk: Optional[int] = None) -> bool:
    """True when a live article already uses ``slug``."""

    qs = Article.objects.filter(slug=slug)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def clean_tags(tags: Iterable[str]) -> list[str]:
    """Trim, drop empties, and de-duplicate tags while keeping their order."""

    seen: dict[str, None] = {}
    for raw in tags:
        name = (raw or "").strip()
        if name and name not in seen:
            seen[name] = None
    return list(seen)


def apply_status(article: Article, status: str, now: Optional[datetime] = None) -> bool:
    """Move ``article`` to ``status``; return True if the status changed.

    ``published_at`` is stamped the first time an article is published and
    kept afterwards, so unpublishing and re-publishing keeps the original date.
    """

    status = ArticleStatus(status)
    changed = article.status != status
    article.status = status
    if status == ArticleStatus.PUBLISHED and article.published_at is None:
        article.published_at = now or timezone.now()
    return changed


def replace_tags(article: Article, tags: Iterable[str]) -> list[str]:
    """Replace all tags of ``article`` with ``tags``."""

    names = clean_tags(tags)
    ArticleTag.objects.filter(article=article).delete()
    ArticleTag.objects.bulk_create([ArticleTag(article=article, tag_name=name) for name in names])
    return names


def _guard_slug(write):
    """Run ``write`` in a savepoint; a lost race on the live-slug constraint becomes a 400."""

    try:
        with transaction.atomic():
            return write()
    except IntegrityError as exc:
        if "slug" not in str(exc):
            raise
        logger.info("Slug conflict on concurrent write: %s", exc)
        raise ValidationError({"slug": [SLUG_TAKEN_MESSAGE]}) from exc


@transaction.atomic
def create_article(owner, data: dict, tags: Optional[Iterable[str]] = None, team=None, ip_address=None) -> Article:
    """Create an article for ``owner``; ``data`` holds validated field values."""

    data = dict(data)
    status = data.pop("status", ArticleStatus.DRAFT)
    article = Article(owner=owner, team=team, **data)
    apply_status(article, status)
    _guard_slug(article.save)
    if tags:
        replace_tags(article, tags)

    log_activity(owner, ActivityType.CREATE_ARTICLE, team=team, ip_address=ip_address)
    if article.is_published:
        log_activity(owner, ActivityType.PUBLISH_ARTICLE, team=team, ip_address=ip_address)
    logger.info("Article %s created by %s (status=%s)", article.pk, owner.pk, article.status)
    return article


@transaction.atomic
def update_article(
    article: Article,
    data: dict,
    tags: Optional[Iterable[str]] = None,
    expected_revision: Optional[int] = None,
    actor=None,
    ip_address=None,
) -> Article:
    """Apply ``data`` to ``article`` and bump its revision.

    When ``expected_revision`` is given the write only succeeds if the stored
    revision still matches; otherwise ``RevisionConflict`` is raised.
    """

    data = dict(data)
    status = data.pop("status", None)
    was_published = article.is_published

    for field, value in data.items():
        setattr(article, field, value)
    if status is not None:
        apply_status(article, status)

    current = expected_revision if expected_revision is not None else article.revision
    fields = {field: getattr(article, field) for field in data}
    fields.update(status=article.status, published_at=article.published_at, updated_at=timezone.now())
    updated = _guard_slug(
        lambda: Article.objects.filter(pk=article.pk, revision=current).update(revision=F("revision") + 1, **fields)
    )
    if not updated:
        logger.info("Revision conflict on article %s (expected %s)", article.pk, current)
        raise RevisionConflict()
    article.refresh_from_db()

    if tags is not None:
        replace_tags(article, tags)

    actor = actor or article.owner
    log_activity(actor, ActivityType.UPDATE_ARTICLE, team=article.team, ip_address=ip_address)
    if article.is_published and not was_published:
        log_activity(actor, ActivityType.PUBLISH_ARTICLE, team=article.team, ip_address=ip_address)
    elif was_published and not article.is_published:
        log_activity(actor, ActivityType.UNPUBLISH_ARTICLE, team=article.team, ip_address=ip_address)
    logger.info("Article %s updated to revision %s", article.pk, article.revision)
    return article


def publish_article(article: Article, actor=None, ip_address=None) -> Article:
    return _transition(article, ArticleStatus.PUBLISHED, ActivityType.PUBLISH_ARTICLE, actor, ip_address)


def unpublish_article(article: Article, actor=None, ip_address=None) -> Article:
    return _transition(article, ArticleStatus.ARCHIVED, ActivityType.UNPUBLISH_ARTICLE, actor, ip_address)


@transaction.atomic
def _transition(article: Article, status: str, action: str, actor, ip_address) -> Article:
    if not apply_status(article, status):
        return article
    Article.objects.filter(pk=article.pk).update(
        status=article.status,
        published_at=article.published_at,
        revision=F("revision") + 1,
        updated_at=timezone.now(),
    )
    article.refresh_from_db()
    log_activity(actor or article.owner, action, team=article.team, ip_address=ip_address)
    logger.info("Article %s moved to %s", article.pk, article.status)
    return article


@transaction.atomic
def soft_delete_article(article: Article, actor=None, ip_address=None) -> None:
    """Hide the article from every query; its slug becomes reusable."""

    article.deleted_at = timezone.now()
    article.save(update_fields=["deleted_at", "updated_at"])
    log_activity(actor or article.owner, ActivityType.DELETE_ARTICLE, team=article.team, ip_address=ip_address)
    logger.info("Article %s deleted", article.pk)


__all__ = [
    "SLUG_PATTERN",
    "apply_status",
    "clean_tags",
    "create_article",
    "generate_slug",
    "is_valid_slug",
    "publish_article",
    "replace_tags",
    "slug_taken",
    "soft_delete_article",
    "unpublish_article",
    "update_article",
]
