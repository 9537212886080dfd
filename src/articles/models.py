"""Article, Category, ArticleTag, and Comment models."""

from django.conf import settings
from django.db import models
from django.db.models import Q

from access_control.resolver import ArticleStatus


class Category(models.Model):
    """Flat, globally shared article category."""

    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class LiveArticleManager(models.Manager):
    """Hide soft-deleted articles."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class Article(models.Model):
    """Article owned by one user and optionally scoped to their team."""

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="articles")
    team = models.ForeignKey(
        "teams.Team", null=True, blank=True, on_delete=models.SET_NULL, related_name="articles"
    )
    category = models.ForeignKey(
        Category, null=True, blank=True, on_delete=models.SET_NULL, related_name="articles"
    )
    title = models.CharField(max_length=500)
    slug = models.SlugField(max_length=500)
    content = models.TextField()
    excerpt = models.TextField(max_length=1000, null=True, blank=True)
    status = models.CharField(max_length=20, choices=ArticleStatus.choices, default=ArticleStatus.DRAFT)
    published_at = models.DateTimeField(null=True, blank=True)
    revision = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = LiveArticleManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["slug"],
                condition=Q(deleted_at__isnull=True),
                name="unique_live_article_slug",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="article_status_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED

    @property
    def tag_names(self) -> list[str]:
        return [tag.tag_name for tag in self.tags.all()]


class ArticleTag(models.Model):
    """Free-form tag attached to an article."""

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="tags")
    tag_name = models.CharField(max_length=50)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        unique_together = ("article", "tag_name")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.tag_name


class Comment(models.Model):
    """Comment on an article, by a user or by an anonymous visitor."""

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="comments")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="comments"
    )
    author_name = models.CharField(max_length=100, null=True, blank=True)
    author_email = models.EmailField(null=True, blank=True)
    content = models.TextField(max_length=5000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Comment {self.pk} on {self.article_id}"


__all__ = ["Category", "Article", "ArticleTag", "Comment", "ArticleStatus"]
