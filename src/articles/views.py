"""Article, comment, category, and tag endpoints.

Object access goes through ``ArticleAccessPermission``; list endpoints apply
the same visibility rules as querysets so that drafts never leak through
listings either.
"""

import uuid
from typing import Any

from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotAuthenticated, ValidationError

from access_control.identity import current_identity
from access_control.permissions import (
    ArticleAccessPermission,
    IsAuthenticatedOr401,
    enforce,
    team_access_enabled,
)
from access_control.resolver import (
    AccessSubject,
    AccessVerdict,
    ArticleStatus,
    Operation,
    normalize_status,
    resolve,
    subject_for,
)
from core.pagination import PageLimitPagination
from core.response import BaseAPIView, BaseGenericViewSet, BaseViewSet, api_response
from teams.services import client_ip, get_primary_team
from . import services
from .models import Article, ArticleTag, Category, Comment
from .serializers import ArticleSerializer, CategorySerializer, CommentSerializer, TagCountSerializer

TRUE_VALUES = ("1", "true", "yes", "on")


def visible_articles(queryset, identity, team_access: bool = False):
    """Restrict ``queryset`` to articles ``identity`` may read."""

    visible = Q(status=ArticleStatus.PUBLISHED)
    if identity is not None:
        visible |= Q(owner_id=identity.user_id)
        if team_access and identity.team_id is not None:
            visible |= Q(team_id=identity.team_id)
    return queryset.filter(visible)


class ArticleViewSet(BaseViewSet):
    """CRUD, publishing, and slug lookup for articles."""

    serializer_class = ArticleSerializer
    permission_classes = [ArticleAccessPermission]
    pagination_class = PageLimitPagination
    lookup_value_regex = r"\d+"
    access_operation = {"by_slug": Operation.READ}

    def get_queryset(self):
        queryset = Article.objects.select_related("owner", "category").prefetch_related("tags")
        if self.action != "list":
            # Detail lookups see every live article; the permission turns
            # hidden ones into 404s.
            return queryset
        identity = current_identity(self.request)
        queryset = visible_articles(queryset, identity, team_access_enabled())
        return self._apply_filters(queryset, identity)

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticatedOr401()]
        return super().get_permissions()

    @staticmethod
    def get_access_subject(obj) -> AccessSubject:
        return subject_for(obj)

    def _apply_filters(self, queryset, identity):
        params = self.request.query_params

        raw_status = params.get("status")
        if raw_status:
            try:
                queryset = queryset.filter(status=normalize_status(raw_status))
            except ValueError:
                raise ValidationError({"status": [f"Unknown status {raw_status!r}."]})

        author = params.get("author")
        if author:
            try:
                queryset = queryset.filter(owner_id=uuid.UUID(author))
            except ValueError:
                raise ValidationError({"author": ["Must be a valid user id."]})

        category = params.get("category")
        if category:
            if not category.isdigit():
                raise ValidationError({"category": ["Must be a numeric category id."]})
            queryset = queryset.filter(category_id=int(category))

        search = (params.get("search") or "").strip()
        if search:
            queryset = queryset.filter(Q(title__icontains=search) | Q(content__icontains=search))

        if (params.get("mine") or "").lower() in TRUE_VALUES:
            if identity is None:
                raise NotAuthenticated()
            queryset = queryset.filter(owner_id=identity.user_id)

        return queryset

    def perform_create(self, serializer):
        """Attach the caller as owner and their team as scope."""
        user = self.request.user
        serializer.save(owner=user, team=get_primary_team(user), ip_address=client_ip(self.request))

    def perform_update(self, serializer):
        serializer.save(actor=self.request.user, ip_address=client_ip(self.request))

    def perform_destroy(self, instance):
        services.soft_delete_article(instance, actor=self.request.user, ip_address=client_ip(self.request))

    @extend_schema(request=None, responses=ArticleSerializer)
    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        """Publish the article; the first publication date is kept across re-publishes."""
        article = services.publish_article(self.get_object(), actor=request.user, ip_address=client_ip(request))
        return api_response(self.get_serializer(article).data)

    @extend_schema(request=None, responses=ArticleSerializer)
    @action(detail=True, methods=["post"])
    def unpublish(self, request, pk=None):
        """Move the article to the archived state."""
        article = services.unpublish_article(self.get_object(), actor=request.user, ip_address=client_ip(request))
        return api_response(self.get_serializer(article).data)

    @extend_schema(responses=ArticleSerializer)
    @action(detail=False, methods=["get"], url_path=r"slug/(?P<slug>[a-z0-9]+(?:-[a-z0-9]+)*)")
    def by_slug(self, request, slug=None):
        """Fetch an article by its slug, with the same visibility as by id."""
        article = get_object_or_404(self.get_queryset(), slug=slug)
        self.check_object_permissions(request, article)
        return api_response(self.get_serializer(article).data)


class CommentViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, mixins.DestroyModelMixin, BaseGenericViewSet):
    """Comments nested under an article.

    Reading or adding comments requires read access to the article. A comment
    may be deleted by its author or by whoever may delete the article.
    """

    serializer_class = CommentSerializer
    permission_classes: list[Any] = []
    pagination_class = None

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        # Hidden articles answer 404 before any payload validation happens.
        self.get_article()

    def get_article(self) -> Article:
        if not hasattr(self, "_article"):
            article = get_object_or_404(Article.objects.all(), pk=self.kwargs["article_pk"])
            enforce(resolve(subject_for(article), self.identity, Operation.READ, team_access=team_access_enabled()))
            self._article = article
        return self._article

    @property
    def identity(self):
        return current_identity(self.request)

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Comment.objects.none()
        return Comment.objects.filter(article=self.get_article()).select_related("user")

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["user"] = self.request.user
        return context

    def perform_create(self, serializer):
        user = self.request.user
        serializer.save(article=self.get_article(), user=user if user.is_authenticated else None)

    def get_object(self):
        comment = get_object_or_404(self.get_queryset(), pk=self.kwargs["pk"])
        enforce(self._delete_verdict(comment))
        return comment

    def _delete_verdict(self, comment: Comment) -> AccessVerdict:
        article = self.get_article()
        comment_subject = AccessSubject(owner_user_id=comment.user_id, status=article.status)
        verdict = resolve(comment_subject, self.identity, Operation.DELETE)
        if verdict.allowed or self.identity is None:
            return verdict
        moderation = resolve(subject_for(article), self.identity, Operation.DELETE, team_access=team_access_enabled())
        return moderation if moderation.allowed else verdict


class CategoryViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, BaseGenericViewSet):
    """Public category listing; any signed-in user may add categories."""

    serializer_class = CategorySerializer
    queryset = Category.objects.all()
    pagination_class = None

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticatedOr401()]
        return []


class TagListView(BaseAPIView):
    """Tags in use on published articles, most used first."""

    permission_classes: list[Any] = []

    @extend_schema(responses=TagCountSerializer(many=True))
    def get(self, request):
        rows = (
            ArticleTag.objects.filter(
                article__status=ArticleStatus.PUBLISHED, article__deleted_at__isnull=True
            )
            .values("tag_name")
            .annotate(count=Count("article", distinct=True))
            .order_by("-count", "tag_name")
        )
        data = [{"name": row["tag_name"], "count": row["count"]} for row in rows]
        return api_response(TagCountSerializer(data, many=True).data, status=status.HTTP_200_OK)


__all__ = ["ArticleViewSet", "CommentViewSet", "CategoryViewSet", "TagListView", "visible_articles"]
