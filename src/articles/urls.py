"""Routing for articles, nested comments, categories, and tags."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ArticleViewSet, CategoryViewSet, CommentViewSet, TagListView

router = DefaultRouter()
router.register(r"articles", ArticleViewSet, basename="article")
router.register(r"categories", CategoryViewSet, basename="category")

comment_list = CommentViewSet.as_view({"get": "list", "post": "create"})
comment_detail = CommentViewSet.as_view({"delete": "destroy"})

urlpatterns = [
    path("articles/<int:article_pk>/comments/", comment_list, name="article-comment-list"),
    path("articles/<int:article_pk>/comments/<int:pk>/", comment_detail, name="article-comment-detail"),
    path("tags/", TagListView.as_view(), name="tag-list"),
    path("", include(router.urls)),
]
