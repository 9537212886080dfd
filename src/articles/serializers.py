"""Serializers for articles, categories, tags, and comments."""

from rest_framework import serializers

from access_control.resolver import ArticleStatus, normalize_status
from . import services
from .models import Article, Category, Comment
from .services import SLUG_TAKEN_MESSAGE, TAG_MAX_LENGTH, generate_slug, is_valid_slug, slug_taken

SLUG_ERROR = "Slug may only contain lowercase letters, digits, and single hyphens."


class StatusField(serializers.CharField):
    """Article status, accepting the legacy ``unpublished`` alias."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        try:
            return normalize_status(value)
        except ValueError:
            raise serializers.ValidationError(
                f"Invalid status. Expected one of: {', '.join(ArticleStatus.values)}."
            )


class TagListField(serializers.ListField):
    """List of tag names; a comma-separated string is accepted too."""

    child = serializers.CharField(max_length=TAG_MAX_LENGTH, allow_blank=True)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.split(",")
        return super().to_internal_value(data)

    def to_representation(self, data):
        return [tag.tag_name if hasattr(tag, "tag_name") else tag for tag in data.all()]


class AuthorSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)


class CategorySerializer(serializers.ModelSerializer):
    slug = serializers.CharField(max_length=100, required=False, allow_blank=True)

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category name is required.")
        if Category.objects.filter(name__iexact=value).exists():
            raise serializers.ValidationError("Category with this name already exists.")
        return value

    def validate(self, attrs):
        slug = attrs.get("slug") or generate_slug(attrs.get("name", ""), max_length=100)
        if not is_valid_slug(slug):
            raise serializers.ValidationError({"slug": [SLUG_ERROR]})
        if Category.objects.filter(slug=slug).exists():
            raise serializers.ValidationError({"slug": ["Category with this slug already exists."]})
        attrs["slug"] = slug
        return attrs


class ArticleSerializer(serializers.ModelSerializer):
    """Read and write representation of an article.

    ``slug`` is derived from the title when omitted. ``revision`` is optional
    on writes; when present it must match the stored revision.
    """

    author = AuthorSerializer(source="owner", read_only=True)
    team_id = serializers.IntegerField(read_only=True)
    category = CategorySerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        source="category", queryset=Category.objects.all(), required=False, allow_null=True, write_only=True
    )
    slug = serializers.CharField(max_length=500, required=False, allow_blank=True)
    excerpt = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)
    status = StatusField(required=False)
    tags = TagListField(required=False)
    revision = serializers.IntegerField(required=False, min_value=1)

    class Meta:
        model = Article
        fields = [
            "id",
            "title",
            "slug",
            "content",
            "excerpt",
            "status",
            "published_at",
            "author",
            "team_id",
            "category",
            "category_id",
            "tags",
            "revision",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "published_at", "author", "team_id", "created_at", "updated_at"]
        extra_kwargs = {"title": {"max_length": 500}}

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title is required.")
        return value

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Content is required.")
        return value

    def validate_excerpt(self, value):
        return value or None

    def validate(self, attrs):
        instance = self.instance
        slug = attrs.get("slug")
        title_changed = "title" in attrs and (instance is None or attrs["title"] != instance.title)

        if slug:
            if not is_valid_slug(slug):
                raise serializers.ValidationError({"slug": [SLUG_ERROR]})
        elif instance is None or title_changed or slug == "":
            slug = generate_slug(attrs.get("title", instance.title if instance else ""))
            if not slug:
                raise serializers.ValidationError(
                    {"slug": ["Could not derive a slug from the title; provide one explicitly."]}
                )

        if slug:
            if slug_taken(slug, exclude_pk=instance.pk if instance else None):
                raise serializers.ValidationError({"slug": [SLUG_TAKEN_MESSAGE]})
            attrs["slug"] = slug

        if instance is None:
            attrs.setdefault("status", ArticleStatus.DRAFT)
        return attrs

    def create(self, validated_data):
        validated_data.pop("revision", None)
        tags = validated_data.pop("tags", None)
        owner = validated_data.pop("owner")
        team = validated_data.pop("team", None)
        ip_address = validated_data.pop("ip_address", None)
        return services.create_article(owner, validated_data, tags=tags, team=team, ip_address=ip_address)

    def update(self, instance, validated_data):
        expected_revision = validated_data.pop("revision", None)
        tags = validated_data.pop("tags", None)
        actor = validated_data.pop("actor", None)
        ip_address = validated_data.pop("ip_address", None)
        return services.update_article(
            instance,
            validated_data,
            tags=tags,
            expected_revision=expected_revision,
            actor=actor,
            ip_address=ip_address,
        )


class CommentSerializer(serializers.ModelSerializer):
    """Comment with either a linked user or an anonymous name/email."""

    user = AuthorSerializer(read_only=True)
    author_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    author_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    content = serializers.CharField(max_length=5000)

    class Meta:
        model = Comment
        fields = ["id", "article_id", "user", "author_name", "author_email", "content", "created_at", "updated_at"]
        read_only_fields = ["id", "article_id", "user", "created_at", "updated_at"]

    def validate_content(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Comment content is required.")
        return value

    def validate(self, attrs):
        user = self.context.get("user")
        if user is not None and getattr(user, "is_authenticated", False):
            # Signed-in comments carry the account, never free-form identity.
            attrs.pop("author_name", None)
            attrs.pop("author_email", None)
            return attrs
        if not (attrs.get("author_name") or "").strip() or not attrs.get("author_email"):
            raise serializers.ValidationError("Name and email are required for anonymous comments.")
        attrs["author_name"] = attrs["author_name"].strip()
        return attrs

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # Anonymous commenters' emails are never echoed back publicly.
        data.pop("author_email", None)
        return data


class TagCountSerializer(serializers.Serializer):
    name = serializers.CharField()
    count = serializers.IntegerField()


__all__ = [
    "ArticleSerializer",
    "CategorySerializer",
    "CommentSerializer",
    "TagCountSerializer",
]
