"""Tests for article services: slugs, tags, status transitions, and updates."""

from __future__ import annotations

from datetime import datetime, timezone

from django.test import SimpleTestCase, TestCase

from access_control.resolver import ArticleStatus
from articles import services
from articles.models import Article
from core.exceptions import RevisionConflict
from teams.models import ActivityLog, ActivityType, Team
from tests.utils import create_article, create_user


class SlugTests(SimpleTestCase):
    def test_generate_slug(self):
        cases = {
            "Hello, World!": "hello-world",
            "Café Déjà Vu": "cafe-deja-vu",
            "  --Already--slugged--  ": "already-slugged",
            "Top 10 Tips & Tricks": "top-10-tips-tricks",
            "日本語": "",
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(services.generate_slug(text), expected)

    def test_generate_slug_truncates_without_trailing_hyphen(self):
        self.assertEqual(services.generate_slug("abc def", max_length=4), "abc")

    def test_is_valid_slug(self):
        for value in ("hello", "hello-world", "a1-b2-c3"):
            with self.subTest(value=value):
                self.assertTrue(services.is_valid_slug(value))
        for value in ("", "Hello", "hello--world", "-hello", "hello-", "hello world", "a" * 501):
            with self.subTest(value=value):
                self.assertFalse(services.is_valid_slug(value))

    def test_clean_tags(self):
        self.assertEqual(services.clean_tags([" python", "", "django", "python ", None]), ["python", "django"])


class ApplyStatusTests(SimpleTestCase):
    def test_first_publish_stamps_published_at(self):
        article = Article(status=ArticleStatus.DRAFT)
        now = datetime(2024, 1, 2, tzinfo=timezone.utc)

        self.assertTrue(services.apply_status(article, "published", now))
        self.assertEqual(article.published_at, now)

    def test_archive_keeps_published_at_and_republish_does_not_restamp(self):
        first = datetime(2024, 1, 2, tzinfo=timezone.utc)
        article = Article(status=ArticleStatus.PUBLISHED, published_at=first)

        services.apply_status(article, ArticleStatus.ARCHIVED)
        self.assertEqual(article.published_at, first)

        services.apply_status(article, ArticleStatus.PUBLISHED, datetime(2025, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(article.published_at, first)

    def test_same_status_reports_no_change(self):
        article = Article(status=ArticleStatus.DRAFT)
        self.assertFalse(services.apply_status(article, ArticleStatus.DRAFT))
        self.assertIsNone(article.published_at)

    def test_unknown_status_raises(self):
        with self.assertRaises(ValueError):
            services.apply_status(Article(status=ArticleStatus.DRAFT), "scheduled")


class ArticleMutationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.team = Team.objects.create(name="Desk")
        cls.owner = create_user("svc@test.com", team=cls.team)

    def test_create_logs_activity_on_team(self):
        create_article(self.owner, "Logged", ArticleStatus.PUBLISHED, team=self.team, tags=["a", "a", "b"])

        actions = set(ActivityLog.objects.filter(team=self.team).values_list("action", flat=True))
        self.assertEqual(actions, {ActivityType.CREATE_ARTICLE, ActivityType.PUBLISH_ARTICLE})
        self.assertEqual(Article.objects.get(slug="logged").tag_names, ["a", "b"])

    def test_update_bumps_revision_and_replaces_tags(self):
        article = create_article(self.owner, "Versioned", tags=["old"])

        updated = services.update_article(article, {"content": "new"}, tags=["new"], expected_revision=1)

        self.assertEqual(updated.revision, 2)
        self.assertEqual(updated.content, "new")
        self.assertEqual(updated.tag_names, ["new"])

    def test_update_with_stale_revision_conflicts(self):
        article = create_article(self.owner, "Contended")
        services.update_article(article, {"content": "first"})

        with self.assertRaises(RevisionConflict):
            services.update_article(Article.objects.get(pk=article.pk), {"content": "second"}, expected_revision=1)
        self.assertEqual(Article.objects.get(pk=article.pk).content, "first")

    def test_update_without_revision_uses_loaded_revision(self):
        article = create_article(self.owner, "Loaded")
        stale_copy = Article.objects.get(pk=article.pk)
        services.update_article(article, {"content": "winner"})

        with self.assertRaises(RevisionConflict):
            services.update_article(stale_copy, {"content": "loser"})

    def test_unpublish_logs_and_archives(self):
        article = create_article(self.owner, "Retired", ArticleStatus.PUBLISHED, team=self.team)

        archived = services.unpublish_article(article)

        self.assertEqual(archived.status, ArticleStatus.ARCHIVED)
        self.assertIsNotNone(archived.published_at)
        self.assertEqual(archived.revision, 2)
        self.assertTrue(ActivityLog.objects.filter(action=ActivityType.UNPUBLISH_ARTICLE).exists())

    def test_publish_twice_is_a_no_op(self):
        article = create_article(self.owner, "Steady", ArticleStatus.PUBLISHED)
        self.assertEqual(services.publish_article(article).revision, 1)

    def test_soft_delete_hides_article(self):
        article = create_article(self.owner, "Gone")
        services.soft_delete_article(article)

        self.assertFalse(Article.objects.filter(pk=article.pk).exists())
        self.assertTrue(Article.all_objects.filter(pk=article.pk).exists())
        self.assertFalse(services.slug_taken("gone"))
