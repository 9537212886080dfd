"""API tests for article visibility, CRUD, publishing, and listing."""

from __future__ import annotations

from unittest import mock

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from access_control.resolver import ArticleStatus
from articles.models import Article, Category
from teams.models import ActivityLog, ActivityType, Team
from tests.utils import FakeRedisMixin, auth_client, create_article, create_user


class ArticleAccessTests(FakeRedisMixin, TestCase):
    """Status codes for each caller/article combination."""

    @classmethod
    def setUpTestData(cls):
        cls.team = Team.objects.create(name="Newsroom")
        cls.owner = create_user("owner@test.com", name="Owner", team=cls.team)
        cls.stranger = create_user("stranger@test.com", name="Stranger")
        cls.draft = create_article(cls.owner, "Secret Draft", team=cls.team)
        cls.published = create_article(cls.owner, "Public Post", ArticleStatus.PUBLISHED, team=cls.team)
        cls.archived = create_article(cls.owner, "Old Post", ArticleStatus.ARCHIVED, team=cls.team)

    def test_anonymous_reads_published_article(self):
        response = APIClient().get(f"/articles/{self.published.pk}/")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["errors"], [])
        self.assertEqual(body["data"]["slug"], "public-post")
        self.assertEqual(body["data"]["author"]["name"], "Owner")

    def test_anonymous_draft_read_is_404(self):
        response = APIClient().get(f"/articles/{self.draft.pk}/")
        self.assertEqual(response.status_code, 404)
        self.assertIsNone(response.json()["data"])

    def test_hidden_and_missing_articles_are_indistinguishable(self):
        client = auth_client(self.stranger)
        hidden = client.get(f"/articles/{self.draft.pk}/")
        missing = client.get("/articles/999999/")

        self.assertEqual(hidden.status_code, 404)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(hidden.json(), missing.json())

    def test_stranger_archived_read_is_404(self):
        response = auth_client(self.stranger).get(f"/articles/{self.archived.pk}/")
        self.assertEqual(response.status_code, 404)

    def test_owner_reads_own_draft(self):
        response = auth_client(self.owner).get(f"/articles/{self.draft.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "draft")

    def test_anonymous_update_and_delete_are_401(self):
        client = APIClient()
        update = client.patch(f"/articles/{self.published.pk}/", {"title": "Nope"}, format="json")
        delete = client.delete(f"/articles/{self.published.pk}/")

        self.assertEqual(update.status_code, 401)
        self.assertEqual(delete.status_code, 401)

    def test_stranger_update_and_delete_of_published_are_403(self):
        client = auth_client(self.stranger)
        update = client.patch(f"/articles/{self.published.pk}/", {"title": "Hack"}, format="json")
        delete = client.delete(f"/articles/{self.published.pk}/")

        self.assertEqual(update.status_code, 403)
        self.assertEqual(delete.status_code, 403)
        self.assertTrue(Article.objects.filter(pk=self.published.pk).exists())

    def test_stranger_delete_of_draft_is_403(self):
        response = auth_client(self.stranger).delete(f"/articles/{self.draft.pk}/")
        self.assertEqual(response.status_code, 403)

    def test_slug_lookup_follows_the_same_rules(self):
        self.assertEqual(APIClient().get("/articles/slug/public-post/").status_code, 200)
        self.assertEqual(APIClient().get("/articles/slug/secret-draft/").status_code, 404)
        self.assertEqual(auth_client(self.stranger).get("/articles/slug/secret-draft/").status_code, 404)
        self.assertEqual(auth_client(self.owner).get("/articles/slug/secret-draft/").status_code, 200)
        self.assertEqual(APIClient().get("/articles/slug/no-such-article/").status_code, 404)


@override_settings(ARTICLES_TEAM_ACCESS=True)
class TeamScopedAccessTests(FakeRedisMixin, TestCase):
    """With team access on, teammates share drafts and editing rights."""

    @classmethod
    def setUpTestData(cls):
        cls.team = Team.objects.create(name="Shared")
        cls.owner = create_user("lead@test.com", team=cls.team)
        cls.teammate = create_user("mate@test.com", team=cls.team)
        cls.outsider = create_user("outsider@test.com", team=Team.objects.create(name="Other"))
        cls.draft = create_article(cls.owner, "Team Draft", team=cls.team)

    def test_teammate_reads_and_edits_team_draft(self):
        client = auth_client(self.teammate)
        self.assertEqual(client.get(f"/articles/{self.draft.pk}/").status_code, 200)

        response = client.patch(f"/articles/{self.draft.pk}/", {"content": "Edited by mate"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["content"], "Edited by mate")

    def test_teammate_sees_team_draft_in_listing(self):
        response = auth_client(self.teammate).get("/articles/")
        slugs = [item["slug"] for item in response.json()["data"]["results"]]
        self.assertEqual(slugs, ["team-draft"])

    def test_outsider_still_gets_404_and_403(self):
        client = auth_client(self.outsider)
        self.assertEqual(client.get(f"/articles/{self.draft.pk}/").status_code, 404)
        self.assertEqual(client.delete(f"/articles/{self.draft.pk}/").status_code, 403)


class ArticleCrudTests(FakeRedisMixin, TestCase):
    """Create, update, publish, and delete through the API."""

    @classmethod
    def setUpTestData(cls):
        cls.team = Team.objects.create(name="Writers")
        cls.owner = create_user("writer@test.com", name="Writer", team=cls.team)
        cls.category = Category.objects.create(name="Engineering", slug="engineering")

    def setUp(self):
        self.client_api = auth_client(self.owner)

    def _create(self, **payload):
        body = {"title": "My First Article", "content": "Hello there"}
        body.update(payload)
        return self.client_api.post("/articles/", body, format="json")

    def test_anonymous_create_is_401(self):
        response = APIClient().post("/articles/", {"title": "X", "content": "Y"}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_create_defaults_to_draft_with_derived_slug(self):
        response = self._create(tags="python, django , python", category_id=self.category.pk)
        data = response.json()["data"]

        self.assertEqual(response.status_code, 201)
        self.assertEqual(data["slug"], "my-first-article")
        self.assertEqual(data["status"], "draft")
        self.assertIsNone(data["published_at"])
        self.assertEqual(data["tags"], ["python", "django"])
        self.assertEqual(data["category"]["slug"], "engineering")
        self.assertEqual(data["team_id"], self.team.pk)
        self.assertEqual(data["revision"], 1)
        self.assertTrue(
            ActivityLog.objects.filter(team=self.team, action=ActivityType.CREATE_ARTICLE).exists()
        )

    def test_create_published_stamps_published_at(self):
        response = self._create(status="published")
        self.assertEqual(response.status_code, 201)
        self.assertIsNotNone(response.json()["data"]["published_at"])

    def test_create_rejects_bad_input(self):
        cases = [
            {"title": ""},
            {"content": "   "},
            {"slug": "Not A Slug"},
            {"status": "scheduled"},
            {"category_id": 424242},
            {"title": "日本語のタイトル"},
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                response = self._create(**payload)
                body = response.json()
                self.assertEqual(response.status_code, 400)
                self.assertIsNone(body["data"])
                self.assertTrue(body["errors"])

    def test_duplicate_slug_rejected(self):
        self.assertEqual(self._create().status_code, 201)
        self.assertEqual(self._create().status_code, 400)

    def test_slug_lost_to_concurrent_writer_is_400(self):
        self.assertEqual(self._create().status_code, 201)
        other_id = self._create(title="Second Article").json()["data"]["id"]

        # The uniqueness pre-check passes, as it would for a request racing another insert.
        with mock.patch("articles.serializers.slug_taken", return_value=False):
            duplicate = self._create()
            renamed = self.client_api.patch(
                f"/articles/{other_id}/", {"title": "My First Article"}, format="json"
            )

        for response in (duplicate, renamed):
            body = response.json()
            self.assertEqual(response.status_code, 400)
            self.assertIsNone(body["data"])
            self.assertTrue(body["errors"])
        self.assertEqual(Article.objects.filter(slug="my-first-article").count(), 1)
        self.assertEqual(Article.objects.get(pk=other_id).revision, 1)

    def test_forged_forwarded_address_is_not_logged(self):
        response = self.client_api.post(
            "/articles/",
            {"title": "Audited", "content": "Body"},
            format="json",
            HTTP_X_FORWARDED_FOR="not-an-ip, 1.2.3.4",
        )

        self.assertEqual(response.status_code, 201)
        addresses = set(ActivityLog.objects.filter(team=self.team).values_list("ip_address", flat=True))
        self.assertEqual(addresses, {"127.0.0.1"})

    def test_unpublished_alias_stored_as_archived(self):
        response = self._create(status="unpublished")
        self.assertEqual(response.json()["data"]["status"], "archived")

    def test_update_changes_title_and_slug(self):
        article_id = self._create().json()["data"]["id"]
        response = self.client_api.put(
            f"/articles/{article_id}/", {"title": "Renamed Article", "content": "New body"}, format="json"
        )
        data = response.json()["data"]

        self.assertEqual(response.status_code, 200)
        self.assertEqual(data["slug"], "renamed-article")
        self.assertEqual(data["revision"], 2)

    def test_stale_revision_is_rejected_with_409(self):
        article_id = self._create().json()["data"]["id"]
        first = self.client_api.patch(f"/articles/{article_id}/", {"content": "v2", "revision": 1}, format="json")
        stale = self.client_api.patch(f"/articles/{article_id}/", {"content": "v2b", "revision": 1}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(stale.status_code, 409)
        self.assertIsNone(stale.json()["data"])
        self.assertEqual(Article.objects.get(pk=article_id).content, "v2")

    def test_publish_then_unpublish_keeps_published_at(self):
        article_id = self._create().json()["data"]["id"]

        published = self.client_api.post(f"/articles/{article_id}/publish/")
        self.assertEqual(published.status_code, 200)
        first_published_at = published.json()["data"]["published_at"]
        self.assertIsNotNone(first_published_at)

        archived = self.client_api.post(f"/articles/{article_id}/unpublish/")
        self.assertEqual(archived.json()["data"]["status"], "archived")
        self.assertEqual(archived.json()["data"]["published_at"], first_published_at)

        republished = self.client_api.post(f"/articles/{article_id}/publish/")
        self.assertEqual(republished.json()["data"]["published_at"], first_published_at)

    def test_stranger_cannot_publish(self):
        article_id = self._create().json()["data"]["id"]
        stranger = create_user("nosy@test.com")

        response = auth_client(stranger).post(f"/articles/{article_id}/publish/")
        self.assertEqual(response.status_code, 403)

    def test_delete_is_soft_and_frees_slug(self):
        article_id = self._create().json()["data"]["id"]

        response = self.client_api.delete(f"/articles/{article_id}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Article.objects.filter(pk=article_id).exists())
        self.assertIsNotNone(Article.all_objects.get(pk=article_id).deleted_at)
        self.assertEqual(self.client_api.get(f"/articles/{article_id}/").status_code, 404)

        self.assertEqual(self._create().status_code, 201)


class ArticleListTests(FakeRedisMixin, TestCase):
    """Listing respects visibility, filters, and pagination."""

    @classmethod
    def setUpTestData(cls):
        cls.alice = create_user("alice@test.com", name="Alice")
        cls.bob = create_user("bob@test.com", name="Bob")
        cls.category = Category.objects.create(name="Product", slug="product")
        for index in range(3):
            create_article(cls.alice, f"Alice Public {index}", ArticleStatus.PUBLISHED)
        create_article(cls.alice, "Alice Draft", category=cls.category)
        create_article(cls.bob, "Bob Public", ArticleStatus.PUBLISHED, category=cls.category)
        create_article(cls.bob, "Bob Draft")

    def _slugs(self, response):
        return {item["slug"] for item in response.json()["data"]["results"]}

    def test_anonymous_sees_only_published(self):
        response = APIClient().get("/articles/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(self._slugs(response)), 4)
        self.assertNotIn("alice-draft", self._slugs(response))
        self.assertNotIn("bob-draft", self._slugs(response))

    def test_authenticated_sees_published_plus_own(self):
        slugs = self._slugs(auth_client(self.alice).get("/articles/"))
        self.assertIn("alice-draft", slugs)
        self.assertNotIn("bob-draft", slugs)

    def test_status_filter_cannot_reveal_other_drafts(self):
        slugs = self._slugs(auth_client(self.alice).get("/articles/?status=draft"))
        self.assertEqual(slugs, {"alice-draft"})

    def test_filters(self):
        client = auth_client(self.alice)
        self.assertEqual(self._slugs(client.get(f"/articles/?author={self.bob.pk}")), {"bob-public"})
        self.assertEqual(
            self._slugs(client.get(f"/articles/?category={self.category.pk}")), {"alice-draft", "bob-public"}
        )
        self.assertEqual(self._slugs(client.get("/articles/?search=BOB")), {"bob-public"})
        self.assertEqual(len(self._slugs(client.get("/articles/?mine=true"))), 4)

    def test_invalid_filters_are_400(self):
        for query in ("status=scheduled", "author=not-a-uuid", "category=abc"):
            with self.subTest(query=query):
                self.assertEqual(APIClient().get(f"/articles/?{query}").status_code, 400)

    def test_mine_requires_authentication(self):
        self.assertEqual(APIClient().get("/articles/?mine=true").status_code, 401)

    def test_pagination_metadata(self):
        response = APIClient().get("/articles/?page=2&limit=3")
        data = response.json()["data"]

        self.assertEqual(len(data["results"]), 1)
        self.assertEqual(
            data["pagination"], {"page": 2, "limit": 3, "total_count": 4, "total_pages": 2}
        )

    def test_page_far_past_the_end_is_empty(self):
        response = APIClient().get("/articles/?page=100000000000000000000")
        data = response.json()["data"]

        self.assertEqual(response.status_code, 200)
        self.assertEqual(data["results"], [])
        self.assertEqual(data["pagination"]["total_count"], 4)

    def test_newest_first(self):
        results = APIClient().get("/articles/").json()["data"]["results"]
        self.assertEqual(results[0]["slug"], "bob-public")
