"""HTTP tests for the posts API."""

from datetime import timedelta
from unittest import mock

from django.db import IntegrityError
from django.utils import timezone
from rest_framework.test import APIClient

from posts.models import Post, PostStatus
from tests.utils import APITestCase, client_for, create_post, create_user, seed_roles

POSTS_URL = "/api/v1/posts/"


class PostsApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_roles()
        cls.owner = create_user("owner@example.com", roles=[cls.roles["client"]], name="Olivia")
        cls.other = create_user("other@example.com", roles=[cls.roles["client"]], name="Oscar")
        cls.editor = create_user("editor@example.com", roles=[cls.roles["editor"]], name="Edith")
        cls.admin = create_user("admin@example.com", roles=[cls.roles["admin"]], name="Adam")

    def setUp(self):
        super().setUp()
        self.owner_client = client_for(self.owner)

    def test_list_requires_authentication(self):
        response = APIClient().get(POSTS_URL)

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"success": False, "message": "Unauthenticated."})

    def test_create_derives_slug_and_reading_time(self):
        response = self.owner_client.post(
            POSTS_URL, {"title": "Hello World!", "content": "word " * 450}, format="json"
        )
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["message"], "Post created successfully")
        self.assertEqual(body["data"]["slug"], "hello-world")
        self.assertEqual(body["data"]["reading_time"], 3)
        self.assertEqual(body["data"]["status"], "draft")
        self.assertEqual(body["data"]["author"]["id"], str(self.owner.id))

    def test_create_validation_errors_are_422(self):
        response = self.owner_client.post(POSTS_URL, {"content": "Body", "status": "live"}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 422)
        self.assertEqual(body["message"], "Validation failed.")
        self.assertIn("title", body["errors"])
        self.assertIn("status", body["errors"])

    def test_meta_data_must_be_an_object(self):
        response = self.owner_client.post(
            POSTS_URL, {"title": "T", "content": "C", "meta_data": ["a"]}, format="json"
        )

        self.assertEqual(response.status_code, 422)
        self.assertIn("meta_data", response.json()["errors"])

    def test_published_at_requires_published_status(self):
        future = (timezone.now() + timedelta(days=1)).isoformat()
        response = self.owner_client.post(
            POSTS_URL, {"title": "T", "content": "C", "published_at": future}, format="json"
        )

        self.assertEqual(response.status_code, 422)
        self.assertIn("published_at", response.json()["errors"])

    def test_create_scheduled_post(self):
        future = timezone.now() + timedelta(days=1)
        response = self.owner_client.post(
            POSTS_URL,
            {"title": "Soon", "content": "C", "status": "published", "published_at": future.isoformat()},
            format="json",
        )
        data = response.json()["data"]

        self.assertEqual(response.status_code, 201)
        self.assertEqual(data["status"], "published")
        self.assertIs(data["is_published"], False)

    def test_filter_sort_and_paginate_published_posts(self):
        now = timezone.now()
        for day in range(5):
            create_post(self.owner, f"Published {day}", status=PostStatus.PUBLISHED,
                        published_at=now - timedelta(days=day))
        create_post(self.owner, "Draft", status=PostStatus.DRAFT)

        response = self.owner_client.get(
            POSTS_URL + "?filter[status]=published&sort=-published_at&page[size]=2&page[number]=1"
        )
        data = response.json()["data"]

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["title"] for item in data["items"]], ["Published 0", "Published 1"])
        self.assertEqual(data["meta"], {"total_count": 5, "page_number": 1, "page_size": 2, "total_pages": 3})

    def test_invalid_scope_argument_is_400(self):
        response = self.owner_client.get(POSTS_URL + "?filter[published]=sometimes")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertIn("published", body["errors"])

    def test_unknown_query_keys_are_ignored(self):
        create_post(self.owner, "Only")

        response = self.owner_client.get(POSTS_URL + "?filter[secret]=1&sort=password&include=comments")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["meta"]["total_count"], 1)

    def test_meta_data_visibility_in_listing(self):
        create_post(self.owner, "Mine", meta_data={"k": "v"})

        own = self.owner_client.get(POSTS_URL).json()["data"]["items"][0]
        foreign = client_for(self.other).get(POSTS_URL).json()["data"]["items"][0]
        privileged = client_for(self.editor).get(POSTS_URL).json()["data"]["items"][0]

        self.assertEqual(own["meta_data"], {"k": "v"})
        self.assertNotIn("meta_data", foreign)
        self.assertNotIn("edit", foreign["urls"])
        self.assertEqual(privileged["meta_data"], {"k": "v"})
        self.assertTrue(privileged["urls"]["edit"].endswith("/api/v1/posts/mine/"))

    def test_retrieve_by_slug(self):
        create_post(self.owner, "Readable")

        response = client_for(self.other).get(POSTS_URL + "readable/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["author"]["name"], "Olivia")

    def test_missing_post_is_404(self):
        response = self.owner_client.get(POSTS_URL + "nope/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "Post not found."})

    def test_post_titled_like_a_collection_route_stays_addressable(self):
        created = self.owner_client.post(POSTS_URL, {"title": "Published", "content": "Body"}, format="json")
        slug = created.json()["data"]["slug"]

        self.assertEqual(slug, "published-2")
        fetched = self.owner_client.get(f"{POSTS_URL}{slug}/")
        self.assertEqual(fetched.json()["data"]["title"], "Published")
        self.assertEqual(self.owner_client.delete(f"{POSTS_URL}{slug}/").status_code, 200)
        self.assertFalse(Post.objects.filter(slug=slug).exists())

    def test_concurrent_duplicate_insert_is_422(self):
        duplicate = IntegrityError("UNIQUE constraint failed: posts_post.slug")
        with mock.patch("posts.lifecycle.create_post", side_effect=duplicate):
            response = self.owner_client.post(POSTS_URL, {"title": "Race", "content": "Body"}, format="json")

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message"], "Validation failed.")

    def test_reserved_slug_is_rejected(self):
        response = self.owner_client.post(
            POSTS_URL, {"title": "Mine", "content": "Body", "slug": "my-posts"}, format="json"
        )

        self.assertEqual(response.status_code, 422)
        self.assertIn("slug", response.json()["errors"])

    def test_update_by_owner(self):
        create_post(self.owner, "Original")

        response = self.owner_client.patch(POSTS_URL + "original/", {"title": "Renamed"}, format="json")
        data = response.json()["data"]

        self.assertEqual(response.status_code, 200)
        self.assertEqual(data["title"], "Renamed")
        self.assertEqual(data["slug"], "original")

    def test_update_by_stranger_is_403(self):
        create_post(self.owner, "Original")

        response = client_for(self.other).patch(POSTS_URL + "original/", {"title": "Hijack"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertIs(response.json()["success"], False)
        self.assertEqual(Post.objects.get(slug="original").title, "Original")

    def test_editor_cannot_change_foreign_post_but_admin_can(self):
        create_post(self.owner, "Original")

        self.assertEqual(client_for(self.editor).delete(POSTS_URL + "original/").status_code, 403)

        response = client_for(self.admin).delete(POSTS_URL + "original/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "message": "Post deleted successfully", "data": None})
        self.assertFalse(Post.objects.filter(slug="original").exists())

    def test_publish_is_idempotent_and_archive_keeps_published_at(self):
        create_post(self.owner, "Story")

        first = self.owner_client.post(POSTS_URL + "story/publish/").json()["data"]
        second = self.owner_client.post(POSTS_URL + "story/publish/").json()["data"]
        archived = self.owner_client.post(POSTS_URL + "story/archive/").json()["data"]

        self.assertEqual(first["status"], "published")
        self.assertIsNotNone(first["published_at"])
        self.assertEqual(second["published_at"], first["published_at"])
        self.assertEqual(archived["status"], "archived")
        self.assertEqual(archived["published_at"], first["published_at"])

    def test_publish_by_stranger_is_403(self):
        create_post(self.owner, "Story")

        response = client_for(self.other).post(POSTS_URL + "story/publish/")

        self.assertEqual(response.status_code, 403)

    def test_my_posts_lists_only_callers_posts(self):
        create_post(self.owner, "Mine")
        create_post(self.other, "Theirs")

        data = self.owner_client.get(POSTS_URL + "my-posts/").json()["data"]

        self.assertEqual([item["title"] for item in data["items"]], ["Mine"])

    def test_published_listing_is_public_and_effective_only(self):
        now = timezone.now()
        create_post(self.owner, "Old", status=PostStatus.PUBLISHED, published_at=now - timedelta(days=2))
        create_post(self.owner, "New", status=PostStatus.PUBLISHED, published_at=now - timedelta(days=1))
        create_post(self.owner, "Future", status=PostStatus.PUBLISHED, published_at=now + timedelta(days=1))
        create_post(self.owner, "Draft")

        response = APIClient().get(POSTS_URL + "published/")
        items = response.json()["data"]["items"]

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["title"] for item in items], ["New", "Old"])
        self.assertNotIn("meta_data", items[0])

    def test_method_not_allowed_envelope(self):
        response = self.owner_client.put(POSTS_URL, {}, format="json")

        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json(), {"success": False, "message": "Method not allowed."})

    def test_deleting_user_cascades_posts(self):
        create_post(self.other, "Doomed")

        response = client_for(self.admin).delete(f"/api/v1/users/{self.other.id}/")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Post.objects.filter(slug="doomed").exists())
