"""File storage endpoints and health probes."""

import shutil
import tempfile
from unittest import mock

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import override_settings
from rest_framework.test import APIClient

from tests.utils import APITestCase, client_for, create_user


class StorageTestCase(APITestCase):
    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.media_root = tempfile.mkdtemp()
        cls.media_override = override_settings(MEDIA_ROOT=cls.media_root)
        cls.media_override.enable()

    @classmethod
    def tearDownClass(cls):
        cls.media_override.disable()
        shutil.rmtree(cls.media_root, ignore_errors=True)
        super().tearDownClass()


class FileApiTests(StorageTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("files@example.com")

    def setUp(self):
        super().setUp()
        self.client_api = client_for(self.user)

    def test_upload_requires_authentication(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        response = APIClient().post("/api/v1/files/upload/", {"file": upload}, format="multipart")

        self.assertEqual(response.status_code, 401)

    def test_upload_file_into_type_folder(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        response = self.client_api.post(
            "/api/v1/files/upload/", {"file": upload, "type": "document", "folder": "docs"}, format="multipart"
        )
        data = response.json()["data"]

        self.assertEqual(response.status_code, 201)
        self.assertTrue(data["path"].startswith("docs/document/"))
        self.assertTrue(data["path"].endswith(".txt"))
        self.assertEqual(data["original_name"], "notes.txt")
        self.assertEqual(data["size"], 5)
        self.assertTrue(default_storage.exists(data["path"]))

    def test_upload_rejects_traversal(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        response = self.client_api.post(
            "/api/v1/files/upload/", {"file": upload, "folder": "../etc"}, format="multipart"
        )

        self.assertEqual(response.status_code, 422)
        self.assertIn("folder", response.json()["errors"])

    @override_settings(MAX_UPLOAD_SIZE=4)
    def test_upload_rejects_large_files(self):
        upload = SimpleUploadedFile("big.txt", b"hello", content_type="text/plain")

        response = self.client_api.post("/api/v1/files/upload/", {"file": upload}, format="multipart")

        self.assertEqual(response.status_code, 422)
        self.assertIn("file", response.json()["errors"])

    def test_image_upload_checks_extension(self):
        bad = SimpleUploadedFile("script.exe", b"MZ", content_type="application/octet-stream")
        good = SimpleUploadedFile("logo.svg", b"<svg/>", content_type="image/svg+xml")

        rejected = self.client_api.post("/api/v1/files/upload-image/", {"image": bad}, format="multipart")
        accepted = self.client_api.post("/api/v1/files/upload-image/", {"image": good}, format="multipart")

        self.assertEqual(rejected.status_code, 422)
        self.assertEqual(accepted.status_code, 201)
        self.assertTrue(accepted.json()["data"]["path"].startswith("images/"))

    def test_delete_file(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        path = self.client_api.post("/api/v1/files/upload/", {"file": upload}, format="multipart").json()["data"]["path"]

        deleted = self.client_api.delete("/api/v1/files/", {"path": path}, format="json")
        missing = self.client_api.delete("/api/v1/files/", {"path": path}, format="json")

        self.assertEqual(deleted.status_code, 200)
        self.assertFalse(default_storage.exists(path))
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["message"], "File not found.")


class HealthTests(StorageTestCase):
    def test_basic_health(self):
        response = APIClient().get("/health/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "healthy")

    def test_detailed_health_reports_each_dependency(self):
        response = APIClient().get("/health/detailed/")
        checks = response.json()["data"]["checks"]

        self.assertEqual(response.status_code, 200)
        self.assertEqual(set(checks), {"database", "cache", "storage"})
        for check in checks.values():
            self.assertIs(check["healthy"], True)
            self.assertGreaterEqual(check["latency_ms"], 0)

    def test_failing_dependency_returns_503(self):
        with mock.patch.dict("core.health.CHECKS", {"database": mock.Mock(side_effect=DatabaseError("down"))}):
            response = APIClient().get("/health/detailed/")
        body = response.json()

        self.assertEqual(response.status_code, 503)
        self.assertIs(body["success"], False)
        self.assertIs(body["errors"]["checks"]["database"]["healthy"], False)
        self.assertIs(body["errors"]["checks"]["cache"]["healthy"], True)


class UnmatchedRouteTests(APITestCase):
    def test_unknown_route_is_a_json_envelope(self):
        response = APIClient().get("/api/v1/nothing-here/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "Route not found."})

    @override_settings(DEBUG=True)
    def test_unknown_route_is_json_with_debug_enabled(self):
        response = APIClient().get("/api/v1/nothing-here/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response["Content-Type"], "application/json")
