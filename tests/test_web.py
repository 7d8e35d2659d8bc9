import json
import unittest

from fastapi.testclient import TestClient
from fakes import FakeClient, service_error

from social_analyzer.pipeline import SuggestionPipeline
from social_analyzer.web import app, get_pipeline

POST = b"Our spring collection drops Friday. Tag a friend who needs new sneakers!"


class TestWebApi(unittest.TestCase):
    def setUp(self):
        self.fake_client = FakeClient()
        app.dependency_overrides[get_pipeline] = lambda: SuggestionPipeline(
            self.fake_client, credential="sk-test"
        )
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_analyze_markdown_upload(self):
        response = self.client.post(
            "/api/analyze",
            files={"file": ("launch.md", POST, "application/octet-stream")},
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["filename"], "launch.md")
        self.assertEqual(payload["extracted_text"], POST.decode())
        self.assertEqual(len(payload["suggestions"]), 5)
        self.assertEqual(json.loads(payload["suggestions_json"]), payload["suggestions"])
        self.assertEqual(payload["tier"], "embedded_array")
        self.assertEqual(payload["model"], "fake-model")
        self.assertEqual(len(self.fake_client.calls), 1)

    def test_unsupported_upload(self):
        response = self.client.post(
            "/api/analyze",
            files={"file": ("archive.zip", b"PK\x03\x04", "application/zip")},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_type"], "UnsupportedFormat")
        self.assertEqual(self.fake_client.calls, [])

    def test_insufficient_text(self):
        response = self.client.post(
            "/api/analyze",
            files={"file": ("tiny.txt", b"hi", "text/plain")},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_type"], "InsufficientText")

    def test_service_error_maps_to_502(self):
        self.fake_client.error = service_error("model overloaded")

        response = self.client.post(
            "/api/analyze",
            files={"file": ("post.txt", POST, "text/plain")},
        )

        self.assertEqual(response.status_code, 502)
        self.assertEqual(
            response.json(), {"error": "model overloaded", "error_type": "ServiceError"}
        )

    def test_file_too_large(self):
        big = b"a" * (10 * 1024 * 1024 + 1)

        response = self.client.post(
            "/api/analyze",
            files={"file": ("big.txt", big, "text/plain")},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_type"], "file_too_large")
        self.assertEqual(self.fake_client.calls, [])

    def test_download(self):
        tips = [{"title": "A", "body": "B", "platform": "X"}]

        response = self.client.post(
            "/api/download",
            data={"suggestions": json.dumps(tips), "filename": "launch.md"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "application/json")
        self.assertIn('filename="launch.md.tips.json"', response.headers["content-disposition"])
        self.assertEqual(response.json(), tips)
        self.assertEqual(response.text, json.dumps(tips, indent=2))

    def test_download_default_name(self):
        response = self.client.post("/api/download", data={"suggestions": "[]"})
        self.assertIn('filename="tips.tips.json"', response.headers["content-disposition"])

    def test_download_non_ascii_name(self):
        response = self.client.post(
            "/api/download", data={"suggestions": "[]", "filename": "資料.pdf"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.headers["content-disposition"],
            "attachment; filename*=utf-8''%E8%B3%87%E6%96%99.pdf.tips.json",
        )

    def test_download_name_with_quote(self):
        response = self.client.post(
            "/api/download", data={"suggestions": "[]", "filename": 'a".pdf'}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.headers["content-disposition"],
            "attachment; filename*=utf-8''a%22.pdf.tips.json",
        )

    def test_download_rejects_invalid_json(self):
        response = self.client.post("/api/download", data={"suggestions": "[oops"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_type"], "invalid_suggestions")


if __name__ == "__main__":
    unittest.main()
