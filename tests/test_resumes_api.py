import os
import sqlite3
import tempfile
import unittest
from dataclasses import replace
from unittest.mock import patch

from fastapi.testclient import TestClient

from document_factory import build_docx, build_pdf
from resume_organizer.core.config import settings
from resume_organizer.core.rate_limit import limiter
from resume_organizer.main import create_app

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ResumesApiTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        config = replace(
            settings,
            upload_dir=os.path.join(self.tmp.name, "uploads"),
            resume_db_path=os.path.join(self.tmp.name, "data", "resumes.db"),
        )
        self.app = create_app(config)
        self.client = TestClient(self.app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        self.tmp.cleanup()

    def _upload(self, filename: str, content: bytes, content_type: str = PDF_TYPE, **fields):
        return self.client.post(
            "/api/upload",
            files={"resume": (filename, content, content_type)},
            data=fields,
        )

    def test_root_and_health(self):
        self.assertEqual(self.client.get("/").json(), {"message": "Resume Organizer API is running!"})
        self.assertEqual(self.client.get("/api/health").json(), {"status": "healthy"})

    def test_upload_pdf_returns_created_record(self):
        content = build_pdf(["Jane Doe", "Software Engineer", "jane.doe@example.com", "(555) 123-4567"])
        response = self._upload("jane.pdf", content, tags="Frontend, , React ,Senior", name="Ignored")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["message"], "Resume uploaded successfully")

        resume = body["resume"]
        self.assertTrue(resume["id"])
        self.assertEqual(resume["name"], "Jane Doe")
        self.assertEqual(resume["email"], "jane.doe@example.com")
        self.assertEqual(resume["phone"], "(555) 123-4567")
        self.assertEqual(resume["tags"], ["Frontend", "React", "Senior"])
        self.assertEqual(resume["originalFileName"], "jane.pdf")
        self.assertEqual(resume["fileType"], ".pdf")
        self.assertRegex(resume["storedFileName"], r"^resume-\d+-\d{9}\.pdf$")
        self.assertIn("uploadedAt", resume)

    def test_upload_docx_uses_form_fallbacks(self):
        content = build_docx(["Email: x@y.com", "Phone: 555-1234"])
        response = self._upload("cv.docx", content, DOCX_TYPE, name="", phone="555 000 1111")
        self.assertEqual(response.status_code, 201)
        resume = response.json()["resume"]
        self.assertEqual(resume["name"], "Unknown")
        self.assertEqual(resume["email"], "x@y.com")
        self.assertEqual(resume["phone"], "555 000 1111")
        self.assertEqual(resume["tags"], [])

    def test_upload_without_file_is_400(self):
        response = self.client.post("/api/upload", data={"name": "Jane"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No file uploaded"})

    def test_upload_wrong_extension_is_400_and_stores_nothing(self):
        response = self._upload("notes.txt", b"Jane Doe", "text/plain")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Only PDF and DOCX files are allowed!"})
        self.assertEqual(self.client.get("/api/resumes").json(), [])
        self.assertFalse(os.path.exists(os.path.join(self.tmp.name, "uploads")))

    def test_upload_over_size_limit_is_400(self):
        content = b"%PDF-" + b"0" * (10 * 1024 * 1024)
        response = self._upload("big.pdf", content)
        self.assertEqual(response.status_code, 400)
        self.assertIn("File too large", response.json()["error"])

    def test_corrupt_document_returns_generic_error(self):
        response = self._upload("broken.pdf", b"%PDF-1.4\ngarbage")
        self.assertEqual(response.status_code, 500)
        self.assertIn("Unable to extract text", response.json()["error"])
        self.assertEqual(self.client.get("/api/resumes").json(), [])

    def test_read_failures_report_fetch_errors(self):
        closed = sqlite3.connect(":memory:")
        closed.close()
        store = self.app.state.pipeline.record_store
        with patch.object(store, "_get_connection", return_value=closed):
            resumes = self.client.get("/api/resumes")
            tags = self.client.get("/api/tags")
        self.assertEqual(resumes.status_code, 500)
        self.assertEqual(resumes.json(), {"error": "Error fetching resumes"})
        self.assertEqual(tags.status_code, 500)
        self.assertEqual(tags.json(), {"error": "Error fetching tags"})

    def test_app_config_controls_rate_limiter(self):
        self.addCleanup(setattr, limiter, "enabled", limiter.enabled)
        create_app(replace(settings, rate_limit_enabled=False))
        self.assertFalse(limiter.enabled)
        create_app(replace(settings, rate_limit_enabled=True))
        self.assertTrue(limiter.enabled)

    def test_list_search_and_tag_filters(self):
        self._upload("jane.docx", build_docx(["Jane Doe", "jane@example.com"]), DOCX_TYPE, tags="React,Senior")
        self._upload("john.docx", build_docx(["John Smith", "john@corp.io"]), DOCX_TYPE, tags="Python")

        everyone = self.client.get("/api/resumes").json()
        self.assertEqual([item["name"] for item in everyone], ["John Smith", "Jane Doe"])

        by_search = self.client.get("/api/resumes", params={"search": "corp.io"}).json()
        self.assertEqual([item["name"] for item in by_search], ["John Smith"])

        by_tag = self.client.get("/api/resumes", params={"tag": "Senior"}).json()
        self.assertEqual([item["name"] for item in by_tag], ["Jane Doe"])

        self.assertEqual(self.client.get("/api/tags").json(), ["Python", "React", "Senior"])

    def test_get_one_and_404(self):
        created = self._upload("jane.docx", build_docx(["Jane Doe"]), DOCX_TYPE).json()["resume"]
        fetched = self.client.get(f"/api/resumes/{created['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), created)

        missing = self.client.get("/api/resumes/does-not-exist")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"error": "Resume not found"})

    def test_download_stored_file(self):
        content = build_docx(["Jane Doe"])
        created = self._upload("jane.docx", content, DOCX_TYPE).json()["resume"]
        response = self.client.get(f"/uploads/{created['storedFileName']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, content)
        self.assertEqual(self.client.get("/uploads/resume-0-000000000.pdf").status_code, 404)

    def test_delete_removes_record_even_if_file_is_gone(self):
        created = self._upload("jane.docx", build_docx(["Jane Doe"]), DOCX_TYPE).json()["resume"]
        os.remove(os.path.join(self.tmp.name, "uploads", created["storedFileName"]))

        response = self.client.delete(f"/api/resumes/{created['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Resume deleted successfully"})
        self.assertEqual(self.client.get(f"/api/resumes/{created['id']}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/resumes/{created['id']}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
