"""
Integration tests for API endpoints
"""
import asyncio
import io
from unittest.mock import patch

import docx
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from docbrain.config import Settings
from docbrain.errors import ToolkitUnavailableError
from docbrain.main import app
from docbrain.routers.documents import UPLOAD_CHUNK_BYTES, _read_upload, nlp_toolkit
from docbrain.services.monitoring import health_checker
from docbrain.services.parsers import DOCX_TYPE

from conftest import ML_TEXT, RegexToolkit

client = TestClient(app)


@pytest.fixture
def regex_toolkit():
    app.dependency_overrides[nlp_toolkit] = lambda: RegexToolkit(entities=["Alan Turing", "Google"])
    yield
    app.dependency_overrides.clear()


def docx_bytes(text):
    document = docx.Document()
    for paragraph in text.split("\n\n"):
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestHealthEndpoints:
    def test_health_check(self):
        """Test health check endpoint"""
        healthy = {"status": "healthy", "message": "NLP toolkit loaded successfully"}
        with patch.object(health_checker, "check_nlp_toolkit", return_value=healthy):
            response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "cpu_percent" in data["system_metrics"]

    def test_health_check_unhealthy_toolkit(self):
        """A missing model marks the service unhealthy"""
        with patch("docbrain.services.nlp.toolkit.get_toolkit", side_effect=ToolkitUnavailableError("no model")):
            response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["unhealthy_components"] == ["nlp_toolkit"]

    def test_api_health(self):
        """Liveness probe"""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_metrics_endpoint(self):
        """Test metrics endpoint"""
        client.get("/api/health")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "http_requests_total" in response.text


class TestExtractEndpoint:
    def test_extract_text(self, regex_toolkit):
        response = client.post("/api/extract", json={"text": ML_TEXT, "seed": 4})
        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["totalSentences"] == 10
        assert data["stats"]["totalQuestions"] == len(data["questions"])
        assert "summarySections" in data
        assert "Machine Learning" in data["topics"]

    def test_seed_makes_output_repeatable(self, regex_toolkit):
        first = client.post("/api/extract", json={"text": ML_TEXT, "seed": 11}).json()
        second = client.post("/api/extract", json={"text": ML_TEXT, "seed": 11}).json()
        assert first == second

    def test_text_too_short(self, regex_toolkit):
        response = client.post("/api/extract", json={"text": "tiny"})
        assert response.status_code == 400

    def test_toolkit_unavailable(self):
        with patch("docbrain.routers.documents.get_toolkit", side_effect=ToolkitUnavailableError("no model")):
            response = client.post("/api/extract", json={"text": ML_TEXT})
        assert response.status_code == 503

    def test_engine_failure_is_500(self, regex_toolkit):
        with patch("docbrain.routers.documents.extract_content", side_effect=RuntimeError("boom")):
            response = client.post("/api/extract", json={"text": ML_TEXT})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to process the document."


class TestUploadEndpoint:
    def test_upload_docx(self, regex_toolkit):
        files = {"document": ("notes.docx", docx_bytes(ML_TEXT), DOCX_TYPE)}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 200
        data = response.json()
        assert data["filename"] == "notes.docx"
        assert data["fileSize"] > 0
        assert data["pageCount"] == 1
        assert data["stats"]["totalFlashcards"] == len(data["flashcards"])

    def test_missing_file(self, regex_toolkit):
        response = client.post("/api/upload")
        assert response.status_code == 400

    def test_unsupported_type(self, regex_toolkit):
        files = {"document": ("notes.txt", b"Plain text is not accepted here.", "text/plain")}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    def test_corrupt_pdf(self, regex_toolkit):
        files = {"document": ("broken.pdf", b"%PDF-1.4 not really", "application/pdf")}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 400

    def test_empty_document(self, regex_toolkit):
        files = {"document": ("empty.docx", docx_bytes(""), DOCX_TYPE)}
        response = client.post("/api/upload", files=files)
        assert response.status_code == 400

    def test_oversized_file(self, regex_toolkit):
        with patch("docbrain.routers.documents.get_settings", return_value=Settings(max_upload_mb=0)):
            files = {"document": ("notes.docx", docx_bytes(ML_TEXT), DOCX_TYPE)}
            response = client.post("/api/upload", files=files)
        assert response.status_code == 400


class ChunkedUpload:
    """Serves a fixed number of full chunks and counts reads"""

    def __init__(self, chunks):
        self.remaining = chunks
        self.reads = 0

    async def read(self, size=-1):
        self.reads += 1
        if not self.remaining:
            return b""
        self.remaining -= 1
        return b"x" * UPLOAD_CHUNK_BYTES


class TestReadUpload:
    def test_stops_once_limit_passed(self):
        upload = ChunkedUpload(chunks=5)
        with pytest.raises(HTTPException) as exc:
            asyncio.run(_read_upload(upload, Settings(max_upload_mb=1)))
        assert exc.value.status_code == 400
        assert upload.reads == 2
        assert upload.remaining == 3

    def test_reads_whole_file_within_limit(self):
        upload = ChunkedUpload(chunks=2)
        data = asyncio.run(_read_upload(upload, Settings(max_upload_mb=2)))
        assert len(data) == 2 * UPLOAD_CHUNK_BYTES
