import io
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from fastapi import status
from PIL import Image
from aps_extractor.main import app
from aps_extractor.services.ocr import OCRService

client = TestClient(app)

@pytest.fixture
def sample_image():
    buffer = io.BytesIO()
    Image.new("RGB", (120, 40), (255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()

def test_health_check():
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "healthy"

    response = client.get("/api/v1/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "healthy", "version": "1.0.0"}

def test_extract_valid_image(sample_image):
    ocr_result = {
        "text": "Mathematics 85\nEnglish 72\nPhysical Science 63",
        "confidence": 87.0,
        "metadata": {"type": "image"}
    }

    with patch.object(OCRService, "extract_text", AsyncMock(return_value=ocr_result)):
        response = client.post("/api/v1/extract", files={"file": ("results.png", sample_image, "image/png")})

    assert response.status_code == status.HTTP_200_OK

    data = response.json()
    assert data["success"] is True
    assert data["confidence"] == 87.0
    assert data["overall_average"] == 73
    assert data["subjects"][0] == {"name": "Mathematics", "mark": 85, "level": "Distinction", "aps_points": 7}
    assert data["aps"] == {"aps_score": 18, "total_subjects": 3, "average_points": 6.0}
    assert data["file_type"] == "image/png"
    assert data["file_size"] == len(sample_image)
    assert "processing_time" in data

def test_extract_ocr_failure(sample_image):
    with patch.object(OCRService, "extract_text", AsyncMock(side_effect=Exception("Tesseract is not installed"))):
        response = client.post("/api/v1/extract", files={"file": ("results.png", sample_image, "image/png")})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Failed to process results file: Tesseract is not installed"

def test_extract_invalid_file_type():
    content = b"This is a text file, not an image or PDF"
    response = client.post(
        "/api/v1/extract",
        files={"file": ("sample.txt", content, "text/plain")}
    )

    assert response.status_code == status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    assert response.json()["success"] is False

def test_extract_large_file():
    content = b"x" * (11 * 1024 * 1024)
    response = client.post(
        "/api/v1/extract",
        files={"file": ("large.jpg", content, "image/jpeg")}
    )

    assert response.status_code == 413

def test_extract_missing_file():
    response = client.post("/api/v1/extract")
    assert response.status_code == 422

def test_parse_text():
    response = client.post("/api/v1/parse-text", json={"text": "Wiskunde: 91\nMathematics absent", "confidence": 64.5})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["subjects"] == [{"name": "Mathematics", "mark": 91, "level": "Distinction", "aps_points": 7}]
    assert data["overall_average"] == 91
    assert data["confidence"] == 64.5
    assert data["errors"] == ["Line 2: no mark found for Mathematics"]
    assert data["aps"]["aps_score"] == 7

def test_parse_text_empty():
    response = client.post("/api/v1/parse-text", json={"text": ""})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["subjects"] == []
    assert data["overall_average"] == 0
    assert data["aps"] == {"aps_score": 0, "total_subjects": 0, "average_points": 0.0}

def test_manual_aps():
    response = client.post("/api/v1/aps", json={"subjects": [
        {"name": "Maths", "mark": 80},
        {"name": "Engels", "mark": 79},
        {"name": "Life Orientation", "mark": 29},
    ]})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [s["name"] for s in data["subjects"]] == ["Mathematics", "English", "Life Orientation"]
    assert [s["level"] for s in data["subjects"]] == ["Distinction", "Merit", "Fail"]
    assert data["overall_average"] == 63
    assert data["aps"] == {"aps_score": 14, "total_subjects": 3, "average_points": 4.67}

def test_manual_aps_rejects_out_of_range_mark():
    response = client.post("/api/v1/aps", json={"subjects": [{"name": "History", "mark": 101}]})
    assert response.status_code == 422
