import pytest
from unittest.mock import AsyncMock, patch
from aps_extractor.services.extractor import ResultsExtractor
from aps_extractor.core.exceptions import ResultsExtractionException

@pytest.fixture
def mock_ocr_result():
    return {
        "text": """
        DEPARTMENT OF BASIC EDUCATION
        Grade 11 Term Report

        Mathematics      85
        English HL       72
        Physical Science 63
        Life Orientation 90
        Geograpy         55

        Principal: ____________
        """,
        "confidence": 88.4,
        "metadata": {
            "type": "image",
            "format": "JPEG",
            "size": (800, 600),
            "mode": "RGB"
        }
    }

@pytest.mark.asyncio
async def test_extract_results_success(mock_ocr_result):
    extractor = ResultsExtractor()
    extractor.ocr_service.extract_text = AsyncMock(return_value=mock_ocr_result)

    result = await extractor.extract_results("dummy_path.jpg")

    assert result["success"] is True
    assert result["confidence"] == 88.4
    assert [(s.name, s.mark, s.level) for s in result["subjects"]] == [
        ("Mathematics", 85, "Distinction"),
        ("English", 72, "Merit"),
        ("Physical Science", 63, "Achieved"),
        ("Life Orientation", 90, "Distinction"),
    ]
    assert result["overall_average"] == 78
    assert result["aps"].aps_score == 7 + 6 + 5 + 7
    assert result["aps"].total_subjects == 4
    assert result["errors"] == ["Line 9: unrecognised subject 'geograpy' (did you mean Geography?)"]

@pytest.mark.asyncio
async def test_extract_results_ocr_failure():
    extractor = ResultsExtractor()
    extractor.ocr_service.extract_text = AsyncMock(side_effect=Exception("OCR failed"))

    with patch("aps_extractor.services.extractor.parser.extract") as parse:
        result = await extractor.extract_results("dummy_path.jpg")

    assert result == {"success": False, "error": "OCR failed"}
    parse.assert_not_called()

@pytest.mark.asyncio
async def test_extract_results_reports_exception_detail():
    extractor = ResultsExtractor()
    extractor.ocr_service.extract_text = AsyncMock(
        side_effect=ResultsExtractionException(status_code=400, detail="Unsupported file type: .gif")
    )

    result = await extractor.extract_results("dummy_path.gif")

    assert result == {"success": False, "error": "Unsupported file type: .gif"}

@pytest.mark.asyncio
async def test_extract_results_nothing_recognised():
    extractor = ResultsExtractor()
    extractor.ocr_service.extract_text = AsyncMock(return_value={"text": "", "confidence": 12.0, "metadata": {}})

    result = await extractor.extract_results("dummy_path.png")

    assert result["success"] is True
    assert result["subjects"] == []
    assert result["overall_average"] == 0
    assert result["aps"].aps_score == 0

def test_parse_text_uses_strict_setting():
    extractor = ResultsExtractor()

    lenient = extractor.parse_text("Wiskunde\n91")
    with patch("aps_extractor.services.extractor.settings.FALLBACK_STRICT", True):
        strict = extractor.parse_text("Wiskunde\n91")

    assert len(lenient.subjects) == 2
    assert len(strict.subjects) == 1

def test_score_subjects():
    result = ResultsExtractor().score_subjects([
        ("Wiskunde", 91),
        ("  physical   SCIENCES: ", 68),
        ("  Dramatic Arts ", 74),
    ])

    assert [(s.name, s.level) for s in result["subjects"]] == [
        ("Mathematics", "Distinction"),
        ("Physical Science", "Achieved"),
        ("Dramatic Arts", "Merit"),
    ]
    assert result["overall_average"] == 78
    assert result["aps"].aps_score == 7 + 5 + 6

def test_score_subjects_keeps_names_that_only_contain_an_alias():
    result = ResultsExtractor().score_subjects([
        ("Hospitality Studies", 70),
        ("Mathematical Literacy", 60),
        ("English Home Language", 65),
        ("Visual Arts", 55),
    ])

    assert [s.name for s in result["subjects"]] == [
        "Hospitality Studies",
        "Mathematical Literacy",
        "English Home Language",
        "Visual Arts",
    ]
