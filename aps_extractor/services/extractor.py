import os
import traceback
from typing import Dict, Any, Iterable, List, Tuple
from aps_extractor.services.ocr import OCRService
from aps_extractor.services import parser
from aps_extractor.services.vocabulary import CANONICAL_NAMES
from aps_extractor.api.schemas import ApsBreakdown, ExtractionResult, SubjectResult
from aps_extractor.core.config import settings
import logging

logger = logging.getLogger(__name__)

class ResultsExtractor:
    """
    Turns an uploaded results document into subjects, levels and an APS score
    """
    def __init__(self):
        self.ocr_service = OCRService()

    async def extract_results(self, file_path: str) -> Dict[str, Any]:
        """
        Read a results document and score it

        Args:
            file_path: Path to the results file (JPG/PNG/WEBP/PDF)

        Returns:
            Dict: ``success`` plus the extraction and APS breakdown, or
            ``success`` False and ``error`` when the document could not be read
        """
        logger.info(f"Starting extraction for file: {file_path}")
        logger.info(f"File size: {os.path.getsize(file_path) if os.path.exists(file_path) else 'N/A'} bytes")

        try:
            ocr_result = await self.ocr_service.extract_text(file_path)
        except Exception as e:
            logger.error(f"OCR failed for {file_path}: {str(e)}")
            logger.debug(traceback.format_exc())
            return {"success": False, "error": getattr(e, "detail", None) or str(e)}

        text = ocr_result.get("text", "")
        logger.info(f"OCR completed. Text length: {len(text)}, confidence: {ocr_result.get('confidence', 0.0):.2f}")
        logger.debug(f"Full OCR text: {text}")

        extraction = self.parse_text(text, ocr_result.get("confidence", 0.0))
        aps = ApsBreakdown.from_subjects(extraction.subjects)
        logger.info(f"Extracted {len(extraction.subjects)} subjects, APS {aps.aps_score}")

        return {
            "success": True,
            "text": text,
            "confidence": extraction.confidence,
            "subjects": extraction.subjects,
            "overall_average": extraction.overall_average,
            "errors": extraction.errors,
            "aps": aps
        }

    def parse_text(self, text: str, confidence: float = 0.0) -> ExtractionResult:
        """
        Parse already recognised text with the configured parser options
        """
        return parser.extract(
            text,
            confidence,
            strict=settings.FALLBACK_STRICT,
            suggest_threshold=settings.SUBJECT_SUGGEST_THRESHOLD
        )

    def score_subjects(self, entries: Iterable[Tuple[str, int]]) -> Dict[str, Any]:
        """
        Score manually entered marks

        A name that is exactly a vocabulary alias is canonicalised ("Wiskunde"
        -> "Mathematics"); any other name is kept as typed, trimmed.
        """
        subjects: List[SubjectResult] = []
        for name, mark in entries:
            normalized = " ".join(parser.normalize_line(name).split())
            subjects.append(SubjectResult(
                name=CANONICAL_NAMES.get(normalized, name.strip()),
                mark=mark
            ))

        return {
            "subjects": subjects,
            "overall_average": parser.average_mark(subjects),
            "aps": ApsBreakdown.from_subjects(subjects)
        }
