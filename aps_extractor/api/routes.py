from fastapi import APIRouter, UploadFile, File, BackgroundTasks
import os
import shutil
import time
from aps_extractor.api.schemas import (
    ResultsUploadResponse,
    ParseTextRequest,
    ParseTextResponse,
    ManualResultsRequest,
    ManualResultsResponse,
    HealthResponse,
    ApsBreakdown
)
from aps_extractor.services.extractor import ResultsExtractor
from aps_extractor.core.exceptions import ResultsExtractionException
from aps_extractor.utils.file_utils import validate_file, get_temp_file_path
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/extract", response_model=ResultsUploadResponse)
async def extract_results(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...)
):
    """
    Read subject marks from an uploaded results document (JPG/PNG/WEBP/PDF)
    and compute the APS
    """
    logger.info(f"Received results upload: {file.filename} ({file.content_type}, {file.size} bytes)")

    validate_file(file)

    temp_file_path = get_temp_file_path(file.filename)
    with open(temp_file_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)
    background_tasks.add_task(os.remove, temp_file_path)
    logger.info(f"Saved upload to {temp_file_path}")

    extractor = ResultsExtractor()
    start_time = time.time()
    result = await extractor.extract_results(temp_file_path)
    processing_time = time.time() - start_time
    logger.info(f"Extraction completed in {processing_time:.2f} seconds")

    if not result["success"]:
        # Background tasks do not run for error responses
        os.remove(temp_file_path)
        raise ResultsExtractionException(
            status_code=500,
            detail=f"Failed to process results file: {result['error']}"
        )

    return ResultsUploadResponse(
        **result,
        processing_time=processing_time,
        file_type=file.content_type,
        file_size=file.size
    )

@router.post("/parse-text", response_model=ParseTextResponse)
async def parse_text(request: ParseTextRequest):
    """
    Parse text that was already recognised elsewhere
    """
    extraction = ResultsExtractor().parse_text(request.text, request.confidence)
    return ParseTextResponse(
        **extraction.model_dump(exclude={"subjects"}),
        subjects=extraction.subjects,
        aps=ApsBreakdown.from_subjects(extraction.subjects)
    )

@router.post("/aps", response_model=ManualResultsResponse)
async def score_manual_results(request: ManualResultsRequest):
    """
    Score manually entered subject marks
    """
    logger.info(f"Scoring {len(request.subjects)} manually entered subjects")
    return ResultsExtractor().score_subjects(
        (entry.name, entry.mark) for entry in request.subjects
    )

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint
    """
    return {"status": "healthy", "version": "1.0.0"}
