import os
import uuid
from fastapi import UploadFile
from aps_extractor.core.config import settings
from aps_extractor.core.exceptions import ResultsExtractionException

def validate_file(file: UploadFile) -> None:
    """
    Validate an uploaded results document

    Args:
        file: Uploaded file

    Raises:
        ResultsExtractionException: If the file is too large or of an unsupported type
    """
    if file.size is not None and file.size > settings.MAX_FILE_SIZE:
        raise ResultsExtractionException(
            status_code=413,
            detail=f"File size exceeds maximum limit of {settings.MAX_FILE_SIZE / (1024 * 1024)} MB"
        )

    if file.content_type not in settings.ALLOWED_FILE_TYPES:
        raise ResultsExtractionException(
            status_code=415,
            detail=f"Unsupported file type: {file.content_type}. Allowed types: {', '.join(settings.ALLOWED_FILE_TYPES)}"
        )

def get_temp_file_path(filename: str) -> str:
    """
    Generate a unique temporary path that keeps the upload's extension
    """
    os.makedirs(settings.TEMP_DIR, exist_ok=True)

    file_extension = os.path.splitext(filename or "")[1]
    unique_filename = f"{uuid.uuid4()}{file_extension}"

    return os.path.join(settings.TEMP_DIR, unique_filename)
