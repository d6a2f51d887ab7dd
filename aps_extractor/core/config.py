import os
import json
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # API Settings
    ALLOWED_ORIGINS: List[str] = json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]'))
    LOG_LEVEL: str = "INFO"

    # File Upload Settings
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB
    ALLOWED_FILE_TYPES: List[str] = ["image/jpeg", "image/png", "image/webp", "application/pdf"]

    # OCR Settings
    TESSERACT_PATH: str = os.getenv("TESSERACT_PATH", "")
    TESSERACT_LANG: str = "eng"
    OCR_PSM_MODES: List[int] = [6, 3, 4, 11]

    # Parser Settings
    FALLBACK_STRICT: bool = False
    SUBJECT_SUGGEST_THRESHOLD: float = 80.0

    # Temp Directory
    TEMP_DIR: str = os.getenv("TEMP_DIR", "/tmp")

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
