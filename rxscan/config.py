"""
Configuration settings for the prescription scanning service
"""
import os
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Sehat Safe Prescription Scanner"
    DEBUG: bool = False
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    # Database
    DATABASE_URL: str = f"sqlite:///{BASE_DIR}/data/prescriptions.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5

    # File Storage
    UPLOAD_DIR: Path = BASE_DIR / "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # OCR engine (Tesseract)
    TESSERACT_CMD: Optional[str] = None
    OCR_LANGUAGE: str = "eng"
    OCR_PAGE_SEGMENTATION_MODE: int = 1  # automatic segmentation with OSD
    OCR_TIMEOUT_SECONDS: float = 60.0
    PDF_TIMEOUT_SECONDS: float = 30.0

    # Image normalization
    MIN_RASTER_WIDTH: int = 1000
    TARGET_RASTER_WIDTH: int = 2000

    # Processing
    MAX_WORKERS: int = os.cpu_count() or 2
    MEDICINE_VOCABULARY_FILE: Optional[Path] = None
    CONFIDENCE_LABEL: str = "Local Custom OCR"

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()
