import os
from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Set

from .models.comparison import ComparisonSettings

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOG_DIR = BASE_DIR / "logs"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    API_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Invoice Guard"

    # File upload settings
    ALLOWED_EXTENSIONS_STR: str = "pdf"
    MAX_CONTENT_LENGTH: int = 16 * 1024 * 1024  # 16MB

    # Structured extraction (Gemini)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_TEMPERATURE: float = 0.1
    MAX_EXTRACTION_CHARS: int = 15000
    SPARSE_TEXT_THRESHOLD: int = 100

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./invoice_guard.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = str(LOG_DIR / "invoice_guard.log")

    # Comparison policy
    PRICE_TOLERANCE: float = 0.01
    CRITICAL_OVERCHARGE_THRESHOLD: float = 500.0
    INCLUDE_UNAUTHORIZED_IN_SAVINGS: bool = False

    @property
    def ALLOWED_EXTENSIONS(self) -> Set[str]:
        return {ext.strip().lower() for ext in self.ALLOWED_EXTENSIONS_STR.split(",") if ext.strip()}

    def comparison_settings(self) -> ComparisonSettings:
        """Policy object handed to the comparison engine."""
        return ComparisonSettings(
            price_tolerance=self.PRICE_TOLERANCE,
            critical_overcharge_threshold=self.CRITICAL_OVERCHARGE_THRESHOLD,
            include_unauthorized_in_savings=self.INCLUDE_UNAUTHORIZED_IN_SAVINGS,
        )

# Create settings instance
settings = Settings()
