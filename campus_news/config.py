"""
Configuration settings for the Campus News backend
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Server Configuration
    APP_NAME: str = "Campus News API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    LOG_LEVEL: str = "INFO"

    # Firebase Configuration
    FIREBASE_CREDENTIALS_PATH: str = "./firebase-credentials.json"
    # Support for raw JSON credentials (env var)
    FIREBASE_CREDENTIALS_JSON: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""
    FIREBASE_EMULATOR_HOST: str = ""
    DEV_MODE: bool = False

    # Google Gemini API (article translation)
    GOOGLE_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    DEBUG_MOCK_GEMINI: bool = False
    TRANSLATION_TIMEOUT_SECONDS: float = 30.0

    # Plagiarism checker
    PLAGIARISM_API_URL: str = ""
    PLAGIARISM_API_KEY: str = ""
    PLAGIARISM_TIMEOUT_SECONDS: float = 5.0
    # Scores at or above this percentage are flagged when the checker
    # returns a score without a verdict
    PLAGIARISM_FLAG_THRESHOLD: int = 30

    # JWT Configuration
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"

    # Listing defaults
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # CORS Configuration - Allow all localhost ports in development
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated origins to list"""
        origins = [origin.strip()
                   for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]
        if self.DEBUG:
            for port in (3000, 5173):
                for host in ("localhost", "127.0.0.1"):
                    origin = f"http://{host}:{port}"
                    if origin not in origins:
                        origins.append(origin)
        return origins

    model_config = {"env_file": ".env",
                    "case_sensitive": True, "extra": "allow"}


# Global settings instance
settings = Settings()
