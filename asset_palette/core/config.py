from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings and configuration"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Asset Palette API"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    # Unset: JSON inside AWS Lambda, human-readable elsewhere
    LOG_JSON: Optional[bool] = None

    # Uploads (per statement file)
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    class Config:
        case_sensitive = True


settings = Settings()
