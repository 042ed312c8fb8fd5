from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Receipt OCR"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Dates
    DATE_ORDER_PREFERENCE: str = "MDY"  # "MDY" (US) or "DMY" (European)
    DATE_LOOKBACK_YEARS: int = 10
    DATE_LOOKAHEAD_DAYS: int = 7

    # Field extraction
    STORE_NAME_MAX_LINES: int = 5
    TOTAL_CEILING: float = 10000

    # Review
    ITEMS_TOTAL_TOLERANCE: float = 0.3
    UNKNOWN_STORE_NAME: str = "Unknown Store"
    REVIEW_MIN_OCR_CONFIDENCE: Optional[float] = None  # Unset = never flag on OCR confidence

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
