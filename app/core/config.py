"""Application configuration via pydantic-settings.

Loads all settings from environment variables. The Supabase credentials and
the JWT signing secret have no defaults and must be set.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str
    STORAGE_BUCKET: str = "uploads"

    # Auth
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    INVITE_TOKEN_TTL_HOURS: int = 24

    # Email (Postmark template API)
    EMAIL_API_BASE_URL: str = "https://api.postmarkapp.com"
    EMAIL_API_KEY: str = ""
    EMAIL_FROM: str = "no-reply@preppit.com"
    INVITE_TEMPLATE_ID: str = "candidate-invitation"
    FIRST_EXAM_TEMPLATE_ID: str = "first-exam-joining"
    PRODUCT_NAME: str = "Preppit"
    FRONTEND_URL: str = "http://localhost:3000"

    # Seats & enrollment
    SEAT_RESERVATION_MODE: str = "atomic"
    FIRST_ENROLLMENT_BONUS_SECONDS: int = 300
    DEFAULT_EXAM_DATE_MONTHS: int = 2
    DEFAULT_PRACTICE_FREQUENCY: str = "3"

    # Image generation
    GEMINI_API_KEY: str = ""
    GEMINI_IMAGE_MODEL: str = "gemini-2.0-flash-preview-image-generation"

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    IMAGE_JOB_INTERVAL_MINUTES: int = 45
    IMAGE_JOB_BATCH_SIZE: int = 5

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Runtime
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"


settings = Settings()  # type: ignore[call-arg]
