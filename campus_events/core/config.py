"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./campus_events.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"

    # Email dispatch; an empty key means "not configured"
    RESEND_API_KEY: str = ""
    SENDER_EMAIL: str = "noreply@nutrilife-campus.example"
    SENDER_NAME: str = "NutriLife Campus"
    DISPLAY_TIMEZONE: str = "Australia/Melbourne"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    PUBLIC_API_KEY: str = ""

    ALLOCATION_MAX_ATTEMPTS: int = 5
    TASK_MAX_RETRIES: int = 5

    class Config:
        env_file = ".env"


settings = Settings()


def get_redis_url() -> str:
    return settings.REDIS_URL
