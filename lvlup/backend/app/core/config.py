# backend/app/core/config.py
from typing import List, Optional, Union
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent  # Goes to lvlup root
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "LVL UP Performance"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # CORS
    BACKEND_CORS_ORIGINS: Union[List[str], str] = []

    # Peers whose X-Forwarded-For / X-Real-IP headers are believed
    TRUSTED_PROXIES: Union[List[str], str] = []

    @field_validator("BACKEND_CORS_ORIGINS", "TRUSTED_PROXIES", mode="before")
    @classmethod
    def split_comma_separated(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    # Email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: str = "noreply@lvlup-performance.com"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # Notification delivery
    NOTIFICATION_QUEUE_SIZE: int = 1000
    NOTIFICATION_EMAIL_MAX_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_DELAY_SECONDS: float = 1.0

    # Behavioral insights (Anthropic Messages API)
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    LLM_TIMEOUT_SECONDS: float = 30.0

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    REDIS_URL: Optional[str] = None
    FEEDBACK_RATE_LIMIT_PER_URL: str = "30/hour"
    FEEDBACK_RATE_LIMIT_PER_CLIENT: str = "5/hour"

    # Real-time channel
    WS_AUTH_TIMEOUT_SECONDS: float = 10.0
    WS_RECONNECT_BASE_DELAY_SECONDS: int = 1
    WS_RECONNECT_MAX_ATTEMPTS: int = 5

    # URL
    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_URL: str = "http://localhost:8000"


settings = Settings()
