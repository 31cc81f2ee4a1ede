from typing import Optional, Dict, Any
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, field_validator
from pathlib import Path

# Define the root directory of the submission_analyzer package
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (two levels up from this settings.py)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "SubmissionAnalyzerService"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Judge (LeetCode) submission source
    JUDGE_BASE_URL: str = "https://leetcode.com"
    JUDGE_PAGE_SIZE: int = 20
    JUDGE_PAGE_DELAY_SECONDS: float = 0.5
    JUDGE_REQUEST_TIMEOUT_SECONDS: float = 15.0
    DEFAULT_SUBMISSION_LIMIT: int = 20
    JUDGE_SESSION_COOKIE: str = ""  # only read by the standalone runner

    # Gemini annotation service
    GEMINI_API_KEY: str = ""
    GEMINI_FLASH_BIG: str = "gemini-2.5-flash"
    GEMINI_FLASH_SMALL: str = "gemini-2.5-flash-lite"
    ANNOTATION_BATCH_SIZE: int = 10
    ANNOTATION_MAX_CONCURRENCY: int = 1  # 1 keeps the chunk calls strictly sequential
    ANNOTATION_REQUEST_TIMEOUT_SECONDS: float = 120.0
    OVERALL_ANALYSIS_LIMIT: int = 1

    # Analysis cache
    CACHE_SINGLE_FLIGHT: bool = False

    # Database settings
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "submission_analyzer_db"
    DATABASE_URL: Optional[str] = None

    @field_validator("DATABASE_URL", mode='before')
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], values: Dict[str, Any]) -> Any:
        if isinstance(v, str):
            return v
        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=values.data.get("DB_USER"),
            password=values.data.get("DB_PASSWORD"),
            host=values.data.get("DB_HOST"),
            port=int(values.data.get("DB_PORT") or 5432),
            path=values.data.get("DB_NAME") or "",
        ))

    @field_validator("ANNOTATION_BATCH_SIZE", "JUDGE_PAGE_SIZE", "ANNOTATION_MAX_CONCURRENCY")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        validate_default=True,
        extra='ignore'
    )


# Instantiate settings
settings = Settings()
