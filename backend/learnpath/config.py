"""Settings for the LearnPath API, read from the environment and ``.env``."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# URL scheme -> scheme for the async (app) and sync (Alembic) drivers
_ASYNC_SCHEMES = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}
_SYNC_SCHEMES = {
    "postgres": "postgresql",
    "postgresql+asyncpg": "postgresql",
    "sqlite+aiosqlite": "sqlite",
}


def _swap_scheme(url: str, schemes: dict[str, str]) -> str:
    scheme, sep, rest = url.partition("://")
    return f"{schemes.get(scheme, scheme)}{sep}{rest}"


def _base_database_url(settings: "Settings") -> str:
    if settings.database_url_override:
        return settings.database_url_override
    return (
        f"postgresql://{settings.postgres_user}:{settings.postgres_password}"
        f"@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}"
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "LearnPath"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Database: a full URL in DATABASE_URL_OVERRIDE wins over the postgres_* parts
    database_url_override: str | None = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "learnpath"
    postgres_password: str = ""
    postgres_db: str = "learnpath"

    @computed_field
    @property
    def database_url(self) -> str:
        """URL for the async engine (asyncpg / aiosqlite)."""
        return _swap_scheme(_base_database_url(self), _ASYNC_SCHEMES)

    @computed_field
    @property
    def database_url_sync(self) -> str:
        """URL for Alembic (psycopg2 / pysqlite)."""
        return _swap_scheme(_base_database_url(self), _SYNC_SCHEMES)

    # Sessions
    session_secret_key: str  # Required, signs the session cookie
    session_algorithm: str = "HS256"
    session_expire_minutes: int = 8 * 60
    session_cookie_name: str = "learnpath_sid"

    # Frontend on another domain needs samesite="none" (and therefore secure)
    cookie_cross_domain: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    # Passwords
    bcrypt_rounds: int = 12

    # Language model
    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 2000
    llm_timeout_seconds: float = 60.0

    # Survey shape
    survey_question_count: int = 5
    subtopic_count: int = 5

    # Compare-and-swap retries for user and topic updates
    max_replace_attempts: int = 3

    # Insert the default personality questions at startup if none exist
    seed_personality_questions: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "Something went wrong, please try again.") -> str:
    """Error text safe to send to clients: the real message only in development."""
    if get_settings().environment == "development":
        return str(error)
    return generic_message
