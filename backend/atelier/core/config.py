import secrets
from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Atelier"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_V1_STR: str = "/api"
    LOG_LEVEL: str = "INFO"

    # ---------- Sessions ----------
    SECRET_KEY: str = secrets.token_urlsafe(32)
    # 60 minutes * 24 hours * 8 days = 8 days
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8
    IDENTITY_USERINFO_URL: str = "https://openidconnect.googleapis.com/v1/userinfo"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # ---------- Document store ----------
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./atelier.db"

    # ---------- LLM provider ----------
    LLM_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    LLM_BASE_URL: str | None = "https://generativelanguage.googleapis.com/v1beta/openai/"
    MODEL_DEFAULT: str = "gemini-2.5-flash"
    MODEL_VISION: str | None = None
    # One attempt means a non-conforming answer fails the action immediately.
    LLM_MAX_ATTEMPTS: int = 1
    AI_MAX_CONCURRENCY: int = 4
    MAX_IMAGE_BYTES: int = 10 * 1024 * 1024

    # ---------- Storefront ----------
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    LANDING_GALLERY_SIZE: int = 8
    BROWSE_CAROUSEL_SIZE: int = 12


settings = Settings()  # type: ignore
