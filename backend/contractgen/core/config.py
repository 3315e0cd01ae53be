from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Contract Generation Engine"
    DATABASE_URL: str = "sqlite:///./contractgen.db"
    LOG_LEVEL: str = "INFO"

    DOCUMENTS_DIR: str = "uploads/documents"
    TEMPLATES_DIR: str = "uploads/templates"
    ARTIFACT_PREFIX: str = "contrato"
    ARTIFACT_RETENTION: int = 5

    CONTRACT_NUMBER_PREFIX: str = "CON"
    CONTRACT_NUMBER_PADDING: int = 4
    TITLE_KEYWORD: str = "CONTRATO"

    AUDIT_BACKEND: str = "celery"
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/1"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> "Settings":
    return Settings()


settings = get_settings()
