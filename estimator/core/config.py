# estimator/core/config.py
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Entorno
    ENV: str = "dev"  # dev | prod
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # App
    PROJECT_NAME: str = "BOQ Estimator"
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Base de datos
    DATABASE_URL: str = "sqlite:///./estimator.db"

    # Ventana (días) para promediar precios reales de proveedor; None = todo el historial
    ACTUAL_PRICE_WINDOW_DAYS: int | None = Field(None, gt=0)

    # Límite de tiempo por operación iniciada desde la API
    OPERATION_TIMEOUT_SECONDS: float = Field(30.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
