"""Настройки окружения (не путать с JSON-конфигурацией аудита)."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Настройки siteaudit из переменных окружения и .env."""

    model_config = SettingsConfigDict(env_prefix="SITEAUDIT_", env_file=".env", extra="ignore")

    # PageSpeed Insights
    psi_endpoint: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    psi_api_key: str = ""  # Используется, если в конфиге нет apiKey
    prime_cache: bool = True  # Прогревочный GET страницы перед аудитом

    # Локальный Lighthouse
    lighthouse_bin: str = "lighthouse"
    chrome_flags: str = "--headless=new --no-sandbox"

    # None = без таймаута
    request_timeout: Optional[float] = None

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
