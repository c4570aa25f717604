"""Audit engines: remote PageSpeed Insights and local Lighthouse."""

from siteaudit.config import AuditConfig
from siteaudit.core.base_engine import BaseEngine
from siteaudit.core.models import Engine
from siteaudit.engines.local import LighthouseEngine
from siteaudit.engines.remote import PageSpeedEngine
from siteaudit.settings import Settings

__all__ = ["BaseEngine", "LighthouseEngine", "PageSpeedEngine", "create_engine"]


def create_engine(config: AuditConfig, settings: Settings) -> BaseEngine:
    """Выбрать движок один раз при старте."""
    if config.engine == Engine.LOCAL_TOOL:
        return LighthouseEngine(
            lighthouse_bin=settings.lighthouse_bin,
            chrome_flags=settings.chrome_flags,
            timeout_seconds=settings.request_timeout,
        )

    return PageSpeedEngine(
        api_key=config.api_key or settings.psi_api_key or None,
        endpoint=settings.psi_endpoint,
        timeout_seconds=settings.request_timeout,
        prime_cache=settings.prime_cache,
    )
