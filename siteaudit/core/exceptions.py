"""Исключения siteaudit."""

from typing import Optional

from .models import ErrorKind


class SiteAuditError(Exception):
    """Базовое исключение siteaudit."""


class ConfigError(SiteAuditError):
    """Фатальная ошибка конфигурации: аудит не запускается."""


class ConfigNotFound(ConfigError):
    """Файл конфигурации не найден."""


class ConfigInvalid(ConfigError):
    """Файл конфигурации не парсится или не проходит валидацию."""


class EngineError(SiteAuditError):
    """
    Ошибка движка аудита для одного запроса.

    Перехватывается в BaseEngine.run_audit и превращается
    в AuditResult с пустыми scores.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.MALFORMED_RESPONSE, payload: Optional[object] = None):
        super().__init__(message)
        self.kind = kind
        self.payload = payload


class ResultStoreError(SiteAuditError):
    """Не удалось создать директорию или записать файл результата."""
