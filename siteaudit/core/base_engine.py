"""
Base class for audit engines.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from .exceptions import EngineError
from .models import AuditRequest, AuditResult, ErrorKind

logger = logging.getLogger(__name__)


def scale_score(value: Any) -> float:
    """Lighthouse отдаёт score в [0,1] (или null). Перевести в 0..100."""
    if value is None:
        return 0.0
    try:
        score = float(value) * 100.0
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, score))


def extract_scores(lighthouse_result: Any) -> Dict[str, float]:
    """
    Достать category -> score из Lighthouse result (LHR).

    Raises:
        EngineError: нет объекта ``categories``
    """
    if not isinstance(lighthouse_result, dict):
        raise EngineError("Lighthouse result is not an object", ErrorKind.MALFORMED_RESPONSE)

    categories = lighthouse_result.get("categories")
    if not isinstance(categories, dict) or not categories:
        raise EngineError("Lighthouse result has no categories", ErrorKind.MALFORMED_RESPONSE)

    scores = {}
    for category, data in categories.items():
        score = data.get("score") if isinstance(data, dict) else None
        scores[category] = scale_score(score)
    return scores


class BaseEngine(ABC):
    """
    Базовый класс для движков аудита.

    Предоставляет:
    - Шаблон метода run_audit()
    - Преобразование ошибок в AuditResult с пустыми scores
    - Опциональный таймаут
    - Логирование
    """

    #: True = движок владеет эксклюзивным ресурсом, аудиты строго по одному
    EXCLUSIVE = False

    def __init__(self, name: str, timeout_seconds: Optional[float] = None):
        """
        Args:
            name: Имя движка (для логирования)
            timeout_seconds: Таймаут одного аудита (None = без таймаута)
        """
        self.name = name
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(f"siteaudit.engine.{name}")

    async def run_audit(self, request: AuditRequest) -> AuditResult:
        """
        Выполнить аудит одного URL. Никогда не выбрасывает исключений
        из-за проблем движка.

        Returns:
            AuditResult (scores пустой при ошибке)
        """
        self.logger.debug(f"Auditing {request.target_url} ({request.strategy})")
        start_time = time.perf_counter()

        try:
            if self.timeout_seconds:
                scores, payload = await asyncio.wait_for(self._audit(request), timeout=self.timeout_seconds)
            else:
                scores, payload = await self._audit(request)

        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            message = f"timed out after {self.timeout_seconds}s"
            self.logger.error(f"Failed to retrieve result for {request.target_url} - {request.strategy}: {message}")
            return AuditResult.failed(request, message, ErrorKind.TIMEOUT, duration_ms)

        except EngineError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(f"Failed to retrieve result for {request.target_url} - {request.strategy}: {e}")
            if e.payload is not None:
                self.logger.debug(f"Engine response: {e.payload!r}")
            return AuditResult.failed(request, str(e), e.kind, duration_ms)

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(
                f"{self.name} crashed on {request.target_url} - {request.strategy}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return AuditResult.failed(request, f"{type(e).__name__}: {e}", ErrorKind.TOOL_CRASH, duration_ms)

        duration_ms = (time.perf_counter() - start_time) * 1000
        # Только запрошенные категории
        scores = {category: score for category, score in scores.items() if category in request.categories}

        self.logger.info(
            f"{request.url} ({request.strategy}): "
            + ", ".join(f"{category}={score:.0f}" for category, score in scores.items())
            + f" [{duration_ms:.0f}ms]"
        )
        return AuditResult(
            url=request.url,
            strategy=request.strategy,
            scores=scores,
            payload=payload,
            duration_ms=duration_ms,
        )

    @abstractmethod
    async def _audit(self, request: AuditRequest) -> Tuple[Dict[str, float], Dict[str, Any]]:
        """
        Выполнить аудит (реализуется в подклассах).

        Returns:
            (category -> score 0..100, сырой payload для сохранения)

        Raises:
            EngineError: ошибка сети, ответа или инструмента
        """
        pass

    async def aclose(self) -> None:
        """Освободить ресурсы движка."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False
