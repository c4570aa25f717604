"""
PageSpeed Insights engine (remote-api).

Один GET на runPagespeed для каждой пары (URL, стратегия):
    ?url=...&strategy=mobile&category=performance&category=seo&key=...
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from siteaudit.core.base_engine import BaseEngine, extract_scores
from siteaudit.core.exceptions import EngineError
from siteaudit.core.models import AuditRequest, ErrorKind

PAGESPEED_API = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

logger = logging.getLogger(__name__)


class PageSpeedEngine(BaseEngine):
    """Аудит через удалённый PageSpeed Insights API."""

    EXCLUSIVE = False

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = PAGESPEED_API,
        timeout_seconds: Optional[float] = None,
        prime_cache: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            api_key: Ключ Google API (опционально)
            endpoint: URL runPagespeed
            timeout_seconds: Таймаут одного аудита (None = без таймаута)
            prime_cache: Сделать GET страницы перед аудитом
            client: Готовый httpx клиент (для тестов)
        """
        super().__init__("pagespeed", timeout_seconds)
        self.api_key = api_key
        self.endpoint = endpoint
        self.prime_cache = prime_cache
        self._owns_client = client is None
        # PSI отвечает десятки секунд; таймаутом управляет BaseEngine
        self.client = client or httpx.AsyncClient(timeout=None, follow_redirects=True)

    def build_params(self, request: AuditRequest) -> list:
        """Query-параметры запроса к runPagespeed."""
        params = [
            ("url", request.target_url),
            ("strategy", request.strategy),
        ]
        params.extend(("category", category) for category in request.categories)
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    async def _prime(self, url: str) -> None:
        # Прогреть кеш страницы, чтобы результаты были стабильнее
        try:
            await self.client.get(url)
        except httpx.HTTPError as e:
            self.logger.warning(f"Cache prime request failed for {url}: {e}")

    async def _audit(self, request: AuditRequest) -> Tuple[Dict[str, float], Dict[str, Any]]:
        if self.prime_cache:
            await self._prime(request.target_url)

        try:
            response = await self.client.get(self.endpoint, params=self.build_params(request))
        except httpx.HTTPError as e:
            raise EngineError(f"{type(e).__name__}: {e}", ErrorKind.NETWORK) from e

        try:
            data = response.json()
        except ValueError as e:
            raise EngineError(
                f"HTTP {response.status_code}: response is not JSON",
                ErrorKind.MALFORMED_RESPONSE,
                payload=response.text[:500],
            ) from e

        if response.status_code != 200:
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message") if isinstance(error, dict) else error
            raise EngineError(
                f"HTTP {response.status_code}: {message or 'request failed'}",
                ErrorKind.NETWORK if response.status_code >= 500 else ErrorKind.MALFORMED_RESPONSE,
                payload=data,
            )

        lighthouse_result = data.get("lighthouseResult") if isinstance(data, dict) else None
        if lighthouse_result is None:
            raise EngineError("response has no lighthouseResult", ErrorKind.MALFORMED_RESPONSE, payload=data)

        return extract_scores(lighthouse_result), lighthouse_result

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
